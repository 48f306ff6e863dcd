"""FastAPI application that stores time entries and serves analytics."""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlsplit

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .analytics import DEFAULT_PAGE_SIZE, daily_breakdown, page_bounds, paginate, summarize
from .db import (
    EntryFilter,
    count_entries,
    database_connection,
    delete_entry,
    fetch_entries,
    fetch_page,
    insert_entries,
    insert_entry,
    update_entry,
)
from .errors import NotFoundError, StorageError, ValidationError
from .models import Category, TimeEntry
from .paths import get_db_path

logger = logging.getLogger(__name__)

MAX_BULK_ENTRIES = 100


class EntryCreate(BaseModel):
    hostname: str = Field(min_length=1)
    duration: int = Field(ge=1)
    category: Category
    url: Optional[str] = None
    title: Optional[str] = None
    user_id: Optional[str] = Field(default=None, alias="userId")

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True)

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        parts = urlsplit(value)
        if not parts.scheme or not parts.netloc:
            raise ValueError("must be an absolute URL")
        return value

    def to_entry(self, timestamp: datetime) -> TimeEntry:
        return TimeEntry(
            hostname=self.hostname,
            duration=self.duration,
            category=self.category,
            timestamp=timestamp,
            url=self.url,
            title=self.title,
            user_id=self.user_id,
        )


class BulkEntry(EntryCreate):
    timestamp: Optional[datetime] = None


class BulkPayload(BaseModel):
    entries: List[BulkEntry] = Field(min_length=1, max_length=MAX_BULK_ENTRIES)


class EntryUpdate(BaseModel):
    hostname: Optional[str] = Field(default=None, min_length=1)
    duration: Optional[int] = Field(default=None, ge=1)
    category: Optional[Category] = None
    title: Optional[str] = None

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


def create_app(*, db_path: Optional[Path] = None) -> FastAPI:
    """Instantiate the FastAPI application."""
    resolved_db_path = Path(db_path or get_db_path())
    # Creates the schema up front so the first request never races it.
    with database_connection(resolved_db_path):
        pass

    app = FastAPI(title="Tab Tracker", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.db_path = resolved_db_path

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={"error": "Validation failed", "details": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(ValidationError)
    async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content={
                "error": "Validation failed",
                "details": [{"loc": [exc.field], "msg": exc.constraint}],
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=exc.headers,
        )

    @app.get("/api/status")
    def status(request: Request) -> Dict[str, Any]:
        return {
            "database_path": str(request.app.state.db_path),
            "version": __version__,
        }

    @app.get("/api/time-entries")
    def list_entries(
        request: Request,
        page: int = Query(default=1, ge=1),
        limit: int = Query(default=DEFAULT_PAGE_SIZE),
        start_date: Optional[str] = Query(default=None, alias="startDate"),
        end_date: Optional[str] = Query(default=None, alias="endDate"),
        hostname: Optional[str] = Query(default=None),
        category: Optional[Category] = Query(default=None),
        user_id: Optional[str] = Query(default=None, alias="userId"),
    ) -> Dict[str, Any]:
        entry_filter = EntryFilter(
            start=_parse_bound(start_date, "startDate"),
            end=_parse_bound(end_date, "endDate"),
            user_id=user_id,
            hostname=hostname,
            category=category,
        )
        offset, limit = page_bounds(page, limit)
        try:
            with database_connection(request.app.state.db_path) as conn:
                total = count_entries(conn, entry_filter)
                window = fetch_page(conn, entry_filter, limit=limit, offset=offset)
        except StorageError as exc:
            logger.exception("Error fetching time entries")
            raise HTTPException(status_code=500, detail="Failed to fetch time entries") from exc
        result = paginate(window, total, page=page, limit=limit)
        result["entries"] = [entry.to_payload() for entry in result["entries"]]
        return result

    @app.post("/api/time-entries", status_code=201)
    def create_entry(payload: EntryCreate, request: Request) -> Dict[str, Any]:
        try:
            with database_connection(request.app.state.db_path) as conn:
                entry = insert_entry(conn, payload.to_entry(datetime.now(timezone.utc)))
        except StorageError as exc:
            logger.exception("Error creating time entry")
            raise HTTPException(status_code=500, detail="Failed to create time entry") from exc
        logger.info("Stored %ss on %s", entry.duration, entry.hostname)
        return {"message": "Time entry created successfully", "entry": entry.to_payload()}

    @app.post("/api/time-entries/bulk", status_code=201)
    def create_entries(payload: BulkPayload, request: Request) -> Dict[str, Any]:
        now = datetime.now(timezone.utc)
        entries = [item.to_entry(item.timestamp or now) for item in payload.entries]
        try:
            with database_connection(request.app.state.db_path) as conn:
                saved = insert_entries(conn, entries)
        except StorageError as exc:
            logger.exception("Error creating bulk entries")
            raise HTTPException(status_code=500, detail="Failed to create entries") from exc
        return {
            "message": f"{len(saved)} time entries created successfully",
            "entries": [entry.to_payload() for entry in saved],
        }

    @app.put("/api/time-entries/{entry_id}")
    def update_entry_endpoint(
        entry_id: int,
        payload: EntryUpdate,
        request: Request,
    ) -> Dict[str, Any]:
        updates = payload.model_dump(exclude_unset=True)
        for field in ("hostname", "duration", "category"):
            if field in updates and updates[field] is None:
                raise ValidationError(field, "cannot be null")
        try:
            with database_connection(request.app.state.db_path) as conn:
                entry = update_entry(conn, entry_id, **updates)
        except NotFoundError as exc:
            raise HTTPException(status_code=404, detail="Time entry not found") from exc
        except StorageError as exc:
            logger.exception("Error updating entry %s", entry_id)
            raise HTTPException(status_code=500, detail="Failed to update entry") from exc
        return {"message": "Updated successfully", "entry": entry.to_payload()}

    @app.delete("/api/time-entries/{entry_id}")
    def delete_entry_endpoint(entry_id: int, request: Request) -> Dict[str, Any]:
        try:
            with database_connection(request.app.state.db_path) as conn:
                entry = delete_entry(conn, entry_id)
        except NotFoundError as exc:
            raise HTTPException(status_code=404, detail="Time entry not found") from exc
        except StorageError as exc:
            logger.exception("Error deleting entry %s", entry_id)
            raise HTTPException(status_code=500, detail="Failed to delete entry") from exc
        return {"message": "Deleted successfully", "entry": entry.to_payload()}

    @app.get("/api/analytics/summary")
    def summary(
        request: Request,
        start_date: Optional[str] = Query(default=None, alias="startDate"),
        end_date: Optional[str] = Query(default=None, alias="endDate"),
        user_id: Optional[str] = Query(default=None, alias="userId"),
    ) -> Dict[str, Any]:
        entry_filter = EntryFilter(
            start=_parse_bound(start_date, "startDate"),
            end=_parse_bound(end_date, "endDate"),
            user_id=user_id,
        )
        try:
            with database_connection(request.app.state.db_path) as conn:
                entries = fetch_entries(conn, entry_filter)
        except StorageError as exc:
            logger.exception("Error generating summary")
            raise HTTPException(status_code=500, detail="Failed to generate summary") from exc
        return {
            "summary": summarize(entries),
            "period": {
                "startDate": start_date or "All time",
                "endDate": end_date or "All time",
            },
        }

    @app.get("/api/analytics/daily")
    def daily(
        request: Request,
        start_date: Optional[str] = Query(default=None, alias="startDate"),
        end_date: Optional[str] = Query(default=None, alias="endDate"),
        user_id: Optional[str] = Query(default=None, alias="userId"),
    ) -> Dict[str, Any]:
        entry_filter = EntryFilter(
            start=_parse_bound(start_date, "startDate"),
            end=_parse_bound(end_date, "endDate"),
            user_id=user_id,
        )
        try:
            with database_connection(request.app.state.db_path) as conn:
                entries = fetch_entries(conn, entry_filter)
        except StorageError as exc:
            logger.exception("Error generating daily analytics")
            raise HTTPException(status_code=500, detail="Failed to generate daily analytics") from exc
        return {"dailyData": daily_breakdown(entries)}

    return app


def _parse_bound(value: Optional[str], field: str) -> Optional[Union[date, datetime]]:
    """Accept ``YYYY-MM-DD`` or a full ISO 8601 timestamp."""
    if not value:
        return None
    try:
        if len(value) == 10:
            return date.fromisoformat(value)
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ValidationError(field, "must be an ISO 8601 date") from exc
