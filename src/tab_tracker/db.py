"""SQLite database layer for persisted time entries."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path
from typing import Iterable, Iterator, Optional, Union

from .errors import NotFoundError, StorageError
from .models import Category, TimeEntry


DATETIME_FMT = "%Y-%m-%d %H:%M:%S.%f"

_UNSET = object()

_COLUMNS = "id, hostname, url, title, duration, category, timestamp, user_id, created_at, updated_at"


def open_database(path: Path, *, check_same_thread: bool = True) -> sqlite3.Connection:
    """Open (and initialize) the SQLite database."""
    try:
        conn = sqlite3.connect(
            path,
            isolation_level=None,
            check_same_thread=check_same_thread,
        )
        conn.row_factory = sqlite3.Row
        initialize_schema(conn)
    except sqlite3.Error as exc:
        raise StorageError(f"Cannot open database at {path}: {exc}") from exc
    return conn


@contextmanager
def database_connection(
    path: Path, *, check_same_thread: bool = True
) -> Iterator[sqlite3.Connection]:
    conn = open_database(path, check_same_thread=check_same_thread)
    try:
        yield conn
    except sqlite3.Error as exc:
        raise StorageError(str(exc)) from exc
    finally:
        conn.close()


def initialize_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS time_entries (
            id INTEGER PRIMARY KEY,
            hostname TEXT NOT NULL,
            url TEXT,
            title TEXT,
            duration INTEGER NOT NULL CHECK (duration >= 1),
            category TEXT NOT NULL
                CHECK (category IN ('productive', 'unproductive', 'neutral')),
            timestamp TEXT NOT NULL,
            user_id TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT
        );

        CREATE INDEX IF NOT EXISTS idx_entries_timestamp
            ON time_entries(timestamp);
        """
    )


def format_timestamp(value: datetime) -> str:
    """Store every timestamp as naive UTC text so string order is time order."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.strftime(DATETIME_FMT)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.strptime(value, DATETIME_FMT).replace(tzinfo=timezone.utc)


@dataclass(slots=True)
class EntryFilter:
    """Range and attribute filter shared by listing and aggregation.

    Both bounds are inclusive; a plain ``date`` as ``end`` covers that whole day.
    """

    start: Optional[Union[date, datetime]] = None
    end: Optional[Union[date, datetime]] = None
    user_id: Optional[str] = None
    hostname: Optional[str] = None
    category: Optional[Category] = None

    def to_sql(self) -> tuple[str, list[object]]:
        clauses: list[str] = []
        params: list[object] = []
        if self.user_id:
            clauses.append("user_id = ?")
            params.append(self.user_id)
        if self.start is not None:
            clauses.append("timestamp >= ?")
            params.append(format_timestamp(_lower_bound(self.start)))
        if self.end is not None:
            clauses.append("timestamp <= ?")
            params.append(format_timestamp(_upper_bound(self.end)))
        if self.hostname:
            clauses.append("instr(lower(hostname), ?) > 0")
            params.append(self.hostname.lower())
        if self.category is not None:
            clauses.append("category = ?")
            params.append(self.category.value)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, params


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def _lower_bound(value: Union[date, datetime]) -> datetime:
    if isinstance(value, datetime):
        return _as_utc(value)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def _upper_bound(value: Union[date, datetime]) -> datetime:
    if isinstance(value, datetime):
        return _as_utc(value)
    return datetime.combine(value, time.max, tzinfo=timezone.utc)


def row_to_entry(row: sqlite3.Row) -> TimeEntry:
    return TimeEntry(
        id=row["id"],
        hostname=row["hostname"],
        url=row["url"],
        title=row["title"],
        duration=row["duration"],
        category=Category(row["category"]),
        timestamp=parse_timestamp(row["timestamp"]),
        user_id=row["user_id"],
        created_at=parse_timestamp(row["created_at"]),
        updated_at=parse_timestamp(row["updated_at"]),
    )


def insert_entry(conn: sqlite3.Connection, entry: TimeEntry) -> TimeEntry:
    return insert_entries(conn, [entry])[0]


def insert_entries(conn: sqlite3.Connection, entries: Iterable[TimeEntry]) -> list[TimeEntry]:
    """Insert all entries in one transaction and return them with ids set."""
    created: list[TimeEntry] = []
    now = datetime.now(timezone.utc)
    conn.execute("BEGIN")
    try:
        for entry in entries:
            entry.created_at = entry.created_at or now
            cur = conn.execute(
                """
                INSERT INTO time_entries (
                    hostname,
                    url,
                    title,
                    duration,
                    category,
                    timestamp,
                    user_id,
                    created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.hostname,
                    entry.url,
                    entry.title,
                    entry.duration,
                    entry.category.value,
                    format_timestamp(entry.timestamp),
                    entry.user_id,
                    format_timestamp(entry.created_at),
                ),
            )
            entry.id = cur.lastrowid
            created.append(entry)
    except BaseException:
        conn.execute("ROLLBACK")
        raise
    conn.execute("COMMIT")
    return created


def get_entry(conn: sqlite3.Connection, entry_id: int) -> TimeEntry:
    row = conn.execute(
        f"SELECT {_COLUMNS} FROM time_entries WHERE id = ?", (entry_id,)
    ).fetchone()
    if row is None:
        raise NotFoundError(f"No time entry found for id={entry_id}")
    return row_to_entry(row)


def fetch_entries(
    conn: sqlite3.Connection, entry_filter: Optional[EntryFilter] = None
) -> list[TimeEntry]:
    """Return matching entries in ascending (timestamp, id) order."""
    where, params = (entry_filter or EntryFilter()).to_sql()
    rows = conn.execute(
        f"SELECT {_COLUMNS} FROM time_entries {where} ORDER BY timestamp, id",
        params,
    )
    return [row_to_entry(row) for row in rows]


def count_entries(conn: sqlite3.Connection, entry_filter: Optional[EntryFilter] = None) -> int:
    where, params = (entry_filter or EntryFilter()).to_sql()
    row = conn.execute(f"SELECT COUNT(*) FROM time_entries {where}", params).fetchone()
    return int(row[0])


def fetch_page(
    conn: sqlite3.Connection,
    entry_filter: Optional[EntryFilter] = None,
    *,
    limit: int,
    offset: int = 0,
) -> list[TimeEntry]:
    """Return one slice of matching entries, newest first."""
    where, params = (entry_filter or EntryFilter()).to_sql()
    rows = conn.execute(
        f"SELECT {_COLUMNS} FROM time_entries {where} "
        "ORDER BY timestamp DESC, id DESC LIMIT ? OFFSET ?",
        [*params, limit, offset],
    )
    return [row_to_entry(row) for row in rows]


def update_entry(
    conn: sqlite3.Connection,
    entry_id: int,
    *,
    hostname: Optional[str] = None,
    duration: Optional[int] = None,
    category: Optional[Category] = None,
    title: object = _UNSET,
) -> TimeEntry:
    """Update a single entry, stamping ``updated_at``."""
    fields: list[str] = []
    params: list[object] = []

    if hostname is not None:
        fields.append("hostname = ?")
        params.append(hostname)
    if duration is not None:
        fields.append("duration = ?")
        params.append(duration)
    if category is not None:
        fields.append("category = ?")
        params.append(category.value)
    if title is not _UNSET:
        fields.append("title = ?")
        params.append(title)

    fields.append("updated_at = ?")
    params.append(format_timestamp(datetime.now(timezone.utc)))
    params.append(entry_id)
    cur = conn.execute(
        f"UPDATE time_entries SET {', '.join(fields)} WHERE id = ?",
        params,
    )
    if cur.rowcount == 0:
        raise NotFoundError(f"No time entry found for id={entry_id}")
    return get_entry(conn, entry_id)


def delete_entry(conn: sqlite3.Connection, entry_id: int) -> TimeEntry:
    entry = get_entry(conn, entry_id)
    conn.execute("DELETE FROM time_entries WHERE id = ?", (entry_id,))
    return entry


def delete_entries_before(conn: sqlite3.Connection, cutoff: datetime) -> int:
    """Bulk retention cleanup; returns the number of removed entries."""
    cur = conn.execute(
        "DELETE FROM time_entries WHERE timestamp < ?",
        (format_timestamp(cutoff),),
    )
    return cur.rowcount


def retention_cutoff(days: int, now: Optional[datetime] = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now - timedelta(days=days)
