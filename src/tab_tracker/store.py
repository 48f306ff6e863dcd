"""SQLite key-value store for the tracker's local data."""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Any, Iterator, Optional

from .errors import StorageError

logger = logging.getLogger(__name__)


class LocalStore:
    """Day buckets keyed by calendar date plus a small settings table.

    A single connection is shared between the tracking loop and the purge
    thread; ``transaction`` serializes read-modify-write sequences.
    """

    def __init__(self, path: Path, timeout: float = 5.0) -> None:
        self.path = Path(path)
        self._lock = threading.RLock()
        try:
            self._conn = sqlite3.connect(
                self.path,
                timeout=timeout,
                isolation_level=None,
                check_same_thread=False,
            )
            self._conn.row_factory = sqlite3.Row
            self._initialize_schema()
        except sqlite3.Error as exc:
            raise StorageError(f"Cannot open local store at {self.path}: {exc}") from exc

    def _initialize_schema(self) -> None:
        self._conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS day_buckets (
                day TEXT PRIMARY KEY,
                payload TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS settings (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            );
            """
        )

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Run the enclosed reads and writes as one atomic unit."""
        with self._lock:
            try:
                self._conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as exc:
                raise StorageError(f"Cannot start transaction: {exc}") from exc
            try:
                yield
            except BaseException:
                self._rollback()
                raise
            try:
                self._conn.execute("COMMIT")
            except sqlite3.Error as exc:
                self._rollback()
                raise StorageError(f"Commit failed: {exc}") from exc

    def _rollback(self) -> None:
        # A failed COMMIT leaves the transaction open.
        try:
            self._conn.execute("ROLLBACK")
        except sqlite3.Error:
            logger.exception("Rollback failed.")

    def get_bucket(self, day: date) -> dict[str, Any]:
        row = self._fetchone("SELECT payload FROM day_buckets WHERE day = ?", (day.isoformat(),))
        return json.loads(row["payload"]) if row else {}

    def put_bucket(self, day: date, payload: dict[str, Any]) -> None:
        self._execute(
            """
            INSERT INTO day_buckets (day, payload) VALUES (?, ?)
            ON CONFLICT(day) DO UPDATE SET payload = excluded.payload
            """,
            (day.isoformat(), json.dumps(payload)),
        )

    def bucket_days(self) -> list[date]:
        with self._lock:
            try:
                rows = self._conn.execute("SELECT day FROM day_buckets ORDER BY day").fetchall()
            except sqlite3.Error as exc:
                raise StorageError(f"Cannot list day buckets: {exc}") from exc
        return [date.fromisoformat(row["day"]) for row in rows]

    def delete_buckets(self, days: list[date]) -> None:
        if not days:
            return
        with self._lock:
            try:
                self._conn.executemany(
                    "DELETE FROM day_buckets WHERE day = ?",
                    [(day.isoformat(),) for day in days],
                )
            except sqlite3.Error as exc:
                raise StorageError(f"Cannot delete day buckets: {exc}") from exc

    def get_setting(self, key: str) -> Optional[Any]:
        row = self._fetchone("SELECT value FROM settings WHERE key = ?", (key,))
        return json.loads(row["value"]) if row else None

    def put_setting(self, key: str, value: Any) -> None:
        self._execute(
            """
            INSERT INTO settings (key, value) VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value
            """,
            (key, json.dumps(value)),
        )

    def dump(self) -> dict[str, Any]:
        """Return every stored key, day buckets prefixed with ``timeData_``."""
        with self._lock:
            try:
                buckets = self._conn.execute("SELECT day, payload FROM day_buckets").fetchall()
                settings = self._conn.execute("SELECT key, value FROM settings").fetchall()
            except sqlite3.Error as exc:
                raise StorageError(f"Cannot read local store: {exc}") from exc
        data: dict[str, Any] = {row["key"]: json.loads(row["value"]) for row in settings}
        for row in buckets:
            data[f"timeData_{row['day']}"] = json.loads(row["payload"])
        return data

    def clear(self) -> None:
        with self._lock:
            try:
                self._conn.executescript("DELETE FROM day_buckets; DELETE FROM settings;")
            except sqlite3.Error as exc:
                raise StorageError(f"Cannot clear local store: {exc}") from exc

    def _fetchone(self, sql: str, params: tuple[Any, ...]) -> Optional[sqlite3.Row]:
        with self._lock:
            try:
                return self._conn.execute(sql, params).fetchone()
            except sqlite3.Error as exc:
                raise StorageError(f"Local store read failed: {exc}") from exc

    def _execute(self, sql: str, params: tuple[Any, ...]) -> None:
        with self._lock:
            try:
                self._conn.execute(sql, params)
            except sqlite3.Error as exc:
                raise StorageError(f"Local store write failed: {exc}") from exc
