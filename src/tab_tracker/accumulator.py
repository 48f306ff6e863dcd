"""Per-day, per-domain running totals kept on the tracking machine."""

from __future__ import annotations

import logging
import threading
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from .errors import StorageError
from .models import Category, DomainTotals
from .store import LocalStore

logger = logging.getLogger(__name__)


def utc_today(now: Optional[datetime] = None) -> date:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.date()


class LocalAggregator:
    """Accumulates finalized sessions into day buckets.

    Not deduplicating: every call to ``record`` adds to the totals, so each
    session must be recorded at most once.
    """

    def __init__(self, store: LocalStore) -> None:
        self.store = store

    def record(
        self,
        domain: str,
        duration: int,
        category: Category,
        title: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> DomainTotals:
        now = now or datetime.now(timezone.utc)
        day = utc_today(now)
        with self.store.transaction():
            bucket = self.store.get_bucket(day)
            raw = bucket.get(domain)
            if raw is None:
                totals = DomainTotals(
                    total_time=0,
                    visits=0,
                    category=category,
                    last_visit=now,
                    title=title or domain,
                )
            else:
                totals = DomainTotals.from_payload(raw)
            totals.total_time += duration
            totals.visits += 1
            totals.last_visit = now
            bucket[domain] = totals.to_payload()
            self.store.put_bucket(day, bucket)
        logger.debug("Recorded %ss on %s (%s)", duration, domain, category.value)
        return totals

    def get_day(self, day: date) -> dict[str, DomainTotals]:
        bucket = self.store.get_bucket(day)
        return {domain: DomainTotals.from_payload(raw) for domain, raw in bucket.items()}

    def purge_older_than(self, days: int = 30, today: Optional[date] = None) -> list[date]:
        """Remove day buckets dated before ``today - days``."""
        cutoff = (today or utc_today()) - timedelta(days=days)
        stale = [day for day in self.store.bucket_days() if day < cutoff]
        self.store.delete_buckets(stale)
        if stale:
            logger.info("Removed %d day buckets older than %s", len(stale), cutoff)
        return stale


class PurgeScheduler:
    """Run ``purge_older_than`` periodically in a background thread."""

    def __init__(self, aggregator: LocalAggregator, retention_days: int, interval: timedelta) -> None:
        self._aggregator = aggregator
        self._retention_days = retention_days
        self._interval = interval
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None

    def start(self) -> None:
        with self._lock:
            if self._thread and self._thread.is_alive():
                return
            stop_event = threading.Event()
            thread = threading.Thread(target=self._run, args=(stop_event,), daemon=True)
            self._thread = thread
            self._stop_event = stop_event
            thread.start()
            logger.info("Purge scheduler started.")

    def stop(self) -> None:
        thread: Optional[threading.Thread] = None
        with self._lock:
            if not self._thread or not self._thread.is_alive() or not self._stop_event:
                return
            self._stop_event.set()
            thread = self._thread
            self._thread = None
            self._stop_event = None
        if thread:
            thread.join(timeout=10)
            logger.info("Purge scheduler stopped.")

    def is_running(self) -> bool:
        with self._lock:
            return bool(self._thread and self._thread.is_alive())

    def _run(self, stop_event: threading.Event) -> None:
        interval = self._interval.total_seconds()
        while True:
            try:
                self._aggregator.purge_older_than(self._retention_days)
            except StorageError:
                logger.exception("Scheduled purge failed.")
            if stop_event.wait(interval):
                break
