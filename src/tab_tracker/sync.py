"""Best-effort forwarding of finalized sessions to the analytics service."""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any, Callable, Optional

import httpx

from .errors import SyncError

logger = logging.getLogger(__name__)

ENTRIES_PATH = "/api/time-entries"


class SyncOutcome(str, Enum):
    OK = "ok"
    UNREACHABLE = "unreachable"
    REJECTED = "rejected"


class RemoteSync:
    """Posts time entries to ``<base_url>/api/time-entries``.

    Failures are logged and dropped: nothing is retried or queued, so the
    remote store is a mirror of the local totals rather than their source.

    Args:
        base_url: Root URL of the analytics service.
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport, mainly for tests.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def send(self, entry: dict[str, Any]) -> SyncOutcome:
        """Send one entry and report what happened; never raises."""
        try:
            self._post(entry)
        except SyncError as exc:
            logger.warning("Sync failed for %s: %s", entry.get("hostname"), exc)
            return SyncOutcome(exc.reason)
        logger.debug("Synced with backend: %s %ss", entry.get("hostname"), entry.get("duration"))
        return SyncOutcome.OK

    def _post(self, entry: dict[str, Any]) -> None:
        url = f"{self.base_url}{ENTRIES_PATH}"
        payload = {key: value for key, value in entry.items() if value is not None}
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(url, json=payload)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise SyncError(f"could not reach {url}: {exc}", SyncOutcome.UNREACHABLE.value) from exc
        if not response.is_success:
            raise SyncError(
                f"backend rejected entry (HTTP {response.status_code})",
                SyncOutcome.REJECTED.value,
            )

    def dispatch(
        self,
        entry: dict[str, Any],
        callback: Optional[Callable[[SyncOutcome], None]] = None,
    ) -> threading.Thread:
        """Send ``entry`` on a detached daemon thread.

        The caller is free to ignore the returned thread; ``callback`` receives
        the outcome once the request settles.
        """
        thread = threading.Thread(
            target=self._send_and_report,
            args=(entry, callback),
            daemon=True,
        )
        thread.start()
        return thread

    def _send_and_report(
        self,
        entry: dict[str, Any],
        callback: Optional[Callable[[SyncOutcome], None]],
    ) -> None:
        outcome = self.send(entry)
        if callback is not None:
            try:
                callback(outcome)
            except Exception:
                logger.exception("Sync callback failed.")
