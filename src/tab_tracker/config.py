"""Configuration models and helpers for the tab tracker."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Optional


@dataclass(slots=True)
class TrackerSettings:
    """Runtime configuration for the session tracker and its collaborators."""

    activation_threshold: timedelta = timedelta(seconds=1)
    retention_days: int = 30
    purge_interval: timedelta = timedelta(hours=24)
    sync_url: Optional[str] = None
    sync_timeout: timedelta = timedelta(seconds=10)
    user_id: Optional[str] = None

    @classmethod
    def from_options(
        cls,
        sync_url: Optional[str] = None,
        user_id: Optional[str] = None,
        retention_days: int = 30,
        purge_hours: float = 24.0,
        threshold_seconds: float = 1.0,
        sync_timeout_seconds: float = 10.0,
    ) -> "TrackerSettings":
        sync_url = sync_url.rstrip("/") if sync_url else None
        return cls(
            activation_threshold=timedelta(seconds=max(threshold_seconds, 1.0)),
            retention_days=retention_days,
            purge_interval=timedelta(hours=purge_hours),
            sync_url=sync_url or None,
            sync_timeout=timedelta(seconds=sync_timeout_seconds),
            user_id=user_id or None,
        )
