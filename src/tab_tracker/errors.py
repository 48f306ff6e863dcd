"""Exception hierarchy for the tab tracker."""

from __future__ import annotations


class TrackerError(Exception):
    """Base exception for all tab tracker errors."""


class ValidationError(TrackerError):
    """Malformed input to a create, update or query operation."""

    def __init__(self, field: str, constraint: str) -> None:
        super().__init__(f"{field}: {constraint}")
        self.field = field
        self.constraint = constraint


class NotFoundError(TrackerError):
    """Update or delete target does not exist."""


class StorageError(TrackerError):
    """A local persistence read or write failed."""


class SyncError(TrackerError):
    """The remote store was unreachable or rejected an entry."""

    def __init__(self, message: str, reason: str = "unreachable") -> None:
        super().__init__(message)
        self.reason = reason
