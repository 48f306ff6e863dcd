"""Domain models for tracked browsing activity."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class Category(str, Enum):
    PRODUCTIVE = "productive"
    UNPRODUCTIVE = "unproductive"
    NEUTRAL = "neutral"


@dataclass(slots=True)
class Session:
    """A contiguous interval during which one domain holds browser focus."""

    domain: str
    url: str
    title: Optional[str]
    started_at: datetime
    tab_id: Optional[int] = None


@dataclass(frozen=True, slots=True)
class FinalizedSession:
    """Emitted when a session closes with at least the activation threshold."""

    domain: str
    url: str
    title: Optional[str]
    duration_seconds: int
    ended_at: datetime


@dataclass(slots=True)
class TimeEntry:
    """A persisted record of time spent on a hostname."""

    hostname: str
    duration: int
    category: Category
    timestamp: datetime
    url: Optional[str] = None
    title: Optional[str] = None
    user_id: Optional[str] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "hostname": self.hostname,
            "url": self.url,
            "title": self.title,
            "duration": self.duration,
            "category": self.category.value,
            "timestamp": self.timestamp.isoformat(),
            "userId": self.user_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(slots=True)
class DomainTotals:
    """Running totals for one hostname inside a day bucket."""

    total_time: int
    visits: int
    category: Category
    last_visit: datetime
    title: str

    def to_payload(self) -> dict[str, Any]:
        data = asdict(self)
        data["category"] = self.category.value
        data["last_visit"] = self.last_visit.isoformat()
        return data

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "DomainTotals":
        return cls(
            total_time=int(data["total_time"]),
            visits=int(data["visits"]),
            category=Category(data["category"]),
            last_visit=datetime.fromisoformat(data["last_visit"]),
            title=data.get("title") or "",
        )
