"""Aggregate queries over the time entry log.

Every function here is a plain group-by/reduce pass over entries already
filtered by :class:`tab_tracker.db.EntryFilter`, so the same code serves the
HTTP API and the CLI.
"""

from __future__ import annotations

import math
from collections import defaultdict
from datetime import timezone
from typing import Any, Iterable, Sequence

from .errors import ValidationError
from .models import Category, TimeEntry

TOP_WEBSITES_LIMIT = 10
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50

_CATEGORY_ORDER = [Category.PRODUCTIVE, Category.UNPRODUCTIVE, Category.NEUTRAL]


def productivity_score(productive_time: int, total_time: int) -> int:
    """Percentage of tracked time that was productive, rounded half up."""
    if total_time <= 0:
        return 0
    return math.floor(productive_time * 100 / total_time + 0.5)


def category_breakdown(entries: Iterable[TimeEntry]) -> dict[str, dict[str, int]]:
    totals: dict[Category, int] = defaultdict(int)
    counts: dict[Category, int] = defaultdict(int)
    hostnames: dict[Category, set[str]] = defaultdict(set)
    for entry in entries:
        totals[entry.category] += entry.duration
        counts[entry.category] += 1
        hostnames[entry.category].add(entry.hostname)
    return {
        category.value: {
            "totalTime": totals[category],
            "entryCount": counts[category],
            "uniqueWebsiteCount": len(hostnames[category]),
        }
        for category in _CATEGORY_ORDER
        if category in counts
    }


def top_websites(entries: Iterable[TimeEntry], limit: int = TOP_WEBSITES_LIMIT) -> list[dict[str, Any]]:
    """Hostname/category pairs with the most time.

    Ties keep the order in which each pair first appears in ``entries``;
    ``fetch_entries`` yields entries by ascending timestamp, so among equal
    totals the earliest-seen site comes first.
    """
    totals: dict[tuple[str, Category], int] = {}
    counts: dict[tuple[str, Category], int] = {}
    for entry in entries:
        key = (entry.hostname, entry.category)
        totals[key] = totals.get(key, 0) + entry.duration
        counts[key] = counts.get(key, 0) + 1
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [
        {
            "hostname": hostname,
            "category": category.value,
            "totalTime": total,
            "entryCount": counts[(hostname, category)],
        }
        for (hostname, category), total in ranked[:limit]
    ]


def summarize(entries: Sequence[TimeEntry]) -> dict[str, Any]:
    breakdown = category_breakdown(entries)
    total_time = sum(item["totalTime"] for item in breakdown.values())
    productive_time = breakdown.get(Category.PRODUCTIVE.value, {}).get("totalTime", 0)
    return {
        "totalTime": total_time,
        "productiveTime": productive_time,
        "productivityScore": productivity_score(productive_time, total_time),
        "categoryBreakdown": breakdown,
        "topWebsites": top_websites(entries),
    }


def daily_breakdown(entries: Iterable[TimeEntry]) -> list[dict[str, Any]]:
    """Per-day category subtotals, days ascending, calendar days in UTC."""
    totals: dict[tuple[str, Category], int] = defaultdict(int)
    counts: dict[tuple[str, Category], int] = defaultdict(int)
    for entry in entries:
        day = entry.timestamp.astimezone(timezone.utc).strftime("%Y-%m-%d")
        totals[(day, entry.category)] += entry.duration
        counts[(day, entry.category)] += 1

    days: dict[str, list[dict[str, Any]]] = defaultdict(list)
    for day, category in sorted(totals, key=lambda key: (key[0], _CATEGORY_ORDER.index(key[1]))):
        days[day].append(
            {
                "category": category.value,
                "totalTime": totals[(day, category)],
                "entryCount": counts[(day, category)],
            }
        )
    return [{"date": day, "categories": categories} for day, categories in days.items()]


def clamp_limit(limit: int) -> int:
    return max(1, min(limit, MAX_PAGE_SIZE))


def page_bounds(page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> tuple[int, int]:
    """Return the row offset and clamped limit for a 1-based page."""
    if page < 1:
        raise ValidationError("page", "must be an integer >= 1")
    limit = clamp_limit(limit)
    return (page - 1) * limit, limit


def paginate(
    window: Sequence[TimeEntry], total: int, page: int = 1, limit: int = DEFAULT_PAGE_SIZE
) -> dict[str, Any]:
    """Wrap one newest-first page of a ``total``-sized result with its metadata."""
    skip, limit = page_bounds(page, limit)
    return {
        "entries": list(window),
        "pagination": {
            "currentPage": page,
            "totalPages": math.ceil(total / limit),
            "totalEntries": total,
            "hasNext": skip + len(window) < total,
            "hasPrev": page > 1,
        },
    }
