"""Tests for aggregate queries."""

from datetime import datetime, timedelta, timezone

import pytest

from tab_tracker.analytics import (
    daily_breakdown,
    page_bounds,
    paginate,
    productivity_score,
    summarize,
    top_websites,
)
from tab_tracker.errors import ValidationError
from tab_tracker.models import Category, TimeEntry

T0 = datetime(2024, 3, 10, 9, 0, tzinfo=timezone.utc)


def _entry(hostname, duration, category, timestamp=T0, entry_id=None):
    return TimeEntry(
        hostname=hostname,
        duration=duration,
        category=category,
        timestamp=timestamp,
        id=entry_id,
    )


def test_summary_scenario():
    entries = [
        _entry("github.com", 120, Category.PRODUCTIVE),
        _entry("facebook.com", 60, Category.UNPRODUCTIVE),
    ]
    summary = summarize(entries)
    assert summary["totalTime"] == 180
    assert summary["productiveTime"] == 120
    assert summary["productivityScore"] == 67
    assert summary["categoryBreakdown"]["productive"] == {
        "totalTime": 120,
        "entryCount": 1,
        "uniqueWebsiteCount": 1,
    }
    assert "neutral" not in summary["categoryBreakdown"]


def test_empty_summary():
    summary = summarize([])
    assert summary["totalTime"] == 0
    assert summary["productivityScore"] == 0
    assert summary["categoryBreakdown"] == {}
    assert summary["topWebsites"] == []


@pytest.mark.parametrize(
    "productive,total,expected",
    [(0, 0, 0), (0, 10, 0), (10, 10, 100), (1, 8, 13), (1, 200, 1), (1, 201, 0)],
)
def test_productivity_score_bounds(productive, total, expected):
    score = productivity_score(productive, total)
    assert score == expected
    assert 0 <= score <= 100


def test_unique_hostnames_counted_per_category():
    entries = [
        _entry("github.com", 10, Category.PRODUCTIVE),
        _entry("github.com", 10, Category.PRODUCTIVE),
        _entry("gitlab.com", 5, Category.PRODUCTIVE),
    ]
    breakdown = summarize(entries)["categoryBreakdown"]["productive"]
    assert breakdown == {"totalTime": 25, "entryCount": 3, "uniqueWebsiteCount": 2}


def test_top_websites_sorted_and_limited():
    entries = [_entry(f"site{i}.com", i + 1, Category.NEUTRAL) for i in range(12)]
    top = top_websites(entries)
    assert len(top) == 10
    assert top[0] == {"hostname": "site11.com", "category": "neutral", "totalTime": 12, "entryCount": 1}
    assert top[-1]["hostname"] == "site2.com"


def test_top_websites_ties_keep_first_appearance():
    entries = [
        _entry("b.com", 30, Category.NEUTRAL),
        _entry("a.com", 30, Category.NEUTRAL),
        _entry("c.com", 10, Category.NEUTRAL),
        _entry("c.com", 20, Category.NEUTRAL),
    ]
    assert [site["hostname"] for site in top_websites(entries)] == ["b.com", "a.com", "c.com"]


def test_top_websites_group_by_hostname_and_category():
    entries = [
        _entry("youtube.com", 30, Category.UNPRODUCTIVE),
        _entry("youtube.com", 20, Category.PRODUCTIVE),
    ]
    assert len(top_websites(entries)) == 2


def test_daily_breakdown():
    entries = [
        _entry("reddit.com", 30, Category.UNPRODUCTIVE, T0 + timedelta(days=1)),
        _entry("github.com", 10, Category.PRODUCTIVE, T0),
        _entry("github.com", 15, Category.PRODUCTIVE, T0 + timedelta(hours=1)),
        _entry("example.org", 5, Category.NEUTRAL, T0),
        _entry("docs.rs", 7, Category.PRODUCTIVE, T0 + timedelta(days=1)),
    ]
    assert daily_breakdown(entries) == [
        {
            "date": "2024-03-10",
            "categories": [
                {"category": "productive", "totalTime": 25, "entryCount": 2},
                {"category": "neutral", "totalTime": 5, "entryCount": 1},
            ],
        },
        {
            "date": "2024-03-11",
            "categories": [
                {"category": "productive", "totalTime": 7, "entryCount": 1},
                {"category": "unproductive", "totalTime": 30, "entryCount": 1},
            ],
        },
    ]


def test_daily_breakdown_uses_utc_days():
    local = datetime(2024, 3, 10, 22, 0, tzinfo=timezone(timedelta(hours=-5)))
    assert daily_breakdown([_entry("a.com", 1, Category.NEUTRAL, local)])[0]["date"] == "2024-03-11"


def _window(count, start=1):
    return [_entry("a.com", 1, Category.NEUTRAL, T0, entry_id=start + i) for i in range(count)]


def test_page_bounds():
    assert page_bounds(1, 50) == (0, 50)
    assert page_bounds(3, 50) == (100, 50)
    assert page_bounds(2, 500) == (100, 100)
    assert page_bounds(1, 0) == (0, 1)


def test_page_bounds_rejects_page_zero():
    with pytest.raises(ValidationError):
        page_bounds(0)


def test_pagination_first_page():
    page = paginate(_window(50), total=120, page=1, limit=50)
    assert len(page["entries"]) == 50
    assert page["pagination"] == {
        "currentPage": 1,
        "totalPages": 3,
        "totalEntries": 120,
        "hasNext": True,
        "hasPrev": False,
    }


def test_pagination_last_page():
    page = paginate(_window(20), total=120, page=3, limit=50)
    assert page["pagination"]["hasNext"] is False
    assert page["pagination"]["hasPrev"] is True


def test_pagination_clamps_limit():
    assert paginate(_window(100), total=120, limit=500)["pagination"]["totalPages"] == 2


def test_pagination_past_the_end():
    page = paginate([], total=3, page=5, limit=50)
    assert page["entries"] == []
    assert page["pagination"]["hasNext"] is False
    assert page["pagination"]["totalPages"] == 1


def test_pagination_of_nothing():
    assert paginate([], total=0)["pagination"]["totalPages"] == 0
