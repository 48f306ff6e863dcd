"""Shared fixtures."""

from datetime import datetime, timezone

import pytest

from tab_tracker.accumulator import LocalAggregator
from tab_tracker.store import LocalStore


@pytest.fixture
def store(tmp_path):
    local = LocalStore(tmp_path / "local.sqlite3")
    yield local
    local.close()


@pytest.fixture
def aggregator(store):
    return LocalAggregator(store)


@pytest.fixture
def t0():
    return datetime(2024, 3, 10, 9, 0, 0, tzinfo=timezone.utc)
