"""Tests for the local SQLite key-value store."""

from datetime import date

import pytest

from tab_tracker.errors import StorageError
from tab_tracker.store import LocalStore


def test_bucket_round_trip(store):
    store.put_bucket(date(2024, 1, 2), {"a.com": {"total_time": 3}})
    assert store.get_bucket(date(2024, 1, 2)) == {"a.com": {"total_time": 3}}
    store.put_bucket(date(2024, 1, 2), {})
    assert store.get_bucket(date(2024, 1, 2)) == {}


def test_dump_uses_time_data_keys(store):
    store.put_bucket(date(2024, 1, 2), {"a.com": {}})
    store.put_setting("categories", {"productive": [], "unproductive": []})
    dump = store.dump()
    assert dump["timeData_2024-01-02"] == {"a.com": {}}
    assert dump["categories"] == {"productive": [], "unproductive": []}


def test_clear(store):
    store.put_bucket(date(2024, 1, 2), {})
    store.put_setting("x", 1)
    store.clear()
    assert store.dump() == {}


def test_transaction_rolls_back_on_error(store):
    with pytest.raises(RuntimeError):
        with store.transaction():
            store.put_setting("x", 1)
            raise RuntimeError("boom")
    assert store.get_setting("x") is None


def test_unopenable_path_raises_storage_error(tmp_path):
    with pytest.raises(StorageError):
        LocalStore(tmp_path / "missing" / "local.sqlite3")


def test_write_after_close_raises_storage_error(tmp_path):
    local = LocalStore(tmp_path / "local.sqlite3")
    local.close()
    with pytest.raises(StorageError):
        local.put_setting("x", 1)
