"""Tests for best-effort remote sync."""

import json
import threading

import httpx

from tab_tracker.sync import RemoteSync, SyncOutcome

ENTRY = {
    "hostname": "github.com",
    "duration": 120,
    "url": "https://github.com/",
    "title": "GitHub",
    "category": "productive",
    "userId": None,
}


def _sync(handler):
    return RemoteSync("http://backend.test/", transport=httpx.MockTransport(handler))


def test_send_posts_entry_without_nulls():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(201, json={"message": "ok"})

    assert _sync(handler).send(ENTRY) is SyncOutcome.OK
    assert seen["url"] == "http://backend.test/api/time-entries"
    assert "userId" not in seen["body"]
    assert seen["body"]["duration"] == 120


def test_non_2xx_is_rejected():
    outcome = _sync(lambda request: httpx.Response(400, json={"error": "Validation failed"})).send(ENTRY)
    assert outcome is SyncOutcome.REJECTED


def test_transport_error_is_unreachable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    assert _sync(handler).send(ENTRY) is SyncOutcome.UNREACHABLE


def test_dispatch_delivers_outcome_to_callback():
    done = threading.Event()
    outcomes = []

    def callback(outcome):
        outcomes.append(outcome)
        done.set()

    thread = _sync(lambda request: httpx.Response(201)).dispatch(ENTRY, callback)
    assert done.wait(5)
    thread.join(5)
    assert outcomes == [SyncOutcome.OK]


def test_dispatch_survives_failing_callback():
    def callback(outcome):
        raise RuntimeError("listener bug")

    thread = _sync(lambda request: httpx.Response(500)).dispatch(ENTRY, callback)
    thread.join(5)
    assert not thread.is_alive()
