"""Tests for runtime settings."""

from datetime import timedelta

from tab_tracker.config import TrackerSettings


def test_defaults():
    settings = TrackerSettings()
    assert settings.activation_threshold == timedelta(seconds=1)
    assert settings.retention_days == 30
    assert settings.purge_interval == timedelta(hours=24)
    assert settings.sync_url is None


def test_from_options_normalizes_inputs():
    settings = TrackerSettings.from_options(
        sync_url="http://localhost:3000/", user_id="", threshold_seconds=0.2
    )
    assert settings.sync_url == "http://localhost:3000"
    assert settings.user_id is None
    assert settings.activation_threshold == timedelta(seconds=1)
