"""Tests for hostname classification and category lists."""

import pytest

from tab_tracker.classifier import (
    CATEGORIES_KEY,
    CategoryConfig,
    classify,
    load_category_config,
    save_category_config,
)
from tab_tracker.models import Category


@pytest.fixture
def config():
    return CategoryConfig(productive=["github.com"], unproductive=["facebook.com"])


def test_exact_membership(config):
    assert classify("github.com", config) is Category.PRODUCTIVE
    assert classify("facebook.com", config) is Category.UNPRODUCTIVE


def test_substring_membership(config):
    assert classify("gist.github.com", config) is Category.PRODUCTIVE
    assert classify("m.facebook.com", config) is Category.UNPRODUCTIVE


def test_unlisted_without_keyword_is_neutral(config):
    assert classify("example.org", config) is Category.NEUTRAL


def test_keyword_fallback(config):
    assert classify("docs.rs", config) is Category.PRODUCTIVE
    assert classify("learnxinyminutes.com", config) is Category.PRODUCTIVE
    assert classify("videohub.example", config) is Category.UNPRODUCTIVE
    assert classify("livestream.net", config) is Category.UNPRODUCTIVE


def test_membership_beats_keywords():
    config = CategoryConfig(productive=[], unproductive=["docs.example.com"])
    assert classify("docs.example.com", config) is Category.UNPRODUCTIVE


def test_productive_checked_first_when_in_both_lists():
    config = CategoryConfig(productive=["both.com"], unproductive=["both.com"])
    assert classify("both.com", config) is Category.PRODUCTIVE


def test_total_over_odd_inputs(config):
    assert classify("", config) is Category.NEUTRAL
    assert classify("   ", config) is Category.NEUTRAL
    assert classify("GITHUB.COM", config) is Category.PRODUCTIVE


def test_add_moves_between_lists(config):
    config.add(Category.UNPRODUCTIVE, "github.com")
    assert "github.com" not in config.productive
    assert "github.com" in config.unproductive
    assert classify("github.com", config) is Category.UNPRODUCTIVE


def test_add_is_not_duplicated(config):
    config.add(Category.PRODUCTIVE, "www.GitHub.com")
    assert config.productive == ["github.com"]


def test_remove(config):
    config.remove(Category.PRODUCTIVE, "github.com")
    config.remove(Category.PRODUCTIVE, "absent.com")
    assert config.productive == []


def test_neutral_list_cannot_be_edited(config):
    with pytest.raises(ValueError):
        config.add(Category.NEUTRAL, "example.com")


def test_from_payload_keeps_lists_disjoint():
    config = CategoryConfig.from_payload({"productive": ["a.com"], "unproductive": ["a.com", "b.com"]})
    assert config.productive == ["a.com"]
    assert config.unproductive == ["b.com"]


def test_defaults_seeded_on_first_load(store):
    config = load_category_config(store)
    assert "github.com" in config.productive
    assert "youtube.com" in config.unproductive
    assert store.get_setting(CATEGORIES_KEY) == config.to_payload()


def test_saved_config_round_trips(store):
    config = CategoryConfig.default()
    config.add(Category.PRODUCTIVE, "youtube.com")
    save_category_config(store, config)
    loaded = load_category_config(store)
    assert "youtube.com" in loaded.productive
    assert "youtube.com" not in loaded.unproductive
