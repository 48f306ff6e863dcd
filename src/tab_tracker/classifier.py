"""Hostname classification into productivity categories."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from .models import Category
from .normalization import normalize_hostname

DEFAULT_PRODUCTIVE: tuple[str, ...] = (
    "github.com",
    "stackoverflow.com",
    "docs.google.com",
    "notion.so",
    "trello.com",
    "asana.com",
    "slack.com",
    "zoom.us",
    "figma.com",
    "codepen.io",
    "developer.mozilla.org",
    "w3schools.com",
)

DEFAULT_UNPRODUCTIVE: tuple[str, ...] = (
    "facebook.com",
    "twitter.com",
    "instagram.com",
    "youtube.com",
    "reddit.com",
    "tiktok.com",
    "netflix.com",
    "twitch.tv",
    "pinterest.com",
    "snapchat.com",
)

PRODUCTIVE_KEYWORDS: tuple[str, ...] = ("docs", "learn", "tutorial", "course", "wiki", "academy")
DISTRACTION_KEYWORDS: tuple[str, ...] = ("social", "game", "video", "stream", "entertainment")


@dataclass(slots=True)
class CategoryConfig:
    """Two disjoint hostname lists; anything unlisted is neutral."""

    productive: list[str] = field(default_factory=list)
    unproductive: list[str] = field(default_factory=list)

    @classmethod
    def default(cls) -> "CategoryConfig":
        return cls(list(DEFAULT_PRODUCTIVE), list(DEFAULT_UNPRODUCTIVE))

    def add(self, category: Category, hostname: str) -> None:
        """Add ``hostname`` to a list, removing it from the other one."""
        site = normalize_hostname(hostname)
        if not site:
            return
        target, other = self._lists(category)
        if site in other:
            other.remove(site)
        if site not in target:
            target.append(site)

    def remove(self, category: Category, hostname: str) -> None:
        site = normalize_hostname(hostname)
        target, _ = self._lists(category)
        if site in target:
            target.remove(site)

    def _lists(self, category: Category) -> tuple[list[str], list[str]]:
        if category is Category.PRODUCTIVE:
            return self.productive, self.unproductive
        if category is Category.UNPRODUCTIVE:
            return self.unproductive, self.productive
        raise ValueError("Only productive and unproductive lists can be edited")

    def to_payload(self) -> dict[str, list[str]]:
        return {"productive": list(self.productive), "unproductive": list(self.unproductive)}

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> "CategoryConfig":
        config = cls()
        for site in data.get("unproductive", []):
            config.add(Category.UNPRODUCTIVE, site)
        # Loaded second so a site stored in both lists ends up productive.
        for site in data.get("productive", []):
            config.add(Category.PRODUCTIVE, site)
        return config


def _matches(hostname: str, sites: Iterable[str]) -> bool:
    return any(site and site in hostname for site in sites)


def classify(hostname: str, config: CategoryConfig) -> Category:
    """Return the category for ``hostname``.

    Explicit list membership wins over keyword heuristics, and the productive
    list is consulted before the unproductive one.
    """
    host = (hostname or "").strip().lower()
    if not host:
        return Category.NEUTRAL
    if _matches(host, config.productive):
        return Category.PRODUCTIVE
    if _matches(host, config.unproductive):
        return Category.UNPRODUCTIVE
    if any(keyword in host for keyword in PRODUCTIVE_KEYWORDS):
        return Category.PRODUCTIVE
    if any(keyword in host for keyword in DISTRACTION_KEYWORDS):
        return Category.UNPRODUCTIVE
    return Category.NEUTRAL


CATEGORIES_KEY = "categories"


def load_category_config(store: Any) -> CategoryConfig:
    """Read the persisted lists, seeding the defaults on first use."""
    payload = store.get_setting(CATEGORIES_KEY)
    if payload is None:
        config = CategoryConfig.default()
        store.put_setting(CATEGORIES_KEY, config.to_payload())
        return config
    return CategoryConfig.from_payload(payload)


def save_category_config(store: Any, config: CategoryConfig) -> None:
    store.put_setting(CATEGORIES_KEY, config.to_payload())
