"""Turns browser focus and navigation signals into timed sessions."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional, Union

from .accumulator import LocalAggregator
from .classifier import CategoryConfig, classify
from .config import TrackerSettings
from .errors import ValidationError
from .models import FinalizedSession, Session
from .normalization import extract_domain, normalize_title
from .sync import RemoteSync

logger = logging.getLogger(__name__)


# Signals delivered by the host browser.


@dataclass(frozen=True, slots=True)
class FocusGained:
    tab_id: Optional[int]
    url: Optional[str]
    title: Optional[str] = None


@dataclass(frozen=True, slots=True)
class FocusLost:
    pass


@dataclass(frozen=True, slots=True)
class Navigated:
    tab_id: Optional[int]
    url: Optional[str]
    title: Optional[str] = None


@dataclass(frozen=True, slots=True)
class BrowserFocusLost:
    pass


@dataclass(frozen=True, slots=True)
class BrowserFocusGained:
    tab_id: Optional[int]
    url: Optional[str]
    title: Optional[str] = None


Signal = Union[FocusGained, FocusLost, Navigated, BrowserFocusLost, BrowserFocusGained]

_SIGNAL_TYPES: dict[str, type] = {
    "focusGained": FocusGained,
    "focusLost": FocusLost,
    "navigated": Navigated,
    "browserFocusLost": BrowserFocusLost,
    "browserFocusGained": BrowserFocusGained,
}


def parse_signal(payload: dict[str, Any]) -> Signal:
    """Build a signal from a host message such as ``{"type": "focusGained", ...}``."""
    kind = payload.get("type")
    signal_cls = _SIGNAL_TYPES.get(kind) if isinstance(kind, str) else None
    if signal_cls is None:
        raise ValidationError("type", f"unknown signal type {kind!r}")
    if signal_cls in (FocusLost, BrowserFocusLost):
        return signal_cls()
    tab_id = payload.get("tabId")
    if tab_id is not None and not isinstance(tab_id, int):
        raise ValidationError("tabId", "must be an integer")
    return signal_cls(tab_id=tab_id, url=payload.get("url"), title=payload.get("title"))


# Tracker states.


@dataclass(frozen=True, slots=True)
class Idle:
    @property
    def is_open(self) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class Tracking:
    session: Session

    @property
    def is_open(self) -> bool:
        return True


TrackerState = Union[Idle, Tracking]

IDLE = Idle()


@dataclass(frozen=True, slots=True)
class Transition:
    state: TrackerState
    closed: Optional[FinalizedSession] = None


def _close(
    state: TrackerState, now: datetime, threshold: timedelta
) -> Optional[FinalizedSession]:
    if not isinstance(state, Tracking):
        return None
    session = state.session
    elapsed = (now - session.started_at).total_seconds()
    duration = math.floor(max(elapsed, 0.0))
    if duration < threshold.total_seconds():
        logger.debug("Discarded %.2fs on %s", elapsed, session.domain)
        return None
    return FinalizedSession(
        domain=session.domain,
        url=session.url,
        title=session.title,
        duration_seconds=duration,
        ended_at=now,
    )


def _focus(
    state: TrackerState,
    tab_id: Optional[int],
    url: Optional[str],
    title: Optional[str],
    now: datetime,
    threshold: timedelta,
) -> Transition:
    domain = extract_domain(url)
    title = normalize_title(title)
    if isinstance(state, Tracking) and domain == state.session.domain:
        # Same domain: keep the interval running, refresh what the tab shows.
        session = state.session
        refreshed = Session(
            domain=session.domain,
            url=url or session.url,
            title=title or session.title,
            started_at=session.started_at,
            tab_id=tab_id if tab_id is not None else session.tab_id,
        )
        return Transition(Tracking(refreshed))

    closed = _close(state, now, threshold)
    if domain is None or url is None:
        return Transition(IDLE, closed)
    opened = Session(domain=domain, url=url, title=title, started_at=now, tab_id=tab_id)
    return Transition(Tracking(opened), closed)


def transition(
    state: TrackerState,
    signal: Signal,
    now: datetime,
    threshold: timedelta = timedelta(seconds=1),
) -> Transition:
    """Apply one signal to ``state``.

    Returns the next state and, when a session ended with at least
    ``threshold`` seconds, the finalized session. Closing an idle tracker is a
    no-op, and untrackable URLs never open a session.
    """
    if isinstance(signal, (FocusLost, BrowserFocusLost)):
        return Transition(IDLE, _close(state, now, threshold))
    if isinstance(signal, (FocusGained, BrowserFocusGained, Navigated)):
        return _focus(state, signal.tab_id, signal.url, signal.title, now, threshold)
    raise TypeError(f"Unsupported signal: {signal!r}")


class SessionTracker:
    """Owns the tracker state and delivers closed sessions downstream.

    Local accumulation always happens first; the remote copy is dispatched
    afterwards and never awaited. The category lists are reloaded for every
    closed session so edits made while tracking apply to the next close.
    """

    def __init__(
        self,
        aggregator: LocalAggregator,
        load_categories: Callable[[], CategoryConfig],
        settings: Optional[TrackerSettings] = None,
        sync: Optional[RemoteSync] = None,
    ) -> None:
        self.aggregator = aggregator
        self.load_categories = load_categories
        self.settings = settings or TrackerSettings()
        self.sync = sync
        self.state: TrackerState = IDLE

    def handle(self, signal: Signal, now: Optional[datetime] = None) -> Optional[FinalizedSession]:
        now = now or datetime.now(timezone.utc)
        result = transition(self.state, signal, now, self.settings.activation_threshold)
        self.state = result.state
        if isinstance(result.state, Tracking) and result.state.session.started_at == now:
            logger.info("Tracking started: %s", result.state.session.domain)
        if result.closed is not None:
            self._deliver(result.closed)
        return result.closed

    def flush(self, now: Optional[datetime] = None) -> Optional[FinalizedSession]:
        """Close any open session, e.g. before shutting down."""
        return self.handle(FocusLost(), now)

    def status(self) -> dict[str, Any]:
        if isinstance(self.state, Tracking):
            session = self.state.session
            return {
                "is_tracking": True,
                "current_site": session.domain,
                "started_at": session.started_at.isoformat(),
            }
        return {"is_tracking": False, "current_site": None, "started_at": None}

    def _deliver(self, closed: FinalizedSession) -> None:
        category = classify(closed.domain, self.load_categories())
        # StorageError propagates; the state has already advanced.
        self.aggregator.record(
            closed.domain,
            closed.duration_seconds,
            category,
            closed.title,
            now=closed.ended_at,
        )
        if self.sync is None:
            return
        entry = {
            "hostname": closed.domain,
            "duration": closed.duration_seconds,
            "url": closed.url,
            "title": closed.title,
            "category": category.value,
            "userId": self.settings.user_id,
        }
        self.sync.dispatch(entry)
