# workclock/services/host_events.py
"""
Host integration events and the roster session driven by them.

The host (board view, full-screen view, settings panel) does not push
status changes: "now" is wall-clock time. Callers publish typed events on a
HostEventHub and the RosterSession re-projects synchronously in response.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional, Sequence, Type, Union

from workclock.schemas.preferences import Preferences
from workclock.schemas.roster import Person, RosterPage, RosterQuery
from workclock.services.roster_view import build_roster_page, effective_query
from workclock.services.status_projection import project

logger = logging.getLogger(__name__)

ACCOUNT_SETTINGS_INSTANCE = "account_settings_view"


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class HostMode(str, Enum):
    BOARD = "board"
    FULL_SCREEN = "fullScreen"
    SETTINGS = "settings"
    ACCOUNT_SETTINGS = "accountSettings"


class TopLevelView(str, Enum):
    BOARD = "board"
    SETTINGS = "settings"


def parse_host_mode(value: Optional[str]) -> Optional[HostMode]:
    """Map a raw mode string to HostMode; unknown values become None."""
    if not value:
        return None
    try:
        return HostMode(value)
    except ValueError:
        logger.debug("Unknown host mode %r", value)
        return None


def select_view(mode: Optional[HostMode], instance_type: Optional[str] = None) -> TopLevelView:
    """
    Settings panel for the settings modes, the roster for everything else
    (including an unknown/undefined mode).
    """
    if mode in (HostMode.SETTINGS, HostMode.ACCOUNT_SETTINGS):
        return TopLevelView.SETTINGS
    if instance_type == ACCOUNT_SETTINGS_INSTANCE:
        return TopLevelView.SETTINGS
    return TopLevelView.BOARD


@dataclass
class ContextChanged:
    mode: Optional[HostMode] = None
    instance_type: Optional[str] = None
    at: datetime = field(default_factory=_utc_now)


@dataclass
class FocusRegained:
    at: datetime = field(default_factory=_utc_now)


@dataclass
class TimerTick:
    at: datetime = field(default_factory=_utc_now)


HostEvent = Union[ContextChanged, FocusRegained, TimerTick]
HostEventHandler = Callable[[HostEvent], None]


class HostEventHub:
    """
    Simple, synchronous dispatcher for host events.

    Handlers are wrapped in try/except so one failing subscriber does not
    stop the others from being notified.
    """

    def __init__(self) -> None:
        self._handlers: List[tuple[Optional[Type], HostEventHandler]] = []

    def subscribe(
        self,
        handler: HostEventHandler,
        event_type: Optional[Type] = None,
    ) -> None:
        """
        Subscribe to events, optionally only to one event class.
        """
        self._handlers.append((event_type, handler))
        logger.debug("Subscribed handler %r to %s", handler, event_type or "all events")

    def unsubscribe(self, handler: HostEventHandler) -> None:
        self._handlers = [(t, h) for t, h in self._handlers if h != handler]

    def publish(self, event: HostEvent) -> None:
        logger.debug("Publishing host event %s", type(event).__name__)

        for event_type, handler in list(self._handlers):
            if event_type is not None and not isinstance(event, event_type):
                continue
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Error in host event handler %r for %s", handler, type(event).__name__
                )


class RosterSession:
    """
    Caller-side state of one roster view: people, preferences and the
    current (sort, direction, page, page size, online-only) query.

    Every host event triggers a synchronous re-projection at the event's
    instant. The served page is written back into the query, so the page
    index stays clamped when the roster shrinks.
    """

    def __init__(
        self,
        preferences: Preferences,
        persons: Sequence[Person] = (),
        query: Optional[RosterQuery] = None,
    ) -> None:
        self.preferences = preferences
        self.persons: List[Person] = list(persons)
        self.query = effective_query(query, preferences)
        self.view = TopLevelView.BOARD
        self.page: Optional[RosterPage] = None

    def attach(self, hub: HostEventHub) -> None:
        hub.subscribe(self.handle)

    def detach(self, hub: HostEventHub) -> None:
        hub.unsubscribe(self.handle)

    def set_persons(self, persons: Sequence[Person]) -> None:
        self.persons = list(persons)

    def update_query(self, **changes) -> RosterQuery:
        """
        Change sort/paging/filter fields; sorting or filtering resets to page 1
        unless a page is given explicitly.
        """
        if "page" not in changes and set(changes) & {"sort_criteria", "sort_direction", "online_only", "page_size"}:
            changes["page"] = 1
        self.query = self.query.model_copy(update=changes)
        return self.query

    def refresh(self, now: Optional[datetime] = None) -> RosterPage:
        now = now or _utc_now()
        views = project(self.persons, self.preferences, now)
        self.page = build_roster_page(views, self.query, generated_at=now)
        self.query = self.query.model_copy(update={"page": self.page.page})
        return self.page

    def handle(self, event: HostEvent) -> None:
        if isinstance(event, ContextChanged):
            self.view = select_view(event.mode, event.instance_type)
        self.refresh(event.at)
