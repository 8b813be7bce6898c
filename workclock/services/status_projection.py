# workclock/services/status_projection.py
from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, List

from workclock.core.errors import InvalidTimeZoneError
from workclock.schemas.preferences import Preferences
from workclock.schemas.roster import Person, PersonStatusView, PresenceStatus
from workclock.services.override_resolver import resolve_effective_schedule
from workclock.services.time_math import (
    TIME_PLACEHOLDER,
    compute_progress,
    get_zone,
    resolve_status,
)

logger = logging.getLogger(__name__)


def project_person(person: Person, prefs: Preferences, now: datetime) -> PersonStatusView:
    """
    Build the status view of a single person at `now`.

    An unresolvable timezone degrades the person to OFF with the placeholder
    time and zero progress; the error is logged, not raised.
    """
    effective = resolve_effective_schedule(person, prefs)

    base = dict(
        person_id=person.id,
        name=person.name,
        avatar_url=person.avatar_url,
        effective_timezone=effective.timezone,
        timezone_was_assumed=effective.was_assumed,
        start_hour=effective.start_hour,
        end_hour=effective.end_hour,
    )

    if effective.timezone:
        try:
            get_zone(effective.timezone)
        except InvalidTimeZoneError as exc:
            logger.warning("InvalidTimeZone for person %s: %s", person.id, exc)
            return PersonStatusView(
                display_time=TIME_PLACEHOLDER,
                status=PresenceStatus.OFF,
                progress=0.0,
                **base,
            )

    result = resolve_status(effective.timezone, effective.schedule, prefs.work_days, now)

    progress = compute_progress(effective.timezone, effective.schedule, now)

    return PersonStatusView(
        display_time=result.time_label,
        status=result.status,
        progress=progress,
        **base,
    )


def project(persons: Iterable[Person], prefs: Preferences, now: datetime) -> List[PersonStatusView]:
    """
    Resolve every person's status view at `now`, in input order.

    Pure and O(n): each person is handled independently, so one bad zone
    never aborts the whole projection.
    """
    return [project_person(person, prefs, now) for person in persons]
