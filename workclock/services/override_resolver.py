# workclock/services/override_resolver.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from workclock.schemas.preferences import Preferences, UserOverride
from workclock.schemas.roster import Person
from workclock.services.time_math import Schedule

logger = logging.getLogger(__name__)


class TimezoneSource(str, Enum):
    OVERRIDE = "override"
    PERSON = "person"
    LEGACY = "legacy"
    DEFAULT = "default"


@dataclass(frozen=True)
class EffectiveSchedule:
    timezone: str
    schedule: Schedule
    start_hour: str
    end_hour: str
    source: TimezoneSource

    @property
    def was_assumed(self) -> bool:
        """
        True when neither an override nor the person record supplied the zone.
        """
        return self.source in (TimezoneSource.LEGACY, TimezoneSource.DEFAULT)


def _lookup(mapping, person: Person):
    """
    Find a person's entry in a mapping keyed by id or display name.

    The id key always wins; a name-keyed match is a deprecated fallback.
    """
    if not mapping:
        return None
    if person.id in mapping:
        return mapping[person.id]
    if person.name and person.name in mapping:
        logger.debug("Using name-keyed entry for person %s (%r)", person.id, person.name)
        return mapping[person.name]
    return None


def find_override(person: Person, prefs: Preferences) -> UserOverride | None:
    return _lookup(prefs.user_overrides, person)


def resolve_effective_schedule(person: Person, prefs: Preferences) -> EffectiveSchedule:
    """
    Merge the default schedule with the person's override.

    Timezone precedence, highest first:
    1) override timezone
    2) timezone on the person record (directory)
    3) legacy `userTimezones` mapping
    4) default timezone

    Start/end come from the override when set, else from the defaults.
    """
    override = find_override(person, prefs)

    if override is not None and override.timezone:
        timezone, source = override.timezone, TimezoneSource.OVERRIDE
    elif person.timezone:
        timezone, source = person.timezone, TimezoneSource.PERSON
    else:
        legacy = _lookup(prefs.user_timezones, person)
        if legacy:
            timezone, source = legacy, TimezoneSource.LEGACY
        else:
            timezone, source = prefs.timezone or "", TimezoneSource.DEFAULT

    start_hour = (override.start_hour if override else None) or prefs.start_hour
    end_hour = (override.end_hour if override else None) or prefs.end_hour

    return EffectiveSchedule(
        timezone=timezone,
        schedule=Schedule.from_clock(start_hour, end_hour),
        start_hour=start_hour,
        end_hour=end_hour,
        source=source,
    )
