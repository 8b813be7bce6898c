# workclock/services/time_math.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone as dt_timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from workclock.core.errors import InvalidTimeZoneError
from workclock.schemas.roster import PresenceStatus

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 1440
LAST_HOUR_MINUTES = 60
TIME_PLACEHOLDER = "—"

WEEKDAYS: tuple[str, ...] = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
DEFAULT_WORK_DAYS: tuple[str, ...] = ("Mon", "Tue", "Wed", "Thu", "Fri")
DEFAULT_START_HOUR = "09:00"
DEFAULT_END_HOUR = "17:00"


@dataclass(frozen=True)
class Schedule:
    """
    Daily work window in minutes since midnight.

    `start == end` means a full-day shift and `end < start` an overnight
    shift wrapping past midnight. Neither shape is rejected.
    """

    start_minute: int
    end_minute: int

    @classmethod
    def from_clock(cls, start: str, end: str) -> "Schedule":
        return cls(start_minute=parse_clock(start), end_minute=parse_clock(end))

    @property
    def is_full_day(self) -> bool:
        return self.start_minute == self.end_minute

    @property
    def is_overnight(self) -> bool:
        return self.end_minute < self.start_minute


@dataclass(frozen=True)
class StatusResult:
    status: PresenceStatus
    time_label: str


def _to_int(value: str) -> int | None:
    try:
        return int(value.strip())
    except (TypeError, ValueError):
        return None


def parse_clock(hhmm: str) -> int:
    """
    Convert "HH:MM" into minutes since midnight.

    Hours are not range-checked and missing/non-numeric minutes count as 0,
    so "25:99" parses to 1599 and "7" to 420.
    """
    parts = str(hhmm).split(":")
    hours = _to_int(parts[0]) or 0
    minutes = _to_int(parts[1]) if len(parts) > 1 else None
    return hours * 60 + (minutes or 0)


def get_zone(timezone: str) -> ZoneInfo:
    """
    Resolve an IANA zone name via the host's zoneinfo database.

    Raises InvalidTimeZoneError for empty or unknown names.
    """
    if not timezone or not isinstance(timezone, str):
        raise InvalidTimeZoneError(str(timezone))
    try:
        return ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError, OSError) as exc:
        raise InvalidTimeZoneError(timezone) from exc


def is_valid_timezone(timezone: str | None) -> bool:
    try:
        get_zone(timezone or "")
    except InvalidTimeZoneError:
        return False
    return True


def localize(now: datetime, timezone: str) -> datetime:
    """
    Convert `now` into the given zone. Naive datetimes are taken as UTC.

    Raises InvalidTimeZoneError for a bad zone and OverflowError when the
    local time falls outside the datetime range (near year 1 or 9999).
    """
    if now.tzinfo is None:
        now = now.replace(tzinfo=dt_timezone.utc)
    return now.astimezone(get_zone(timezone))


def minute_of_day(local: datetime) -> int:
    return local.hour * 60 + local.minute


def weekday_abbr(local: datetime) -> str:
    return WEEKDAYS[local.weekday()]


def format_time_label(local: datetime) -> str:
    """
    12-hour clock label in the en-CA style, e.g. "4:05 p.m.".
    """
    hour12 = local.hour % 12 or 12
    suffix = "a.m." if local.hour < 12 else "p.m."
    return f"{hour12}:{local.minute:02d} {suffix}"


def status_for_minute(current: int, schedule: Schedule) -> PresenceStatus:
    """
    Canonical status rule for a minute of the day.

    The last hour starts at max(start, end - 60). This rule is only
    meaningful for same-day windows: full-day and overnight schedules never
    match it and always come out as OFF.
    """
    start, end = schedule.start_minute, schedule.end_minute
    last_hour_start = max(start, end - LAST_HOUR_MINUTES)

    if start <= current < last_hour_start:
        return PresenceStatus.WORKING
    if last_hour_start <= current < end:
        return PresenceStatus.LAST_HOUR
    return PresenceStatus.OFF


def resolve_status(
    timezone: str | None,
    schedule: Schedule,
    work_days,
    now: datetime,
) -> StatusResult:
    """
    Compute the presence status and local time label for `now` in a zone.

    Never raises: an empty or unknown zone (or an instant that cannot be
    represented in it) yields OFF with the placeholder label, a non-working
    weekday yields OFF with the real label.
    """
    if not timezone:
        return StatusResult(PresenceStatus.OFF, TIME_PLACEHOLDER)

    try:
        local = localize(now, timezone)
    except InvalidTimeZoneError as exc:
        logger.warning("InvalidTimeZone while resolving status: %s", exc)
        return StatusResult(PresenceStatus.OFF, TIME_PLACEHOLDER)
    except OverflowError:
        logger.warning("Instant %s out of range in %s", now, timezone)
        return StatusResult(PresenceStatus.OFF, TIME_PLACEHOLDER)

    label = format_time_label(local)

    if weekday_abbr(local) not in set(work_days or ()):
        return StatusResult(PresenceStatus.OFF, label)

    return StatusResult(status_for_minute(minute_of_day(local), schedule), label)


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def progress_for_minute(current: int, schedule: Schedule) -> float:
    """
    Fraction of the shift elapsed at `current`, in [0, 1].

    Cases
    -----
    - start == end  => full-day shift, current / 1440
    - end > start   => (current - start) / (end - start), clamped
    - end < start   => overnight; 0 outside [start, 24:00) U [00:00, end],
                       otherwise elapsed over 1440 - start + end
    """
    start, end = schedule.start_minute, schedule.end_minute

    if start == end:
        return _clamp01(current / MINUTES_PER_DAY)

    if end > start:
        return _clamp01((current - start) / (end - start))

    span = MINUTES_PER_DAY - start + end
    within = current >= start or current <= end
    if not within:
        return 0.0

    if current >= start:
        elapsed = current - start
    else:
        elapsed = MINUTES_PER_DAY - start + current
    return _clamp01(elapsed / span)


def compute_progress(timezone: str | None, schedule: Schedule, now: datetime) -> float:
    """
    Workday progress for `now` in the given zone; 0.0 when the zone cannot
    be resolved.
    """
    try:
        local = localize(now, timezone or "")
    except (InvalidTimeZoneError, OverflowError):
        return 0.0
    return progress_for_minute(minute_of_day(local), schedule)
