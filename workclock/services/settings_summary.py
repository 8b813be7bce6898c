# workclock/services/settings_summary.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping

from workclock.core.errors import InvalidTimeZoneError
from workclock.schemas.preferences import OverrideRow, Preferences
from workclock.services.time_math import format_time_label, localize

MAX_NAME_AS_KEY = 30


def local_now_label(tz_name: str, now: datetime) -> str:
    """Local time label for the chip, empty when the zone is unknown."""
    if not tz_name:
        return ""
    try:
        return format_time_label(localize(now, tz_name))
    except (InvalidTimeZoneError, OverflowError):
        return ""


def describe_schedule(prefs: Preferences, now: datetime) -> str:
    """
    One-line summary of the default schedule, e.g.
    "America/Toronto • 09:00–17:00 • MonTueWedThuFri • Local now: 4:05 p.m.".

    Empty when no default timezone is configured.
    """
    if not prefs.timezone:
        return ""

    parts = [prefs.timezone, f"{prefs.start_hour}–{prefs.end_hour}"]
    if prefs.work_days:
        parts.append("".join(prefs.work_days))
    parts.append(f"Local now: {local_now_label(prefs.timezone, now)}")
    return " • ".join(parts)


def format_updated(value: Any) -> str:
    """
    Render an epoch-milliseconds timestamp as "YYYY-MM-DD HH:MM" (UTC).

    Returns "" for missing or unparseable values.
    """
    if value is None or value == "" or isinstance(value, bool):
        return ""
    try:
        moment = datetime.fromtimestamp(float(value) / 1000.0, tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return ""
    return moment.strftime("%Y-%m-%d %H:%M")


def build_override_rows(prefs: Preferences, names: Mapping[str, str] | None = None) -> List[OverrideRow]:
    """
    Rows of the overrides table, in stored order.

    Names come from the directory for numeric ids; short non-numeric keys
    (legacy name-keyed overrides) are shown as their own name.
    """
    names = names or {}
    rows: List[OverrideRow] = []

    for key, override in prefs.user_overrides.items():
        if key in names:
            name = names[key]
        elif len(key) < MAX_NAME_AS_KEY:
            name = key
        else:
            name = "-"

        rows.append(
            OverrideRow(
                key=key,
                name=name,
                timezone=override.timezone or "(default)",
                start_hour=override.start_hour or prefs.start_hour,
                end_hour=override.end_hour or prefs.end_hour,
                updated=format_updated(override.updated_at) or "-",
                source=override.source,
            )
        )
    return rows


def numeric_override_keys(prefs: Preferences) -> List[str]:
    return [k for k in prefs.user_overrides if k.isdigit()]


def summary_payload(prefs: Preferences, now: datetime, refresh_interval: int) -> Dict[str, Any]:
    return {
        "preferences": prefs.to_stored(),
        "summary": describe_schedule(prefs, now),
        "refresh_interval_seconds": refresh_interval,
    }
