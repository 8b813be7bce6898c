# workclock/schemas/preferences.py
from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from workclock.core.errors import MalformedPreferencesError
from workclock.schemas.roster import SortCriteria, SortDirection
from workclock.services.time_math import (
    DEFAULT_END_HOUR,
    DEFAULT_START_HOUR,
    DEFAULT_WORK_DAYS,
    WEEKDAYS,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10


def _coerce_epoch_ms(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        # also covers inf/nan, which json.loads yields for 1e400 or NaN
        return None


class UserOverride(BaseModel):
    """
    Per-person override of the default timezone and/or work hours.

    Any field left as None inherits the default.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    timezone: str | None = Field(None, examples=["Asia/Tokyo"])
    start_hour: str | None = Field(None, alias="startHour", examples=["08:00"])
    end_hour: str | None = Field(None, alias="endHour", examples=["16:00"])
    source: str | None = Field(None, examples=["manual"])
    updated_at: int | None = Field(
        None,
        alias="updatedAt",
        description="Epoch milliseconds of the last edit.",
    )

    @field_validator("timezone", "start_hour", "end_hour", "source", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if value is None:
            return None
        if not isinstance(value, str):
            return None
        return value.strip() or None

    @field_validator("updated_at", mode="before")
    @classmethod
    def _epoch(cls, value: Any) -> int | None:
        return _coerce_epoch_ms(value)


class Preferences(BaseModel):
    """
    The single persisted preferences aggregate.

    Stored as camelCase JSON under one key. Missing or invalid fields fall
    back to their defaults instead of failing validation, and unknown keys
    are kept so a whole-object write does not drop them.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    timezone: str = ""
    start_hour: str = Field(DEFAULT_START_HOUR, alias="startHour")
    end_hour: str = Field(DEFAULT_END_HOUR, alias="endHour")
    work_days: list[str] = Field(
        default_factory=lambda: list(DEFAULT_WORK_DAYS),
        alias="workDays",
    )
    row_color_mode: bool = Field(False, alias="rowColorMode")
    show_online_only: bool = Field(False, alias="showOnlineOnly")
    sort_criteria: SortCriteria = Field(SortCriteria.NAME, alias="sortCriteria")
    sort_direction: SortDirection = Field(SortDirection.ASC, alias="sortDirection")
    page_size: int = Field(DEFAULT_PAGE_SIZE, alias="pageSize", ge=1)
    user_overrides: dict[str, UserOverride] = Field(
        default_factory=dict,
        alias="userOverrides",
    )
    # Deprecated: read for backward compatibility, never edited.
    user_timezones: dict[str, str] | None = Field(None, alias="userTimezones")

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        data = dict(data)

        def _pop_invalid(key: str, ok) -> None:
            if key in data and not ok(data[key]):
                logger.debug("Dropping invalid preferences field %s=%r", key, data[key])
                data.pop(key)

        _pop_invalid("timezone", lambda v: isinstance(v, str))
        _pop_invalid("startHour", lambda v: isinstance(v, str) and v.strip() != "")
        _pop_invalid("endHour", lambda v: isinstance(v, str) and v.strip() != "")
        _pop_invalid("rowColorMode", lambda v: isinstance(v, bool))
        _pop_invalid("showOnlineOnly", lambda v: isinstance(v, bool))
        _pop_invalid("sortCriteria", lambda v: v in {c.value for c in SortCriteria})
        _pop_invalid("sortDirection", lambda v: v in {d.value for d in SortDirection})
        _pop_invalid(
            "pageSize",
            lambda v: isinstance(v, int) and not isinstance(v, bool) and v >= 1,
        )

        work_days = data.get("workDays")
        if "workDays" in data:
            if isinstance(work_days, (list, tuple)):
                cleaned: list[str] = []
                for day in work_days:
                    if day in WEEKDAYS and day not in cleaned:
                        cleaned.append(day)
                data["workDays"] = cleaned
            else:
                data.pop("workDays")

        overrides = data.get("userOverrides")
        if "userOverrides" in data:
            if isinstance(overrides, dict):
                kept = {}
                for key, value in overrides.items():
                    if isinstance(value, (dict, UserOverride)):
                        kept[str(key)] = value
                    else:
                        logger.warning("Dropping malformed override for %r", key)
                data["userOverrides"] = kept
            else:
                data.pop("userOverrides")

        legacy = data.get("userTimezones")
        if "userTimezones" in data:
            if isinstance(legacy, dict):
                data["userTimezones"] = {
                    str(k): v for k, v in legacy.items() if isinstance(v, str) and v
                }
            else:
                data.pop("userTimezones")

        return data

    @classmethod
    def from_stored(cls, raw: Any) -> "Preferences":
        """
        Normalize a stored value into Preferences.

        Accepts a JSON string, an already-parsed object or None. Anything that
        is not a JSON object (including unparseable text such as
        "[object Object]") is recovered as default preferences.
        """
        try:
            data = parse_stored(raw)
        except MalformedPreferencesError as exc:
            logger.warning("MalformedPreferences, using defaults: %s", exc)
            return cls()

        try:
            return cls.model_validate(data)
        except (ValidationError, TypeError, ValueError, OverflowError) as exc:
            logger.warning("MalformedPreferences, using defaults: %s", exc)
            return cls()

    def to_stored(self) -> dict[str, Any]:
        """
        camelCase dict suitable for `json.dumps`, omitting unset optionals.
        """
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def to_json(self) -> str:
        return json.dumps(self.to_stored())


def parse_stored(raw: Any) -> dict[str, Any]:
    """
    Turn a stored value (JSON text or object) into a plain dict.

    Returns {} for None/empty values; raises MalformedPreferencesError when
    the value is not a JSON object.
    """
    if raw is None or raw == "":
        return {}

    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError as exc:
            raise MalformedPreferencesError(f"stored preferences are not JSON: {exc}") from exc

    if not isinstance(raw, dict):
        raise MalformedPreferencesError(
            f"stored preferences must be an object, got {type(raw).__name__}"
        )
    return raw


class PreferencesUpdate(BaseModel):
    """
    Partial update of the default schedule and display options
    (PUT /settings). Only provided fields are applied.
    """

    model_config = ConfigDict(populate_by_name=True)

    timezone: str | None = None
    start_hour: str | None = Field(None, alias="startHour")
    end_hour: str | None = Field(None, alias="endHour")
    work_days: list[str] | None = Field(None, alias="workDays")
    row_color_mode: bool | None = Field(None, alias="rowColorMode")
    show_online_only: bool | None = Field(None, alias="showOnlineOnly")
    sort_criteria: SortCriteria | None = Field(None, alias="sortCriteria")
    sort_direction: SortDirection | None = Field(None, alias="sortDirection")
    page_size: int | None = Field(None, alias="pageSize", ge=1)

    @field_validator("work_days")
    @classmethod
    def _known_days(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        unknown = [d for d in value if d not in WEEKDAYS]
        if unknown:
            raise ValueError(f"unknown weekday(s): {', '.join(unknown)}")
        # keep first-seen order, drop duplicates
        return list(dict.fromkeys(value))


class OverrideUpdate(BaseModel):
    """
    Body of PUT /settings/overrides/{key}.
    """

    model_config = ConfigDict(populate_by_name=True)

    timezone: str | None = Field(None, examples=["America/Toronto"])
    start_hour: str | None = Field(None, alias="startHour", examples=["09:00"])
    end_hour: str | None = Field(None, alias="endHour", examples=["17:00"])
    source: str | None = Field("manual")


class AddOverrideRequest(BaseModel):
    user_id: str = Field(..., alias="userId", examples=["12345678"])

    model_config = ConfigDict(populate_by_name=True)


class SettingsRead(BaseModel):
    """
    Response of GET /settings.
    """

    preferences: dict[str, Any] = Field(
        ...,
        description="The stored preferences aggregate (camelCase).",
    )
    summary: str = Field(
        "",
        description="One-line summary chip of the default schedule.",
        examples=["America/Toronto • 09:00–17:00 • MonTueWedThuFri • Local now: 4:05 p.m."],
    )
    refresh_interval_seconds: int = Field(30)


class OverrideRow(BaseModel):
    """
    One row of the overrides table in the settings view.
    """

    key: str
    name: str = Field("", description="Directory name for numeric ids, else the key itself.")
    timezone: str = Field("(default)")
    start_hour: str
    end_hour: str
    updated: str = Field("-", description="Last edit as YYYY-MM-DD HH:MM (UTC), '-' if unknown.")
    source: str | None = None


class SaveResult(BaseModel):
    """
    Outcome of a preferences mutation.

    `saved` is False when the store rejected the write; the in-memory
    preferences still carry the change.
    """

    saved: bool
    message: str
    preferences: dict[str, Any]
