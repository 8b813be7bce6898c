# workclock/schemas/roster.py
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Union

from pydantic import BaseModel, Field


class PresenceStatus(str, Enum):
    """
    Lifecycle status of a person at the current instant.
    """

    WORKING = "working"
    LAST_HOUR = "lastHour"
    OFF = "off"


class SortCriteria(str, Enum):
    NAME = "name"
    STATUS = "status"
    TIMEZONE = "timezone"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class Person(BaseModel):
    """
    A person assigned on a board, as reported by the directory.

    The engine never mutates these records.
    """

    id: str = Field(
        ...,
        description="Directory identifier of the person (numeric string for monday.com users).",
        examples=["12345678"],
    )
    name: str = Field(
        "",
        description="Display name.",
        examples=["Ada Lovelace"],
    )
    avatar_url: str | None = Field(
        None,
        description="Optional avatar/thumbnail URL.",
    )
    timezone: str | None = Field(
        None,
        description="IANA zone attached to the person record by the directory, if any.",
        examples=["Europe/London"],
    )


class PersonStatusView(BaseModel):
    """
    Derived, never persisted: the presentation record of one person.
    """

    person_id: str = Field(..., examples=["12345678"])
    name: str = Field("", examples=["Ada Lovelace"])
    avatar_url: str | None = None
    display_time: str = Field(
        ...,
        description="Local time label (12-hour clock) or '—' when the zone is unknown.",
        examples=["4:05 p.m."],
    )
    status: PresenceStatus = Field(..., examples=["lastHour"])
    progress: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        description="Fraction of the current shift elapsed.",
        examples=[0.8542],
    )
    effective_timezone: str = Field(
        "",
        description="Timezone actually used after override precedence.",
        examples=["America/Toronto"],
    )
    timezone_was_assumed: bool = Field(
        ...,
        description=(
            "True when the timezone came from the legacy mapping or the default, "
            "i.e. it was not attached to the person or set by an override."
        ),
    )
    start_hour: str = Field("09:00", description="Effective shift start (HH:MM).")
    end_hour: str = Field("17:00", description="Effective shift end (HH:MM).")


class RosterQuery(BaseModel):
    """
    The caller-held view state: sort, paging and online-only filter.

    Fields left as None fall back to the stored preferences.
    """

    sort_criteria: SortCriteria | None = None
    sort_direction: SortDirection | None = None
    page: int = Field(1, description="Requested page; clamped to the valid range.")
    page_size: int | None = Field(None, ge=1)
    online_only: bool | None = None


PageNumber = Union[int, str]


class RosterPage(BaseModel):
    """
    One page of the filtered and sorted roster.
    """

    items: list[PersonStatusView] = Field(default_factory=list)
    page: int = Field(..., ge=1, description="Page actually served after clamping.")
    page_size: int = Field(..., ge=1)
    total: int = Field(..., ge=0, description="Number of entries after filtering.")
    total_pages: int = Field(..., ge=1)
    page_numbers: list[PageNumber] = Field(
        default_factory=list,
        description="Compact page list for pagination controls; '…' marks a gap.",
        examples=[[1, "…", 4, 5, 6, 7, 8, "…", 12]],
    )
    sort_criteria: SortCriteria = SortCriteria.NAME
    sort_direction: SortDirection = SortDirection.ASC
    online_only: bool = False
    generated_at: datetime | None = Field(
        None,
        description="Instant the statuses were resolved for.",
    )


class ResolveRosterRequest(BaseModel):
    """
    Body of POST /roster/resolve.
    """

    persons: list[Person] = Field(default_factory=list)
    now: datetime | None = Field(
        None,
        description="Instant to resolve for; defaults to the server's current time.",
    )
    query: RosterQuery = Field(default_factory=RosterQuery)
