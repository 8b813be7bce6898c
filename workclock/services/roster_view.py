# workclock/services/roster_view.py
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Sequence, TypeVar

from workclock.schemas.preferences import Preferences
from workclock.schemas.roster import (
    PageNumber,
    PersonStatusView,
    PresenceStatus,
    RosterPage,
    RosterQuery,
    SortCriteria,
    SortDirection,
)

T = TypeVar("T")

ELLIPSIS = "…"
MAX_PLAIN_PAGES = 7
PAGE_WINDOW = 2

STATUS_RANK = {
    PresenceStatus.WORKING: 0,
    PresenceStatus.LAST_HOUR: 1,
    PresenceStatus.OFF: 2,
}

ONLINE_STATUSES = frozenset({PresenceStatus.WORKING, PresenceStatus.LAST_HOUR})


@dataclass
class Page:
    items: List = field(default_factory=list)
    page: int = 1
    page_size: int = 10
    total: int = 0
    total_pages: int = 1
    page_numbers: List[PageNumber] = field(default_factory=list)


def filter_online(views: Sequence[PersonStatusView]) -> List[PersonStatusView]:
    """Keep only people currently working or in their last hour."""
    return [v for v in views if v.status in ONLINE_STATUSES]


def sort_views(
    views: Sequence[PersonStatusView],
    criteria: SortCriteria = SortCriteria.NAME,
    direction: SortDirection = SortDirection.ASC,
) -> List[PersonStatusView]:
    """
    Stable sort of status views.

    - name:     case-insensitive
    - status:   working < lastHour < off
    - timezone: case-insensitive on the effective zone; people without a
                zone always go last, whatever the direction

    Equal keys keep their input order in both directions.
    """
    criteria = SortCriteria(criteria)
    reverse = SortDirection(direction) == SortDirection.DESC

    if criteria == SortCriteria.TIMEZONE:
        with_zone = [v for v in views if v.effective_timezone]
        without_zone = [v for v in views if not v.effective_timezone]
        # list.sort(reverse=True) keeps equal elements in input order
        with_zone.sort(key=lambda v: v.effective_timezone.lower(), reverse=reverse)
        return with_zone + without_zone

    if criteria == SortCriteria.STATUS:
        key = lambda v: STATUS_RANK[PresenceStatus(v.status)]  # noqa: E731
    else:
        key = lambda v: (v.name or "").lower()  # noqa: E731

    return sorted(views, key=key, reverse=reverse)


def total_pages_for(total: int, page_size: int) -> int:
    if page_size < 1:
        raise ValueError("page_size must be >= 1")
    return max(1, math.ceil(total / page_size))


def clamp_page(page: int, total: int, page_size: int) -> int:
    return min(max(1, page), total_pages_for(total, page_size))


def page_numbers(page: int, total_pages: int) -> List[PageNumber]:
    """
    Compact list of page numbers for pagination controls.

    Up to 7 pages are listed in full. Beyond that the first and last page are
    always shown, with a window of two pages either side of the current one
    and an ellipsis wherever the window does not touch an endpoint, e.g.
    page 6 of 12 -> [1, "…", 4, 5, 6, 7, 8, "…", 12].
    """
    if total_pages <= MAX_PLAIN_PAGES:
        return list(range(1, total_pages + 1))

    page = min(max(1, page), total_pages)
    window_start = max(2, page - PAGE_WINDOW)
    window_end = min(total_pages - 1, page + PAGE_WINDOW)

    numbers: List[PageNumber] = [1]
    if window_start > 2:
        numbers.append(ELLIPSIS)
    numbers.extend(range(window_start, window_end + 1))
    if window_end < total_pages - 1:
        numbers.append(ELLIPSIS)
    numbers.append(total_pages)
    return numbers


def paginate(items: Sequence[T], page: int, page_size: int) -> Page:
    """
    Slice one page out of `items`, clamping `page` into the valid range.
    """
    total = len(items)
    total_pages = total_pages_for(total, page_size)
    page = clamp_page(page, total, page_size)
    start = (page - 1) * page_size

    return Page(
        items=list(items[start:start + page_size]),
        page=page,
        page_size=page_size,
        total=total,
        total_pages=total_pages,
        page_numbers=page_numbers(page, total_pages),
    )


def effective_query(query: RosterQuery | None, prefs: Preferences) -> RosterQuery:
    """
    Fill the unset parts of a query from the stored preferences.
    """
    query = query or RosterQuery()
    return RosterQuery(
        sort_criteria=query.sort_criteria or prefs.sort_criteria,
        sort_direction=query.sort_direction or prefs.sort_direction,
        page=query.page,
        page_size=query.page_size or prefs.page_size,
        online_only=prefs.show_online_only if query.online_only is None else query.online_only,
    )


def build_roster_page(
    views: Sequence[PersonStatusView],
    query: RosterQuery,
    generated_at: datetime | None = None,
) -> RosterPage:
    """
    Filter, then sort, then paginate. `query` must be fully populated
    (see `effective_query`).
    """
    rows = filter_online(views) if query.online_only else list(views)
    rows = sort_views(rows, query.sort_criteria, query.sort_direction)
    page = paginate(rows, query.page, query.page_size)

    return RosterPage(
        items=page.items,
        page=page.page,
        page_size=page.page_size,
        total=page.total,
        total_pages=page.total_pages,
        page_numbers=page.page_numbers,
        sort_criteria=query.sort_criteria,
        sort_direction=query.sort_direction,
        online_only=bool(query.online_only),
        generated_at=generated_at,
    )
