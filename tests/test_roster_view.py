# tests/test_roster_view.py
import pytest

from workclock.schemas.preferences import Preferences
from workclock.schemas.roster import (
    PersonStatusView,
    PresenceStatus,
    RosterQuery,
    SortCriteria,
    SortDirection,
)
from workclock.services.roster_view import (
    ELLIPSIS,
    build_roster_page,
    effective_query,
    filter_online,
    page_numbers,
    paginate,
    sort_views,
)


def _view(pid: str, name: str = "", status=PresenceStatus.OFF, tz: str = "UTC") -> PersonStatusView:
    return PersonStatusView(
        person_id=pid,
        name=name or pid,
        display_time="9:00 a.m.",
        status=status,
        progress=0.0,
        effective_timezone=tz,
        timezone_was_assumed=False,
    )


def _ids(views):
    return [v.person_id for v in views]


def test_filter_online_keeps_working_and_last_hour():
    views = [
        _view("1", status=PresenceStatus.OFF),
        _view("2", status=PresenceStatus.WORKING),
        _view("3", status=PresenceStatus.LAST_HOUR),
    ]
    assert _ids(filter_online(views)) == ["2", "3"]


def test_sort_by_name_is_case_insensitive():
    views = [_view("1", "bob"), _view("2", "Alice"), _view("3", "carol")]
    assert _ids(sort_views(views, SortCriteria.NAME, SortDirection.ASC)) == ["2", "1", "3"]
    assert _ids(sort_views(views, SortCriteria.NAME, SortDirection.DESC)) == ["3", "1", "2"]


def test_sort_by_status_rank():
    views = [
        _view("1", status=PresenceStatus.OFF),
        _view("2", status=PresenceStatus.LAST_HOUR),
        _view("3", status=PresenceStatus.WORKING),
    ]
    assert _ids(sort_views(views, SortCriteria.STATUS)) == ["3", "2", "1"]


@pytest.mark.parametrize("direction", [SortDirection.ASC, SortDirection.DESC])
def test_sort_is_stable_for_equal_keys(direction):
    views = [
        _view("a", "Same", PresenceStatus.WORKING),
        _view("b", "same", PresenceStatus.WORKING),
        _view("c", "SAME", PresenceStatus.WORKING),
    ]
    for criteria in SortCriteria:
        assert _ids(sort_views(views, criteria, direction)) == ["a", "b", "c"]


def test_sort_by_timezone_puts_empty_last_in_both_directions():
    views = [
        _view("1", tz=""),
        _view("2", tz="europe/london"),
        _view("3", tz="America/Toronto"),
        _view("4", tz=""),
    ]
    assert _ids(sort_views(views, SortCriteria.TIMEZONE, SortDirection.ASC)) == ["3", "2", "1", "4"]
    assert _ids(sort_views(views, SortCriteria.TIMEZONE, SortDirection.DESC)) == ["2", "3", "1", "4"]


def test_paginate_last_partial_page():
    items = list(range(23))
    page = paginate(items, page=3, page_size=10)

    assert page.items == [20, 21, 22]
    assert page.total_pages == 3
    assert page.page_numbers == [1, 2, 3]


def test_paginate_clamps_page():
    items = list(range(5))
    assert paginate(items, page=9, page_size=2).page == 3
    assert paginate(items, page=0, page_size=2).page == 1
    assert paginate(items, page=-4, page_size=2).items == [0, 1]


def test_paginate_empty():
    page = paginate([], page=4, page_size=10)
    assert page.page == 1
    assert page.total_pages == 1
    assert page.items == []


@pytest.mark.parametrize("total", [0, 1, 9, 10, 11, 37])
@pytest.mark.parametrize("size", [1, 3, 10])
def test_pages_cover_sequence_exactly_once(total, size):
    items = list(range(total))
    pages = [paginate(items, p, size) for p in range(1, pages_for(total, size) + 1)]

    assert [x for page in pages for x in page.items] == items
    for n, page in enumerate(pages, start=1):
        assert len(page.items) == max(0, min(size, total - (n - 1) * size))


def pages_for(total, size):
    return max(1, -(-total // size))


def test_paginate_rejects_bad_page_size():
    with pytest.raises(ValueError):
        paginate([1], page=1, page_size=0)


def test_page_numbers_small():
    assert page_numbers(1, 1) == [1]
    assert page_numbers(4, 7) == [1, 2, 3, 4, 5, 6, 7]


def test_page_numbers_with_gaps():
    assert page_numbers(6, 12) == [1, ELLIPSIS, 4, 5, 6, 7, 8, ELLIPSIS, 12]


def test_page_numbers_near_edges():
    assert page_numbers(1, 12) == [1, 2, 3, ELLIPSIS, 12]
    assert page_numbers(3, 12) == [1, 2, 3, 4, 5, ELLIPSIS, 12]
    assert page_numbers(4, 12) == [1, 2, 3, 4, 5, 6, ELLIPSIS, 12]
    assert page_numbers(12, 12) == [1, ELLIPSIS, 10, 11, 12]
    assert page_numbers(10, 12) == [1, ELLIPSIS, 8, 9, 10, 11, 12]


def test_effective_query_falls_back_to_preferences():
    prefs = Preferences.from_stored(
        {"sortCriteria": "status", "sortDirection": "desc", "pageSize": 5, "showOnlineOnly": True}
    )
    query = effective_query(RosterQuery(page=2), prefs)

    assert query.sort_criteria == SortCriteria.STATUS
    assert query.sort_direction == SortDirection.DESC
    assert query.page_size == 5
    assert query.online_only is True

    explicit = effective_query(RosterQuery(online_only=False, page_size=3), prefs)
    assert explicit.online_only is False
    assert explicit.page_size == 3


def test_build_roster_page_filters_before_paginating():
    views = [
        _view(str(i), f"P{i:02d}", PresenceStatus.WORKING if i % 2 else PresenceStatus.OFF)
        for i in range(10)
    ]
    query = RosterQuery(
        sort_criteria=SortCriteria.NAME,
        sort_direction=SortDirection.ASC,
        page=3,
        page_size=2,
        online_only=True,
    )

    page = build_roster_page(views, query)

    assert page.total == 5
    assert page.total_pages == 3
    assert page.page == 3
    assert _ids(page.items) == ["9"]
    assert page.online_only is True
