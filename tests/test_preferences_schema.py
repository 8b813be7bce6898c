# tests/test_preferences_schema.py
import json

import pytest

from workclock.core.errors import MalformedPreferencesError
from workclock.schemas.preferences import Preferences, PreferencesUpdate, parse_stored
from workclock.schemas.roster import SortCriteria, SortDirection


def test_defaults_for_empty_storage():
    for raw in (None, "", "{}", {}):
        prefs = Preferences.from_stored(raw)
        assert prefs.start_hour == "09:00"
        assert prefs.end_hour == "17:00"
        assert prefs.work_days == ["Mon", "Tue", "Wed", "Thu", "Fri"]
        assert prefs.page_size == 10
        assert prefs.sort_criteria == SortCriteria.NAME
        assert prefs.sort_direction == SortDirection.ASC
        assert prefs.user_overrides == {}
        assert prefs.user_timezones is None


def test_string_and_object_are_normalized_identically():
    stored = {
        "timezone": "America/Toronto",
        "startHour": "08:30",
        "workDays": ["Mon", "Wed"],
        "userOverrides": {"42": {"timezone": "Asia/Tokyo", "updatedAt": 1717430400000}},
    }
    from_text = Preferences.from_stored(json.dumps(stored))
    from_obj = Preferences.from_stored(stored)

    assert from_text == from_obj
    assert from_obj.user_overrides["42"].timezone == "Asia/Tokyo"
    assert from_obj.user_overrides["42"].updated_at == 1717430400000


@pytest.mark.parametrize("raw", ["[object Object]", "[1, 2]", "42", "null", b"not json"])
def test_malformed_storage_recovers_defaults(raw):
    prefs = Preferences.from_stored(raw)
    assert prefs == Preferences()


def test_parse_stored_rejects_non_objects():
    with pytest.raises(MalformedPreferencesError):
        parse_stored("[1]")
    assert parse_stored(None) == {}


def test_invalid_fields_fall_back_individually():
    prefs = Preferences.from_stored(
        {
            "timezone": "Europe/Paris",
            "startHour": "",
            "endHour": 17,
            "workDays": "Mon,Tue",
            "pageSize": 0,
            "sortCriteria": "age",
            "sortDirection": "sideways",
            "rowColorMode": "yes",
            "userOverrides": {"1": "Asia/Tokyo", "2": {"timezone": "UTC"}},
            "userTimezones": {"Ada": "Asia/Seoul", "Bob": 3},
        }
    )

    assert prefs.timezone == "Europe/Paris"
    assert prefs.start_hour == "09:00"
    assert prefs.end_hour == "17:00"
    assert prefs.work_days == ["Mon", "Tue", "Wed", "Thu", "Fri"]
    assert prefs.page_size == 10
    assert prefs.sort_criteria == SortCriteria.NAME
    assert prefs.sort_direction == SortDirection.ASC
    assert prefs.row_color_mode is False
    assert list(prefs.user_overrides) == ["2"]
    assert prefs.user_timezones == {"Ada": "Asia/Seoul"}


def test_work_days_are_cleaned_and_may_be_empty():
    assert Preferences.from_stored({"workDays": ["Sat", "Funday", "Sat", "Sun"]}).work_days == ["Sat", "Sun"]
    assert Preferences.from_stored({"workDays": []}).work_days == []


def test_round_trip_keeps_unknown_keys_and_drops_unset_optionals():
    prefs = Preferences.from_stored({"timezone": "UTC", "themeColor": "teal"})
    stored = prefs.to_stored()

    assert stored["themeColor"] == "teal"
    assert "userTimezones" not in stored
    assert stored["startHour"] == "09:00"
    assert stored["sortCriteria"] == "name"


def test_override_blank_strings_become_unset():
    prefs = Preferences.from_stored({"userOverrides": {"1": {"timezone": "  ", "startHour": "08:00"}}})
    override = prefs.user_overrides["1"]

    assert override.timezone is None
    assert override.start_hour == "08:00"
    assert "timezone" not in prefs.to_stored()["userOverrides"]["1"]


def test_preferences_update_validates_weekdays():
    with pytest.raises(ValueError):
        PreferencesUpdate(workDays=["Mon", "Someday"])

    update = PreferencesUpdate(workDays=["Tue", "Mon", "Tue"])
    assert update.work_days == ["Tue", "Mon"]


@pytest.mark.parametrize("stamp", ["1e400", "-1e400", "NaN"])
def test_non_finite_updated_at_is_dropped(stamp):
    raw = '{"timezone": "UTC", "userOverrides": {"1": {"timezone": "Asia/Tokyo", "updatedAt": %s}}}' % stamp

    prefs = Preferences.from_stored(raw)

    assert prefs.timezone == "UTC"
    assert prefs.user_overrides["1"].timezone == "Asia/Tokyo"
    assert prefs.user_overrides["1"].updated_at is None
