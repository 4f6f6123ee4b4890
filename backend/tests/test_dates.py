from datetime import date, datetime, timezone
from zoneinfo import ZoneInfoNotFoundError

import pytest

from hobhob.dates import (
    current_hour,
    date_key,
    date_range_keys,
    is_valid_timezone,
    parse_date_key,
    require_date_key,
    shift_date_key,
    today,
)


@pytest.mark.parametrize(
    "instant,tz_name,expected",
    [
        (datetime(2024, 1, 10, 3, 0, tzinfo=timezone.utc), "America/Los_Angeles", "2024-01-09"),
        (datetime(2024, 1, 10, 3, 0, tzinfo=timezone.utc), "Asia/Tokyo", "2024-01-10"),
        (datetime(2024, 1, 9, 16, 0, tzinfo=timezone.utc), "Asia/Tokyo", "2024-01-10"),
        (datetime(2024, 1, 10, 3, 0, tzinfo=timezone.utc), "UTC", "2024-01-10"),
    ],
)
def test_date_key_uses_local_civil_date(instant, tz_name, expected):
    assert date_key(instant, tz_name) == expected


def test_date_key_around_spring_forward():
    # DST starts 2024-03-10 at 02:00 local (07:00 UTC) in New York.
    assert date_key(datetime(2024, 3, 10, 4, 59, tzinfo=timezone.utc), "America/New_York") == "2024-03-09"
    assert date_key(datetime(2024, 3, 10, 7, 30, tzinfo=timezone.utc), "America/New_York") == "2024-03-10"


def test_date_key_around_fall_back():
    assert date_key(datetime(2024, 11, 3, 3, 59, tzinfo=timezone.utc), "America/New_York") == "2024-11-02"
    assert date_key(datetime(2024, 11, 3, 4, 30, tzinfo=timezone.utc), "America/New_York") == "2024-11-03"


def test_naive_datetime_is_treated_as_utc():
    assert date_key(datetime(2024, 1, 1, 23, 30), "Asia/Tokyo") == "2024-01-02"


def test_unknown_timezone_raises():
    with pytest.raises(ZoneInfoNotFoundError):
        date_key(datetime(2024, 1, 1, tzinfo=timezone.utc), "Not/AZone")


def test_today_and_current_hour_use_clock():
    clock = lambda: datetime(2024, 1, 10, 11, 0, tzinfo=timezone.utc)

    assert today("America/New_York", clock) == "2024-01-10"
    assert current_hour("America/New_York", clock) == 6
    assert current_hour("UTC", clock) == 11


@pytest.mark.parametrize("tz_name,expected", [("UTC", True), ("Europe/Berlin", True), ("Not/AZone", False), ("", False), ("   ", False)])
def test_is_valid_timezone(tz_name, expected):
    assert is_valid_timezone(tz_name) is expected


def test_parse_date_key_is_strict():
    assert parse_date_key("2024-02-29") == date(2024, 2, 29)
    assert parse_date_key(date(2024, 1, 1)) == date(2024, 1, 1)
    assert parse_date_key("2024-1-5") is None
    assert parse_date_key("2023-02-29") is None
    assert parse_date_key("2024-01-05T00:00:00") is None
    assert parse_date_key(None) is None


def test_require_date_key_raises_on_bad_input():
    with pytest.raises(ValueError):
        require_date_key("yesterday")


def test_shift_date_key_crosses_month_and_year():
    assert shift_date_key("2024-03-01", -1) == "2024-02-29"
    assert shift_date_key("2023-12-31", 1) == "2024-01-01"


def test_date_range_keys_oldest_first():
    assert date_range_keys("2024-01-02", 3) == ["2023-12-31", "2024-01-01", "2024-01-02"]
    assert date_range_keys("2024-01-02", 0) == []


def test_date_range_keys_stops_at_earliest_date():
    assert date_range_keys("0001-01-02", 5) == ["0001-01-01", "0001-01-02"]
