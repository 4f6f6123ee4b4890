from datetime import date, datetime, timezone

import pytest

from hobhob.habits import (
    Habit,
    active_habits,
    filter_habits_for_today,
    frequency_text,
    parse_habits,
    should_show_habit_today,
    should_track_on,
)


WEDNESDAY = date(2024, 1, 10)


def _habit(**fields) -> Habit:
    return Habit.model_validate({"id": "h1", "name": "Read", **fields})


def test_parse_habits_uses_keys_as_ids_and_aliases():
    habits = parse_habits(
        {
            "h1": {"name": "Read", "frequency": "weekly", "targetDays": [0, 2], "isActive": False},
            "h2": {"name": "Run"},
        }
    )

    assert [habit.id for habit in habits] == ["h1", "h2"]
    assert habits[0].target_days == [0, 2]
    assert habits[0].is_active is False
    assert habits[1].frequency == "daily"
    assert habits[1].is_active is True


def test_parse_habits_skips_malformed_entries(caplog):
    habits = parse_habits(
        {
            "h1": {"name": "Read"},
            "h2": "not a habit",
            "h3": {"name": "Run", "targetDays": "monday"},
        }
    )

    assert [habit.id for habit in habits] == ["h1"]
    assert "HABIT_SKIPPED habit_id=h3" in caplog.text


def test_parse_habits_non_dict_is_empty():
    assert parse_habits(None) == []
    assert parse_habits(["h1"]) == []


def test_daily_habit_tracks_every_day():
    assert should_track_on(_habit(frequency="daily"), WEDNESDAY) is True


def test_weekly_habit_uses_monday_based_days():
    habit = _habit(frequency="weekly", targetDays=[0, 2])

    assert should_track_on(habit, WEDNESDAY) is True
    assert should_track_on(habit, date(2024, 1, 8)) is True
    assert should_track_on(habit, date(2024, 1, 9)) is False


def test_weekly_habit_without_days_tracks_every_day():
    assert should_track_on(_habit(frequency="weekly"), WEDNESDAY) is True


def test_monthly_habit_defaults_to_first_of_month():
    habit = _habit(frequency="monthly")

    assert should_track_on(habit, date(2024, 2, 1)) is True
    assert should_track_on(habit, WEDNESDAY) is False


def test_monthly_habit_with_target_days():
    habit = _habit(frequency="monthly", targetDays=[10, 20])

    assert should_track_on(habit, WEDNESDAY) is True
    assert should_track_on(habit, date(2024, 1, 11)) is False


def test_unknown_frequency_is_tracked():
    assert should_track_on(_habit(frequency="fortnightly"), WEDNESDAY) is True


def test_should_show_habit_today_uses_local_date():
    # Tuesday 23:00 in New York, already Wednesday in UTC.
    clock = lambda: datetime(2024, 1, 10, 4, 0, tzinfo=timezone.utc)
    habit = _habit(frequency="weekly", targetDays=[2])

    assert should_show_habit_today(habit, "UTC", clock=clock) is True
    assert should_show_habit_today(habit, "America/New_York", clock=clock) is False


def test_filter_habits_for_today():
    clock = lambda: datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)
    habits = [
        _habit(id="daily"),
        _habit(id="monday", frequency="weekly", targetDays=[0]),
        _habit(id="wednesday", frequency="weekly", targetDays=[2]),
    ]

    assert [habit.id for habit in filter_habits_for_today(habits, "UTC", clock=clock)] == ["daily", "wednesday"]


def test_active_habits_filters_inactive():
    habits = [_habit(id="a"), _habit(id="b", isActive=False)]

    assert [habit.id for habit in active_habits(habits)] == ["a"]


@pytest.mark.parametrize(
    "fields,expected",
    [
        ({"frequency": "daily"}, "Every day"),
        ({"frequency": "weekly", "targetDays": [6]}, "Every Sun"),
        ({"frequency": "weekly", "targetDays": [2, 0]}, "Mon & Wed"),
        ({"frequency": "weekly", "targetDays": [0, 1, 2, 3, 4]}, "Mon, Tue + 3 more"),
        ({"frequency": "weekly", "targetDays": [0, 1, 2, 3, 4, 5, 6]}, "Every day"),
        ({"frequency": "weekly", "targetDays": []}, "Custom"),
        ({"frequency": "monthly", "targetDays": [1]}, "Monthly on 1st"),
        ({"frequency": "monthly", "targetDays": [2]}, "Monthly on 2nd"),
        ({"frequency": "monthly", "targetDays": [11]}, "Monthly on 11th"),
        ({"frequency": "monthly", "targetDays": [22]}, "Monthly on 22nd"),
        ({"frequency": "monthly", "targetDays": [1, 15]}, "2 days/month"),
    ],
)
def test_frequency_text(fields, expected):
    assert frequency_text(_habit(**fields)) == expected
