import calendar
import csv
import io
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Optional

from .checkins import CheckinState, checkin_note, day_record, is_checked
from .dates import Clock, parse_date_key, require_date_key, today
from .habits import Habit
from .streaks import longest_run, percent_of, trailing_run


HISTORY_PRESETS = ("week", "month", "3months", "year", "all")
ALL_HABITS = "all"
HISTORY_EPOCH = date(2020, 1, 1)
CSV_HEADER = ["Date", "Habit", "Status", "Note"]


@dataclass
class HistoryWindow:
    start: str
    end: str
    habit_id: str = ALL_HABITS
    dates: list[str] = field(default_factory=list)
    checkins: dict[str, dict[str, Any]] = field(default_factory=dict)


@dataclass(frozen=True)
class HistorySummary:
    completion_rate: int
    current_streak: int
    best_streak: int
    total_checkins: int
    completed_checkins: int


def _shift_months(day: date, months: int) -> date:
    month_index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(month_index, 12)
    month += 1
    return date(year, month, min(day.day, calendar.monthrange(year, month)[1]))


def resolve_preset_range(preset: str, tz_name: str, *, clock: Optional[Clock] = None) -> tuple[str, str]:
    end = require_date_key(today(tz_name, clock))
    if preset == "week":
        start = end - timedelta(days=7)
    elif preset == "month":
        start = _shift_months(end, -1)
    elif preset == "3months":
        start = _shift_months(end, -3)
    elif preset == "year":
        start = _shift_months(end, -12)
    elif preset == "all":
        start = HISTORY_EPOCH
    else:
        raise ValueError(f"unknown history preset {preset!r}")
    return start.isoformat(), end.isoformat()


def filter_history(checkins: Any, start: str, end: str, habit_id: str = ALL_HABITS) -> HistoryWindow:
    start_day = require_date_key(start)
    end_day = require_date_key(end)
    window = HistoryWindow(start=start, end=end, habit_id=habit_id)
    if not isinstance(checkins, dict):
        return window

    for key in checkins:
        day = parse_date_key(key)
        if day is None or day < start_day or day > end_day:
            continue
        record = day_record(checkins, key)
        if habit_id == ALL_HABITS:
            window.checkins[key] = dict(record)
        elif habit_id in record:
            window.checkins[key] = {habit_id: record[habit_id]}
        else:
            continue
        window.dates.append(key)

    window.dates.sort()
    return window


def _perfect_day_state(window: HistoryWindow, day: str) -> CheckinState:
    record = window.checkins.get(day)
    if not record:
        return None
    return all(is_checked(value) for value in record.values())


def summarize_history(window: HistoryWindow, tz_name: str, *, clock: Optional[Clock] = None) -> HistorySummary:
    total = 0
    completed = 0
    for day in window.dates:
        for value in window.checkins[day].values():
            total += 1
            if is_checked(value):
                completed += 1

    perfect_days = [
        require_date_key(day) for day in window.dates if _perfect_day_state(window, day) is True
    ]
    anchor = min(require_date_key(today(tz_name, clock)), require_date_key(window.end))

    return HistorySummary(
        completion_rate=percent_of(completed, total),
        current_streak=trailing_run(lambda day: _perfect_day_state(window, day), anchor),
        best_streak=longest_run(perfect_days),
        total_checkins=total,
        completed_checkins=completed,
    )


def export_history_csv(window: HistoryWindow, habits: list[Habit]) -> str:
    names = {habit.id: habit.name for habit in habits}
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for day in window.dates:
        for habit_id, value in window.checkins[day].items():
            writer.writerow(
                [
                    day,
                    names.get(habit_id) or habit_id,
                    "✓" if is_checked(value) else "✗",
                    checkin_note(value),
                ]
            )
    return buffer.getvalue()


def history_filename(window: HistoryWindow) -> str:
    return f"hobhob-history-{window.start}-{window.end}.csv"
