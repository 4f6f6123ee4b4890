import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Callable, Optional

from .checkins import CheckinState, checkin_state, count_checked, habit_states
from .dates import Clock, date_range_keys, parse_date_key, require_date_key, require_timezone, today


# Streaks older than a year are not followed further back.
MAX_STREAK_LOOKBACK_DAYS = 365

INTENSITY_THRESHOLDS = (0.25, 0.5, 0.75)


@dataclass(frozen=True)
class CompletionRate:
    completed: int
    total: int
    rate: int


@dataclass(frozen=True)
class DayCheck:
    date: str
    checked: Optional[bool]


@dataclass(frozen=True)
class HabitStats:
    current_streak: int
    best_streak: int
    total_checkins: int


def _is_consecutive(prev_date: date, curr_date: date) -> bool:
    return (curr_date - prev_date).days == 1


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def percent_of(part: int, whole: int) -> int:
    if whole <= 0:
        return 0
    return round_half_up(part / whole * 100)


def trailing_run(state_for: Callable[[str], CheckinState], anchor: date) -> int:
    """
    Count consecutive checked days walking back from ``anchor``.

    A day without data only breaks the run when it is before the anchor, so an
    anchor day that has not been logged yet keeps an ongoing streak alive.
    """
    streak = 0
    check_date = anchor
    for _ in range(MAX_STREAK_LOOKBACK_DAYS):
        state = state_for(check_date.isoformat())
        if state is True:
            streak += 1
        elif state is False:
            break
        elif check_date < anchor:
            break
        if check_date == date.min:
            break
        check_date -= timedelta(days=1)
    return streak


def longest_run(days: list[date]) -> int:
    best = 0
    current_run = 0
    prev_day: Optional[date] = None
    for day in sorted(set(days)):
        if prev_day is not None and _is_consecutive(prev_day, day):
            current_run += 1
        else:
            current_run = 1
        prev_day = day
        if current_run > best:
            best = current_run
    return best


def current_streak(
    checkins: Any,
    habit_id: str,
    tz_name: str,
    as_of: Optional[str] = None,
    *,
    clock: Optional[Clock] = None,
) -> int:
    if as_of is None:
        anchor = require_date_key(today(tz_name, clock))
    else:
        require_timezone(tz_name)
        anchor = require_date_key(as_of)
    return trailing_run(lambda day: checkin_state(checkins, day, habit_id), anchor)


def best_streak(checkins: Any, habit_id: str, tz_name: str) -> int:
    # Keys are already civil dates in tz_name; explicit misses and gaps both break a run.
    checked_days = []
    for day, state in habit_states(checkins, habit_id).items():
        parsed = parse_date_key(day)
        if state and parsed is not None:
            checked_days.append(parsed)
    return longest_run(checked_days)


def completion_rate(
    checkins: Any,
    habit_id: str,
    window_days: int,
    tz_name: str,
    *,
    clock: Optional[Clock] = None,
) -> CompletionRate:
    completed = 0
    total = 0
    for day in date_range_keys(today(tz_name, clock), window_days):
        state = checkin_state(checkins, day, habit_id)
        if state is None:
            continue
        total += 1
        if state:
            completed += 1
    return CompletionRate(completed=completed, total=total, rate=percent_of(completed, total))


def range_projection(
    checkins: Any,
    habit_id: str,
    days: int,
    tz_name: str,
    *,
    clock: Optional[Clock] = None,
) -> list[DayCheck]:
    return [
        DayCheck(date=day, checked=checkin_state(checkins, day, habit_id))
        for day in date_range_keys(today(tz_name, clock), days)
    ]


def day_intensity(record: Any, total_habits: int) -> float:
    if total_habits <= 0:
        return 0.0
    return count_checked(record) / total_habits


def intensity_level(intensity: float) -> int:
    if intensity <= 0:
        return 0
    for level, threshold in enumerate(INTENSITY_THRESHOLDS, start=1):
        if intensity < threshold:
            return level
    return len(INTENSITY_THRESHOLDS) + 1


def day_completion_percent(record: Any, total_habits: int) -> int:
    return percent_of(count_checked(record), total_habits)


def compute_habit_stats(
    checkins: Any,
    habit_id: str,
    tz_name: str,
    *,
    as_of: Optional[str] = None,
    clock: Optional[Clock] = None,
) -> HabitStats:
    states = habit_states(checkins, habit_id)
    return HabitStats(
        current_streak=current_streak(checkins, habit_id, tz_name, as_of, clock=clock),
        best_streak=best_streak(checkins, habit_id, tz_name),
        total_checkins=sum(1 for state in states.values() if state),
    )
