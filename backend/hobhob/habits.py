import logging
from datetime import date
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .dates import Clock, require_date_key, today


logger = logging.getLogger("hobhob-habits")

FREQUENCY_DAILY = "daily"
FREQUENCY_WEEKLY = "weekly"
FREQUENCY_MONTHLY = "monthly"

WEEKDAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


class Habit(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    name: str = ""
    description: Optional[str] = None
    icon: str = ""
    color: str = ""
    frequency: str = FREQUENCY_DAILY
    target_days: list[int] = Field(default_factory=list, alias="targetDays")
    is_active: bool = Field(default=True, alias="isActive")
    created_at: int = Field(default=0, alias="createdAt")
    updated_at: int = Field(default=0, alias="updatedAt")
    circle_id: Optional[str] = Field(default=None, alias="circleId")


def parse_habits(raw: Any) -> list[Habit]:
    if not isinstance(raw, dict):
        return []
    habits: list[Habit] = []
    for habit_id, payload in raw.items():
        if not isinstance(payload, dict):
            continue
        try:
            habits.append(Habit.model_validate({"id": str(habit_id), **payload}))
        except ValidationError:
            logger.warning("HABIT_SKIPPED habit_id=%s reason=invalid_shape", habit_id)
    return habits


def should_track_on(habit: Habit, day: date) -> bool:
    if habit.frequency == FREQUENCY_DAILY:
        return True

    if habit.frequency == FREQUENCY_WEEKLY:
        if not habit.target_days:
            return True
        return day.weekday() in habit.target_days

    if habit.frequency == FREQUENCY_MONTHLY:
        if not habit.target_days:
            return day.day == 1
        return day.day in habit.target_days

    return True


def should_show_habit_today(habit: Habit, tz_name: str, *, clock: Optional[Clock] = None) -> bool:
    return should_track_on(habit, require_date_key(today(tz_name, clock)))


def filter_habits_for_today(habits: list[Habit], tz_name: str, *, clock: Optional[Clock] = None) -> list[Habit]:
    local_day = require_date_key(today(tz_name, clock))
    return [habit for habit in habits if should_track_on(habit, local_day)]


def active_habits(habits: list[Habit]) -> list[Habit]:
    return [habit for habit in habits if habit.is_active]


def _ordinal(n: int) -> str:
    suffixes = ["th", "st", "nd", "rd"]
    v = n % 100
    if 11 <= v <= 13:
        return f"{n}th"
    return f"{n}{suffixes[n % 10] if n % 10 < 4 else 'th'}"


def frequency_text(habit: Habit) -> str:
    if habit.frequency == FREQUENCY_DAILY:
        return "Every day"

    if habit.frequency == FREQUENCY_WEEKLY and habit.target_days:
        days = [WEEKDAY_NAMES[d] for d in sorted(set(habit.target_days)) if 0 <= d < len(WEEKDAY_NAMES)]
        if len(days) == 7:
            return "Every day"
        if len(days) == 1:
            return f"Every {days[0]}"
        if len(days) == 2:
            return f"{days[0]} & {days[1]}"
        if days:
            return f"{', '.join(days[:2])} + {len(days) - 2} more"

    if habit.frequency == FREQUENCY_MONTHLY and habit.target_days:
        if len(habit.target_days) == 1:
            return f"Monthly on {_ordinal(habit.target_days[0])}"
        if len(habit.target_days) == 31:
            return "Every day"
        return f"{len(habit.target_days)} days/month"

    return "Custom"
