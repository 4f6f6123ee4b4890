from typing import Optional

from fastapi import APIRouter, Depends, Query

from .checkins import count_checked, day_record
from .config import settings
from .dates import Clock, date_range_keys, parse_date_key, today
from .deps import CurrentUser, get_clock, get_current_user
from .errors import validation_failed
from .habits import active_habits
from .schemas import (
    CompletionRateResponse,
    DayCheckResponse,
    HabitRangeResponse,
    HabitStatsResponse,
    HeatmapDay,
    HeatmapResponse,
)
from .streaks import CompletionRate, completion_rate, compute_habit_stats, day_intensity, intensity_level, range_projection


router = APIRouter(prefix="/v1/stats", tags=["Stats"])


def _parse_as_of(raw_date: Optional[str]) -> Optional[str]:
    if raw_date is None:
        return None
    if parse_date_key(raw_date) is None:
        raise validation_failed("asOf", "must be YYYY-MM-DD")
    return raw_date


def _parse_days(raw_days: int, field: str = "days") -> int:
    max_days = settings.get_heatmap_max_days()
    if raw_days < 1 or raw_days > max_days:
        raise validation_failed(field, f"must be between 1 and {max_days}")
    return raw_days


def _completion_response(value: CompletionRate) -> CompletionRateResponse:
    return CompletionRateResponse(completed=value.completed, total=value.total, rate=value.rate)


@router.get("/habits/{habit_id}", response_model=HabitStatsResponse)
async def get_habit_stats(
    habit_id: str,
    as_of_raw: Optional[str] = Query(default=None, alias="asOf"),
    user: CurrentUser = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
):
    """
    Streaks and completion rates for one habit.

    Unknown habits and users without data get zero-valued stats.
    """
    as_of = _parse_as_of(as_of_raw) or today(user.timezone, clock)
    stats = compute_habit_stats(user.checkins, habit_id, user.timezone, as_of=as_of, clock=clock)
    return HabitStatsResponse(
        habitId=habit_id,
        timezone=user.timezone,
        asOf=as_of,
        currentStreak=stats.current_streak,
        bestStreak=stats.best_streak,
        totalCheckins=stats.total_checkins,
        completion7d=_completion_response(completion_rate(user.checkins, habit_id, 7, user.timezone, clock=clock)),
        completion30d=_completion_response(completion_rate(user.checkins, habit_id, 30, user.timezone, clock=clock)),
    )


@router.get("/habits/{habit_id}/range", response_model=HabitRangeResponse)
async def get_habit_range(
    habit_id: str,
    days: int = Query(default=30),
    user: CurrentUser = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
):
    projection = range_projection(user.checkins, habit_id, _parse_days(days), user.timezone, clock=clock)
    return HabitRangeResponse(
        habitId=habit_id,
        timezone=user.timezone,
        days=[DayCheckResponse(date=item.date, checked=item.checked) for item in projection],
    )


@router.get("/heatmap", response_model=HeatmapResponse)
async def get_heatmap(
    days: int = Query(default=30),
    user: CurrentUser = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
):
    total_habits = len(active_habits(user.habits))
    keys = date_range_keys(today(user.timezone, clock), _parse_days(days))

    heatmap_days: list[HeatmapDay] = []
    for key in keys:
        record = day_record(user.checkins, key)
        intensity = day_intensity(record, total_habits)
        heatmap_days.append(
            HeatmapDay(
                date=key,
                completedCount=count_checked(record),
                totalHabits=total_habits,
                intensity=intensity,
                level=intensity_level(intensity),
            )
        )

    return HeatmapResponse(
        timezone=user.timezone,
        startDate=keys[0],
        endDate=keys[-1],
        days=heatmap_days,
    )
