from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from .dates import Clock, parse_date_key
from .deps import CurrentUser, get_clock, get_current_user
from .errors import validation_failed
from .history import (
    ALL_HABITS,
    HISTORY_PRESETS,
    HistoryWindow,
    export_history_csv,
    filter_history,
    history_filename,
    resolve_preset_range,
    summarize_history,
)
from .schemas import HistorySummaryResponse


router = APIRouter(prefix="/v1/history", tags=["History"])


def _resolve_window(
    user: CurrentUser,
    clock: Clock,
    preset: str,
    habit_id: str,
    start_raw: Optional[str],
    end_raw: Optional[str],
) -> HistoryWindow:
    if preset not in HISTORY_PRESETS:
        raise validation_failed("preset", f"must be one of {', '.join(HISTORY_PRESETS)}")

    start, end = resolve_preset_range(preset, user.timezone, clock=clock)
    if start_raw is not None:
        if parse_date_key(start_raw) is None:
            raise validation_failed("startDate", "must be YYYY-MM-DD")
        start = start_raw
    if end_raw is not None:
        if parse_date_key(end_raw) is None:
            raise validation_failed("endDate", "must be YYYY-MM-DD")
        end = end_raw
    if start > end:
        raise validation_failed("startDate", "must not be after endDate")

    return filter_history(user.checkins, start, end, habit_id or ALL_HABITS)


@router.get("", response_model=HistorySummaryResponse)
async def get_history(
    preset: str = Query(default="month"),
    habit_id: str = Query(default=ALL_HABITS, alias="habitId"),
    start_raw: Optional[str] = Query(default=None, alias="startDate"),
    end_raw: Optional[str] = Query(default=None, alias="endDate"),
    user: CurrentUser = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
):
    window = _resolve_window(user, clock, preset, habit_id, start_raw, end_raw)
    summary = summarize_history(window, user.timezone, clock=clock)
    return HistorySummaryResponse(
        startDate=window.start,
        endDate=window.end,
        habitId=window.habit_id,
        dates=window.dates,
        completionRate=summary.completion_rate,
        currentStreak=summary.current_streak,
        bestStreak=summary.best_streak,
        totalCheckins=summary.total_checkins,
        completedCheckins=summary.completed_checkins,
    )


@router.get("/export")
async def export_history(
    preset: str = Query(default="month"),
    habit_id: str = Query(default=ALL_HABITS, alias="habitId"),
    start_raw: Optional[str] = Query(default=None, alias="startDate"),
    end_raw: Optional[str] = Query(default=None, alias="endDate"),
    user: CurrentUser = Depends(get_current_user),
    clock: Clock = Depends(get_clock),
):
    window = _resolve_window(user, clock, preset, habit_id, start_raw, end_raw)
    return Response(
        content=export_history_csv(window, user.habits),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{history_filename(window)}"'},
    )
