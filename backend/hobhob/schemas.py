from typing import List, Optional

from pydantic import BaseModel, Field


class CompletionRateResponse(BaseModel):
    completed: int = Field(..., ge=0)
    total: int = Field(..., ge=0)
    rate: int = Field(..., ge=0, le=100)


class HabitStatsResponse(BaseModel):
    habitId: str
    timezone: str
    asOf: str
    currentStreak: int = Field(..., ge=0)
    bestStreak: int = Field(..., ge=0)
    totalCheckins: int = Field(..., ge=0)
    completion7d: CompletionRateResponse
    completion30d: CompletionRateResponse


class DayCheckResponse(BaseModel):
    date: str
    checked: Optional[bool] = None


class HabitRangeResponse(BaseModel):
    habitId: str
    timezone: str
    days: List[DayCheckResponse]


class HeatmapDay(BaseModel):
    date: str
    completedCount: int = Field(..., ge=0)
    totalHabits: int = Field(..., ge=0)
    intensity: float = Field(..., ge=0)
    level: int = Field(..., ge=0, le=4)


class HeatmapResponse(BaseModel):
    timezone: str
    startDate: str
    endDate: str
    days: List[HeatmapDay]


class HistorySummaryResponse(BaseModel):
    startDate: str
    endDate: str
    habitId: str
    dates: List[str]
    completionRate: int = Field(..., ge=0, le=100)
    currentStreak: int = Field(..., ge=0)
    bestStreak: int = Field(..., ge=0)
    totalCheckins: int = Field(..., ge=0)
    completedCheckins: int = Field(..., ge=0)


class LeaderboardUserResponse(BaseModel):
    uid: str
    displayName: str
    photoURL: Optional[str] = None
    totalStreak: int = Field(..., ge=0)
    bestStreak: int = Field(..., ge=0)


class LeaderboardResponse(BaseModel):
    users: List[LeaderboardUserResponse]


class DailyPushResponse(BaseModel):
    success: bool
    jobRunId: str
    scanned: int = Field(..., ge=0)
    sent: int = Field(..., ge=0)
    skipped: int = Field(..., ge=0)
    errors: int = Field(..., ge=0)
