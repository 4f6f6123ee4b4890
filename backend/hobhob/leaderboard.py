from dataclasses import dataclass
from typing import Any, Optional

from .dates import DEFAULT_TIMEZONE, Clock, today
from .habits import active_habits, parse_habits
from .streaks import best_streak, current_streak


@dataclass(frozen=True)
class LeaderboardEntry:
    uid: str
    display_name: str
    photo_url: Optional[str]
    timezone: str
    total_streak: int
    best_streak: int


def user_timezone(user: Any, default: str = DEFAULT_TIMEZONE) -> str:
    profile = user.get("profile") if isinstance(user, dict) else None
    if isinstance(profile, dict):
        tz_name = profile.get("timezone")
        if isinstance(tz_name, str) and tz_name.strip():
            return tz_name.strip()
    return default


def build_leaderboard_entry(uid: str, user: Any, *, clock: Optional[Clock] = None) -> LeaderboardEntry:
    """
    Leaderboard scores for one user snapshot.

    ``total_streak`` sums the current streaks of active habits and
    ``best_streak`` is the longest run any habit ever reached, both evaluated
    in the user's own timezone.
    """
    user = user if isinstance(user, dict) else {}
    profile = user.get("profile") if isinstance(user.get("profile"), dict) else {}
    tz_name = user_timezone(user)
    checkins = user.get("checkins") or {}
    anchor = today(tz_name, clock)

    total = 0
    best = 0
    for habit in active_habits(parse_habits(user.get("habits"))):
        total += current_streak(checkins, habit.id, tz_name, anchor)
        best = max(best, best_streak(checkins, habit.id, tz_name))

    return LeaderboardEntry(
        uid=uid,
        display_name=str(profile.get("displayName") or ""),
        photo_url=profile.get("photoURL") or None,
        timezone=tz_name,
        total_streak=total,
        best_streak=best,
    )


def rank_leaderboard(entries: list[LeaderboardEntry]) -> list[LeaderboardEntry]:
    return sorted(entries, key=lambda entry: (-entry.total_streak, -entry.best_streak, entry.display_name.lower()))


def search_leaderboard(entries: list[LeaderboardEntry], query: str) -> list[LeaderboardEntry]:
    needle = (query or "").strip().lower()
    if not needle:
        return []
    return [entry for entry in entries if needle in entry.display_name.lower()]
