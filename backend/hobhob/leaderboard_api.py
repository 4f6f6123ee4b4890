import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from .dates import TIMEZONE_ERRORS, Clock
from .deps import CurrentUser, get_clock, get_current_user, get_store
from .leaderboard import LeaderboardEntry, build_leaderboard_entry, rank_leaderboard, search_leaderboard
from .schemas import LeaderboardResponse, LeaderboardUserResponse
from .store import UserStore, list_users_named


logger = logging.getLogger("hobhob-leaderboard")

router = APIRouter(prefix="/v1/leaderboard", tags=["Leaderboard"])


def _to_response(entry: LeaderboardEntry) -> LeaderboardUserResponse:
    return LeaderboardUserResponse(
        uid=entry.uid,
        displayName=entry.display_name,
        photoURL=entry.photo_url,
        totalStreak=entry.total_streak,
        bestStreak=entry.best_streak,
    )


@router.get("", response_model=LeaderboardResponse)
async def get_leaderboard(
    q: Optional[str] = Query(default=None),
    limit: int = Query(default=50, ge=1, le=500),
    _user: CurrentUser = Depends(get_current_user),
    store: UserStore = Depends(get_store),
    clock: Clock = Depends(get_clock),
):
    users = await list_users_named(store, "leaderboard.users")

    entries: list[LeaderboardEntry] = []
    for uid, snapshot in users.items():
        try:
            entries.append(build_leaderboard_entry(uid, snapshot, clock=clock))
        except TIMEZONE_ERRORS:
            logger.warning("LEADERBOARD_USER_SKIPPED uid=%s reason=invalid_timezone", uid)

    if q is not None:
        entries = search_leaderboard(entries, q)
    ranked = rank_leaderboard(entries)[:limit]
    return LeaderboardResponse(users=[_to_response(entry) for entry in ranked])
