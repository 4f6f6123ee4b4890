from dataclasses import dataclass, field
from typing import Any, Optional

from fastapi import Header, Request

from .config import settings
from .dates import Clock, is_valid_timezone, utc_now
from .errors import invalid_timezone, unauthorized
from .habits import Habit, parse_habits
from .store import UserStore, get_user_named


@dataclass
class CurrentUser:
    uid: str
    timezone: str
    snapshot: dict[str, Any] = field(default_factory=dict)

    @property
    def checkins(self) -> dict[str, Any]:
        checkins = self.snapshot.get("checkins")
        return checkins if isinstance(checkins, dict) else {}

    @property
    def profile(self) -> dict[str, Any]:
        profile = self.snapshot.get("profile")
        return profile if isinstance(profile, dict) else {}

    @property
    def habits(self) -> list[Habit]:
        return parse_habits(self.snapshot.get("habits"))


def get_store(request: Request) -> UserStore:
    return request.app.state.store


def get_clock(request: Request) -> Clock:
    return getattr(request.app.state, "clock", None) or utc_now


def resolve_timezone(profile: dict[str, Any]) -> str:
    raw = profile.get("timezone")
    tz_name = raw.strip() if isinstance(raw, str) and raw.strip() else settings.DEFAULT_TIMEZONE
    if not is_valid_timezone(tz_name):
        raise invalid_timezone(tz_name)
    return tz_name


async def get_current_user(
    request: Request,
    x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
) -> CurrentUser:
    """
    Resolve the caller from the uid forwarded by the identity provider.

    Unknown users get an empty snapshot so every stat comes back zero-valued.
    """
    uid = (x_user_id or "").strip()
    if not uid:
        raise unauthorized()

    snapshot = await get_user_named(get_store(request), "deps.current_user", uid)
    profile = snapshot.get("profile") if isinstance(snapshot.get("profile"), dict) else {}
    return CurrentUser(uid=uid, timezone=resolve_timezone(profile), snapshot=snapshot)
