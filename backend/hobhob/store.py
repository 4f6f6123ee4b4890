import copy
import logging
import time
from typing import Any, Callable, Optional, Protocol

from .config import settings
from .dates import Clock
from .observability import current_log_context, duration_ms
from .streaks import HabitStats, compute_habit_stats

logger = logging.getLogger("hobhob-store")

CheckinsListener = Callable[[dict[str, Any]], None]
Unsubscribe = Callable[[], None]


class UserStore(Protocol):
    async def get_user(self, uid: str) -> Optional[dict[str, Any]]: ...

    async def list_users(self) -> dict[str, dict[str, Any]]: ...

    async def set_last_push_date(self, uid: str, day: str) -> None: ...


def _slow_read_threshold_ms() -> int:
    return max(0, int(settings.STORE_SLOW_READ_MS))


def _log_slow_read(read_name: str, started_at: float) -> None:
    threshold_ms = _slow_read_threshold_ms()
    if threshold_ms <= 0:
        return

    duration = duration_ms(started_at)
    if duration < threshold_ms:
        return

    payload = {
        **current_log_context(),
        "read_name": read_name,
        "duration_ms": duration,
        "threshold_ms": threshold_ms,
    }
    logger.warning("STORE_SLOW_READ context=%s", payload)


async def get_user_named(store: UserStore, read_name: str, uid: str) -> dict[str, Any]:
    started_at = time.monotonic()
    try:
        user = await store.get_user(uid)
    finally:
        _log_slow_read(read_name=read_name, started_at=started_at)
    return user if isinstance(user, dict) else {}


async def list_users_named(store: UserStore, read_name: str) -> dict[str, dict[str, Any]]:
    started_at = time.monotonic()
    try:
        users = await store.list_users()
    finally:
        _log_slow_read(read_name=read_name, started_at=started_at)
    return users if isinstance(users, dict) else {}


class InMemoryUserStore:
    """
    Document tree shaped like the realtime database ``users/{uid}`` node.

    Reads hand out deep copies so callers always work on a point-in-time
    snapshot; check-in listeners get the full check-in map on subscribe and
    after every write.
    """

    def __init__(self, users: Optional[dict[str, dict[str, Any]]] = None):
        self._users: dict[str, dict[str, Any]] = copy.deepcopy(users) if users else {}
        self._listeners: dict[str, list[CheckinsListener]] = {}

    async def get_user(self, uid: str) -> Optional[dict[str, Any]]:
        user = self._users.get(uid)
        return copy.deepcopy(user) if user is not None else None

    async def list_users(self) -> dict[str, dict[str, Any]]:
        return copy.deepcopy(self._users)

    async def set_last_push_date(self, uid: str, day: str) -> None:
        self._users.setdefault(uid, {})["lastPushNotification"] = day

    def put_user(self, uid: str, user: dict[str, Any]) -> None:
        self._users[uid] = copy.deepcopy(user)
        self._notify(uid)

    def checkins_snapshot(self, uid: str) -> dict[str, Any]:
        checkins = self._users.get(uid, {}).get("checkins")
        return copy.deepcopy(checkins) if isinstance(checkins, dict) else {}

    def set_checkin(self, uid: str, day: str, habit_id: str, value: Any) -> None:
        user = self._users.setdefault(uid, {})
        checkins = user.setdefault("checkins", {})
        if value is None:
            # Writing null removes the node, as in the realtime database.
            record = checkins.get(day, {})
            record.pop(habit_id, None)
            if not record:
                checkins.pop(day, None)
        else:
            checkins.setdefault(day, {})[habit_id] = copy.deepcopy(value)
        self._notify(uid)

    def listen_checkins(self, uid: str, callback: CheckinsListener) -> Unsubscribe:
        self._listeners.setdefault(uid, []).append(callback)
        callback(self.checkins_snapshot(uid))

        def unsubscribe() -> None:
            listeners = self._listeners.get(uid, [])
            if callback in listeners:
                listeners.remove(callback)

        return unsubscribe

    def _notify(self, uid: str) -> None:
        for callback in list(self._listeners.get(uid, [])):
            callback(self.checkins_snapshot(uid))


def watch_habit_stats(
    store: InMemoryUserStore,
    uid: str,
    habit_id: str,
    tz_name: str,
    on_stats: Callable[[HabitStats], None],
    *,
    clock: Optional[Clock] = None,
) -> Unsubscribe:
    def _recompute(checkins: dict[str, Any]) -> None:
        on_stats(compute_habit_stats(checkins, habit_id, tz_name, clock=clock))

    return store.listen_checkins(uid, _recompute)
