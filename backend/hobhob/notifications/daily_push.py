import logging
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from ..checkins import day_record, is_checked
from ..config import settings
from ..dates import TIMEZONE_ERRORS, Clock, current_hour, require_date_key, today, utc_now
from ..habits import active_habits, parse_habits, should_track_on
from ..observability import bind_log_context, reset_log_context
from ..store import UserStore, list_users_named


logger = logging.getLogger("hobhob-push")

NOTIFICATION_TITLE = "HobHob Daily Summary"
NOTIFICATION_TYPE_DAILY_SUMMARY = "daily-summary"
TARGET_STATUS_ACTIVE = "ACTIVE"

# (subscription, notification) -> delivered
PushSender = Callable[[dict[str, Any], dict[str, Any]], Awaitable[bool]]


@dataclass
class DailyPushRunStats:
    total_scanned: int = 0
    eligible: int = 0
    sent: int = 0
    skipped: int = 0
    failed: int = 0


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count > 1 else ''}"


def build_daily_summary_body(remaining_habits: int, active_targets: int) -> str:
    if remaining_habits > 0 and active_targets > 0:
        return f"{_plural(remaining_habits, 'habit')} left, {_plural(active_targets, 'target')} active"
    if remaining_habits > 0:
        return f"{_plural(remaining_habits, 'habit')} to complete today"
    if active_targets > 0:
        return f"{_plural(active_targets, 'target')} to work on"
    return ""


def count_remaining_habits(user: dict[str, Any], day: str) -> int:
    local_day = require_date_key(day)
    record = day_record(user.get("checkins"), day)
    remaining = 0
    for habit in active_habits(parse_habits(user.get("habits"))):
        if not should_track_on(habit, local_day):
            continue
        if is_checked(record.get(habit.id)):
            continue
        remaining += 1
    return remaining


def count_active_targets(user: dict[str, Any], now_ms: int) -> int:
    targets = user.get("targetInstances")
    if not isinstance(targets, dict):
        return 0
    active = 0
    for instance in targets.values():
        if not isinstance(instance, dict) or instance.get("status") != TARGET_STATUS_ACTIVE:
            continue
        window_end = instance.get("windowEnd")
        if isinstance(window_end, (int, float)) and now_ms > window_end:
            continue
        active += 1
    return active


def enabled_push_subscriptions(user: dict[str, Any]) -> dict[str, dict[str, Any]]:
    subscriptions = user.get("pushSubscriptions")
    if not isinstance(subscriptions, dict):
        return {}
    return {
        device_id: data
        for device_id, data in subscriptions.items()
        if isinstance(data, dict) and data.get("enabled") is True and isinstance(data.get("subscription"), dict)
    }


def build_notification(body: str, *, day: str, remaining_habits: int, active_targets: int, app_origin: str) -> dict[str, Any]:
    origin = app_origin.rstrip("/")
    return {
        "title": NOTIFICATION_TITLE,
        "body": body,
        "icon": f"{origin}/icons/icon-192x192.png",
        "badge": f"{origin}/icons/badge-72x72.png",
        "data": {
            "type": NOTIFICATION_TYPE_DAILY_SUMMARY,
            "remainingHabits": remaining_habits,
            "activeTargets": active_targets,
            "date": day,
        },
    }


async def _send_to_subscriptions(
    uid: str,
    subscriptions: dict[str, dict[str, Any]],
    notification: dict[str, Any],
    sender: PushSender,
) -> int:
    delivered = 0
    for device_id, data in subscriptions.items():
        try:
            ok = await sender(data["subscription"], notification)
        except Exception:
            logger.warning("DAILY_PUSH_SEND_FAILED uid=%s device_id=%s", uid, device_id, exc_info=True)
            ok = False
        if ok:
            delivered += 1
    return delivered


async def run_daily_push(
    store: UserStore,
    *,
    sender: PushSender,
    clock: Optional[Clock] = None,
    push_hour: Optional[int] = None,
    app_origin: Optional[str] = None,
    job_run_id: Optional[str] = None,
) -> DailyPushRunStats:
    clock = clock or utc_now
    target_hour = settings.get_daily_push_hour() if push_hour is None else push_hour
    origin = settings.APP_ORIGIN if app_origin is None else app_origin
    run_id = job_run_id or str(uuid.uuid4())
    now_ms = int(clock().timestamp() * 1000)

    job_token = bind_log_context(job_run_id=run_id)
    try:
        users = await list_users_named(store, "daily_push.users")
        stats = DailyPushRunStats(total_scanned=len(users))

        for uid, user in users.items():
            try:
                profile = user.get("profile") if isinstance(user, dict) else None
                tz_name = profile.get("timezone") if isinstance(profile, dict) else None
                if not isinstance(tz_name, str) or not tz_name.strip():
                    stats.skipped += 1
                    continue

                if current_hour(tz_name, clock) != target_hour:
                    stats.skipped += 1
                    continue

                local_today = today(tz_name, clock)
                if user.get("lastPushNotification") == local_today:
                    logger.info("DAILY_PUSH_ALREADY_SENT job_run_id=%s uid=%s date=%s", run_id, uid, local_today)
                    stats.skipped += 1
                    continue

                stats.eligible += 1
                remaining_habits = count_remaining_habits(user, local_today)
                active_targets = count_active_targets(user, now_ms)
                if remaining_habits == 0 and active_targets == 0:
                    await store.set_last_push_date(uid, local_today)
                    stats.skipped += 1
                    continue

                subscriptions = enabled_push_subscriptions(user)
                if not subscriptions:
                    stats.skipped += 1
                    continue

                notification = build_notification(
                    build_daily_summary_body(remaining_habits, active_targets),
                    day=local_today,
                    remaining_habits=remaining_habits,
                    active_targets=active_targets,
                    app_origin=origin,
                )
                delivered = await _send_to_subscriptions(uid, subscriptions, notification, sender)
                if delivered > 0:
                    await store.set_last_push_date(uid, local_today)
                    stats.sent += delivered
                    logger.info(
                        "DAILY_PUSH_SENT job_run_id=%s uid=%s date=%s delivered=%s",
                        run_id,
                        uid,
                        local_today,
                        delivered,
                    )
                else:
                    stats.failed += 1
            except TIMEZONE_ERRORS:
                logger.warning("DAILY_PUSH_INVALID_TIMEZONE job_run_id=%s uid=%s", run_id, uid)
                stats.failed += 1
            except Exception:
                logger.exception("DAILY_PUSH_USER_FAILED job_run_id=%s uid=%s", run_id, uid)
                stats.failed += 1

        logger.info(
            "DAILY_PUSH_SUMMARY job_run_id=%s total_scanned=%s eligible=%s sent=%s skipped=%s failed=%s",
            run_id,
            stats.total_scanned,
            stats.eligible,
            stats.sent,
            stats.skipped,
            stats.failed,
        )
        return stats
    finally:
        reset_log_context(job_token)
