import re
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


Clock = Callable[[], datetime]

DEFAULT_TIMEZONE = "UTC"

# What ZoneInfo raises for unknown or malformed zone names.
TIMEZONE_ERRORS = (ZoneInfoNotFoundError, ValueError)

_DATE_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def require_timezone(tz_name: str) -> ZoneInfo:
    # Raises the zoneinfo error for unknown or malformed names.
    return ZoneInfo(tz_name)


def is_valid_timezone(tz_name: str) -> bool:
    if not isinstance(tz_name, str) or not tz_name.strip():
        return False
    try:
        ZoneInfo(tz_name)
    except TIMEZONE_ERRORS:
        return False
    return True


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def date_key(instant: datetime, tz_name: str) -> str:
    """
    Civil date (YYYY-MM-DD) of an absolute instant in the given IANA zone.

    Naive datetimes are taken as UTC. Unknown zone names raise the zoneinfo
    error unchanged.
    """
    zone = ZoneInfo(tz_name)
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(zone).date().isoformat()


def today(tz_name: str, clock: Optional[Clock] = None) -> str:
    return date_key((clock or utc_now)(), tz_name)


def current_hour(tz_name: str, clock: Optional[Clock] = None) -> int:
    instant = (clock or utc_now)()
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(ZoneInfo(tz_name)).hour


def parse_date_key(raw: object) -> Optional[date]:
    if isinstance(raw, date) and not isinstance(raw, datetime):
        return raw
    if not isinstance(raw, str) or not _DATE_KEY_RE.match(raw):
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        return None


def require_date_key(raw: str) -> date:
    parsed = parse_date_key(raw)
    if parsed is None:
        raise ValueError(f"invalid date key {raw!r}, expected YYYY-MM-DD")
    return parsed


def shift_date_key(key: str, days: int) -> str:
    return (require_date_key(key) + timedelta(days=days)).isoformat()


def date_range_keys(end_key: str, days: int) -> list[str]:
    # Oldest first, `days` entries ending at end_key inclusive.
    end = require_date_key(end_key)
    days = min(days, (end - date.min).days + 1)
    return [(end - timedelta(days=offset)).isoformat() for offset in range(days - 1, -1, -1)]
