from dataclasses import dataclass
from typing import Any, Optional, Union


@dataclass(frozen=True)
class AnnotatedCheckin:
    checked: bool
    note: Optional[str] = None
    timestamp: Optional[int] = None


CheckinValue = Union[bool, AnnotatedCheckin]

# Three-valued day state: True checked, False logged but not checked, None no data.
CheckinState = Optional[bool]


def coerce_checkin_value(raw: Any) -> CheckinValue:
    """
    Convert a raw stored value into one of the two check-in variants.

    Legacy or malformed shapes collapse to ``False`` instead of raising.
    """
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, AnnotatedCheckin):
        return raw
    if isinstance(raw, dict):
        checked = raw.get("checked")
        if not isinstance(checked, bool):
            return False
        note = raw.get("note")
        timestamp = raw.get("timestamp")
        return AnnotatedCheckin(
            checked=checked,
            note=note if isinstance(note, str) else None,
            timestamp=timestamp if isinstance(timestamp, int) and not isinstance(timestamp, bool) else None,
        )
    return False


def is_checked(raw: Any) -> bool:
    value = coerce_checkin_value(raw)
    if isinstance(value, AnnotatedCheckin):
        return value.checked
    return value


def checkin_note(raw: Any) -> str:
    value = coerce_checkin_value(raw)
    if isinstance(value, AnnotatedCheckin) and value.note:
        return value.note
    return ""


def day_record(checkins: Any, day: str) -> dict[str, Any]:
    if not isinstance(checkins, dict):
        return {}
    record = checkins.get(day)
    if not isinstance(record, dict):
        return {}
    return record


def checkin_state(checkins: Any, day: str, habit_id: str) -> CheckinState:
    record = day_record(checkins, day)
    if habit_id not in record:
        return None
    return is_checked(record[habit_id])


def habit_states(checkins: Any, habit_id: str) -> dict[str, bool]:
    # Only dates that carry an entry for the habit.
    if not isinstance(checkins, dict):
        return {}
    states: dict[str, bool] = {}
    for day in checkins:
        state = checkin_state(checkins, day, habit_id)
        if state is not None:
            states[day] = state
    return states


def count_checked(record: Any) -> int:
    if not isinstance(record, dict):
        return 0
    return sum(1 for value in record.values() if is_checked(value))


def toggle_value(current: CheckinState) -> bool:
    return current is not True
