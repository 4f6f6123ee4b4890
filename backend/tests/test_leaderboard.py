from datetime import datetime, timezone

from hobhob.leaderboard import (
    LeaderboardEntry,
    build_leaderboard_entry,
    rank_leaderboard,
    search_leaderboard,
    user_timezone,
)


CLOCK = lambda: datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)


def _entry(uid: str, name: str, total: int, best: int) -> LeaderboardEntry:
    return LeaderboardEntry(
        uid=uid,
        display_name=name,
        photo_url=None,
        timezone="UTC",
        total_streak=total,
        best_streak=best,
    )


def test_build_entry_sums_active_habit_streaks():
    user = {
        "profile": {"displayName": "Ana", "photoURL": "https://example.com/a.png", "timezone": "UTC"},
        "habits": {
            "a": {"name": "Read"},
            "b": {"name": "Run"},
            "c": {"name": "Old", "isActive": False},
        },
        "checkins": {
            "2024-01-01": {"c": True},
            "2024-01-02": {"c": True},
            "2024-01-03": {"c": True},
            "2024-01-04": {"c": True},
            "2024-01-08": {"a": True},
            "2024-01-09": {"a": True},
            "2024-01-10": {"a": True, "b": True},
        },
    }

    entry = build_leaderboard_entry("u1", user, clock=CLOCK)

    assert entry.uid == "u1"
    assert entry.display_name == "Ana"
    assert entry.photo_url == "https://example.com/a.png"
    assert entry.total_streak == 4
    assert entry.best_streak == 3


def test_build_entry_for_empty_user():
    entry = build_leaderboard_entry("u2", {}, clock=CLOCK)

    assert entry.display_name == ""
    assert entry.photo_url is None
    assert entry.timezone == "UTC"
    assert (entry.total_streak, entry.best_streak) == (0, 0)


def test_build_entry_uses_user_timezone():
    # 12:00 UTC on the 10th is already the 11th in Kiritimati (UTC+14).
    user = {
        "profile": {"displayName": "Kai", "timezone": "Pacific/Kiritimati"},
        "habits": {"a": {"name": "Walk"}},
        "checkins": {"2024-01-09": {"a": True}, "2024-01-10": {"a": True}},
    }

    entry = build_leaderboard_entry("u3", user, clock=CLOCK)

    assert entry.timezone == "Pacific/Kiritimati"
    assert entry.total_streak == 2


def test_user_timezone_falls_back_to_default():
    assert user_timezone({"profile": {"timezone": "  "}}) == "UTC"
    assert user_timezone({"profile": {"timezone": "Europe/Paris"}}) == "Europe/Paris"
    assert user_timezone(None, default="Asia/Tokyo") == "Asia/Tokyo"


def test_rank_orders_by_total_then_best_then_name():
    entries = [
        _entry("u1", "zoe", 5, 5),
        _entry("u2", "Bob", 5, 8),
        _entry("u3", "amy", 5, 5),
        _entry("u4", "Cal", 9, 1),
    ]

    assert [entry.uid for entry in rank_leaderboard(entries)] == ["u4", "u2", "u3", "u1"]


def test_search_is_case_insensitive_substring():
    entries = [_entry("u1", "Ana Lopez", 1, 1), _entry("u2", "Bob", 2, 2)]

    assert [entry.uid for entry in search_leaderboard(entries, "  LOP ")] == ["u1"]
    assert search_leaderboard(entries, "   ") == []
