"""
stats_service.py — Derived habit statistics
Completed-today count, longest current streak (per habit, maximum across
habits) and category breakdowns. Pure functions over habit dicts, shared by
the API and the client.
"""

from datetime import date, datetime, timedelta, timezone

from services.habit_service import CATEGORIES

DEFAULT_CATEGORY = "other"


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def to_day(value) -> date:
    """Calendar day of a date, datetime or ISO string, ignoring time of day."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def completed_today(habits: list[dict], today: date | None = None) -> int:
    """Number of habits with a completed entry for today."""
    today = today or utc_today()
    return sum(
        1 for h in habits
        if any(s.get("completed") is True and to_day(s["date"]) == today for s in h.get("streaks") or [])
    )


def habit_streak(habit: dict) -> int:
    """Run of consecutive completed days ending at the habit's most recent completed date."""
    days = sorted((to_day(s["date"]) for s in habit.get("streaks") or [] if s.get("completed")), reverse=True)
    streak = 0
    last = None
    for d in days:
        if last is None or (last - d).days == 1:
            streak += 1
        else:
            break
        last = d
    return streak


def longest_current_streak(habits: list[dict]) -> int:
    # Max over habits, not a combined cross-habit streak.
    return max((habit_streak(h) for h in habits), default=0)


def _category(habit: dict) -> str:
    c = habit.get("category")
    return c if c in CATEGORIES else DEFAULT_CATEGORY


def habits_by_category(habits: list[dict]) -> dict[str, list[dict]]:
    groups: dict[str, list[dict]] = {}
    for h in habits:
        groups.setdefault(_category(h), []).append(h)
    return groups


def category_stats(habits: list[dict]) -> dict[str, int]:
    return {c: len(hs) for c, hs in habits_by_category(habits).items()}


def last_7_days(today: date | None = None) -> list[str]:
    """ISO dates of the last seven days, oldest first, today last."""
    today = today or utc_today()
    return [(today - timedelta(days=i)).isoformat() for i in range(6, -1, -1)]


def summary(habits: list[dict], today: date | None = None) -> dict:
    return {
        "total_habits": len(habits),
        "completed_today": completed_today(habits, today),
        "current_streak": longest_current_streak(habits),
        "category_stats": category_stats(habits),
        "last_7_days": last_7_days(today),
    }
