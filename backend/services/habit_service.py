"""
habit_service.py — Habits & daily tracking
Validates habit fields, restricts every operation to the owner and records
one streak entry per habit per calendar date.
"""

import logging
from datetime import date, datetime, timezone

from errors import ValidationError, NotFound
from repositories.base import HabitRepository

logger = logging.getLogger(__name__)

CATEGORIES = ("health", "work", "learning", "sport", "other")
FREQUENCIES = ("daily", "weekly", "monthly")

DEFAULTS = {
    "description": "",
    "category": "other",
    "frequency": "daily",
    "goal": 1,
    "color": "#3B82F6",
    "icon": "📝",
}

# Only these may be changed through update(); everything else in the payload is dropped.
MUTABLE_FIELDS = ("title", "description", "category", "frequency", "goal", "color", "icon")

# Column sizes in models/habit.py; checked here so every store rejects the same input.
MAX_LENGTHS = {"title": 200, "color": 20, "icon": 10}


def canonical_date(value) -> str:
    """YYYY-MM-DD form of a date, datetime or ISO-formatted string."""
    if value is None:
        return datetime.now(timezone.utc).date().isoformat()
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    try:
        if len(text) == 10:
            return date.fromisoformat(text).isoformat()
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        raise ValidationError(f"Invalid date: {value!r}")


def _validate(fields: dict):
    if "title" in fields:
        title = fields["title"]
        if not isinstance(title, str) or not title.strip():
            raise ValidationError("Title is required")
        fields["title"] = title.strip()
    if "category" in fields and fields["category"] not in CATEGORIES:
        raise ValidationError(f"Category must be one of: {', '.join(CATEGORIES)}")
    if "frequency" in fields and fields["frequency"] not in FREQUENCIES:
        raise ValidationError(f"Frequency must be one of: {', '.join(FREQUENCIES)}")
    if "goal" in fields:
        goal = fields["goal"]
        if isinstance(goal, bool) or not isinstance(goal, int) or goal < 1:
            raise ValidationError("Goal must be a positive integer")
    for name, limit in MAX_LENGTHS.items():
        value = fields.get(name)
        if value is not None and (not isinstance(value, str) or len(value) > limit):
            raise ValidationError(f"{name.capitalize()} must be a string of at most {limit} characters")
    if "description" in fields and not isinstance(fields["description"], str):
        raise ValidationError("Description must be a string")


class HabitService:
    def __init__(self, habits: HabitRepository):
        self.habits = habits

    def create(self, user_id: int, data: dict) -> dict:
        # None means "not provided" so the default applies
        fields = {k: v for k, v in data.items() if k in MUTABLE_FIELDS and v is not None}
        if "title" not in fields:
            raise ValidationError("Title is required")
        _validate(fields)

        habit = {**DEFAULTS, **fields}
        habit["user_id"] = user_id
        habit["streaks"] = []
        habit["created_at"] = datetime.now(timezone.utc).isoformat()

        created = self.habits.insert(habit)
        logger.info(f"Habit created: {created['title']!r} (id={created['id']}) for user {user_id}")
        return created

    def get_all(self, user_id: int) -> list[dict]:
        return self.habits.find_by_owner(user_id)

    def get(self, user_id: int, habit_id: int) -> dict:
        h = self.habits.find_one(habit_id, user_id)
        if h is None:
            raise NotFound("Habit not found")
        return h

    def update(self, user_id: int, habit_id: int, data: dict) -> dict:
        # an explicit null leaves the field as it is, same as create treating it as absent
        fields = {k: v for k, v in data.items() if k in MUTABLE_FIELDS and v is not None}
        _validate(fields)
        with self.habits.habit_lock(habit_id):
            updated = self.habits.update(habit_id, user_id, fields)
        if updated is None:
            raise NotFound("Habit not found")
        logger.info(f"Habit {habit_id} updated: {sorted(fields)}")
        return updated

    def delete(self, user_id: int, habit_id: int) -> dict:
        with self.habits.habit_lock(habit_id):
            deleted = self.habits.remove(habit_id, user_id)
        if deleted is None:
            raise NotFound("Habit not found")
        logger.info(f"Habit {habit_id} deleted by user {user_id}")
        return deleted

    def track(self, user_id: int, habit_id: int, day=None, completed: bool = False) -> dict:
        """Overwrite the entry for day in place, or append one. Never duplicates a date."""
        d = canonical_date(day)
        completed = bool(completed)
        count = 1 if completed else 0

        with self.habits.habit_lock(habit_id):
            h = self.habits.find_one(habit_id, user_id)
            if h is None:
                raise NotFound("Habit not found")

            streaks = h.get("streaks") or []
            for entry in streaks:
                if entry["date"] == d:
                    entry["completed"] = completed
                    entry["count"] = count
                    break
            else:
                streaks.append({"date": d, "completed": completed, "count": count})

            updated = self.habits.update(habit_id, user_id, {"streaks": streaks})

        if updated is None:
            raise NotFound("Habit not found")
        logger.info(f"Habit {habit_id} tracked on {d}: completed={completed}")
        return updated
