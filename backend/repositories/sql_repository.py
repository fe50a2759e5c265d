"""
sql_repository.py — SQLAlchemy-backed stores.
Each call opens its own session from the injected sessionmaker and commits
or rolls back before returning.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError

from errors import Conflict
from models.user import User
from models.habit import Habit
from models.streak_entry import StreakEntry
from repositories.base import HabitRepository, UserRepository, PROTECTED_FIELDS

logger = logging.getLogger(__name__)

HABIT_COLUMNS = ("title", "description", "category", "frequency", "goal", "color", "icon")


def _iso(value) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        # SQLite hands back naive datetimes; everything is stored in UTC
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def _parse_ts(value):
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    return value


class SqlUserRepository(UserRepository):
    def __init__(self, session_factory):
        self._session_factory = session_factory

    @staticmethod
    def _to_dict(u: User) -> dict:
        return {
            "id": u.id,
            "username": u.username,
            "email": u.email,
            "password_hash": u.password_hash,
            "created_at": _iso(u.created_at),
        }

    def insert(self, user: dict) -> dict:
        with self._session_factory() as db:
            if db.query(User).filter_by(email=user["email"]).first():
                raise Conflict("User already exists")
            u = User(
                username=user["username"],
                email=user["email"],
                password_hash=user["password_hash"],
            )
            if user.get("created_at"):
                u.created_at = _parse_ts(user["created_at"])
            db.add(u)
            try:
                db.commit()
            except IntegrityError:
                # lost a race with a concurrent registration of the same email
                db.rollback()
                raise Conflict("User already exists")
            db.refresh(u)
            return self._to_dict(u)

    def find_by_email(self, email: str) -> dict | None:
        with self._session_factory() as db:
            u = db.query(User).filter_by(email=email).first()
            return self._to_dict(u) if u else None

    def find_by_id(self, user_id: int) -> dict | None:
        with self._session_factory() as db:
            u = db.get(User, user_id)
            return self._to_dict(u) if u else None


class SqlHabitRepository(HabitRepository):
    def __init__(self, session_factory):
        super().__init__()
        self._session_factory = session_factory

    @staticmethod
    def _to_dict(h: Habit) -> dict:
        return {
            "id": h.id,
            "user_id": h.user_id,
            "title": h.title,
            "description": h.description,
            "category": h.category,
            "frequency": h.frequency,
            "goal": h.goal,
            "color": h.color,
            "icon": h.icon,
            "created_at": _iso(h.created_at),
            "streaks": [
                {"date": e.date, "completed": e.completed, "count": e.count}
                for e in h.streaks
            ],
        }

    @staticmethod
    def _sync_streaks(h: Habit, entries: list[dict]):
        """Make the habit's entry rows match entries, updating rows in place by date."""
        existing = {e.date: e for e in h.streaks}
        wanted = set()
        for entry in entries:
            wanted.add(entry["date"])
            row = existing.get(entry["date"])
            if row is not None:
                row.completed = entry["completed"]
                row.count = entry["count"]
            else:
                h.streaks.append(StreakEntry(
                    date=entry["date"],
                    completed=entry["completed"],
                    count=entry["count"],
                ))
        for row in list(h.streaks):
            if row.date not in wanted:
                h.streaks.remove(row)

    def _owned(self, db, habit_id: int, user_id: int) -> Habit | None:
        return db.query(Habit).filter_by(id=habit_id, user_id=user_id).first()

    def insert(self, habit: dict) -> dict:
        with self._session_factory() as db:
            try:
                h = Habit(user_id=habit["user_id"], **{k: habit[k] for k in HABIT_COLUMNS if k in habit})
                if habit.get("created_at"):
                    h.created_at = _parse_ts(habit["created_at"])
                self._sync_streaks(h, habit.get("streaks", []))
                db.add(h)
                db.commit()
                db.refresh(h)
                return self._to_dict(h)
            except Exception:
                db.rollback()
                raise

    def find_by_owner(self, user_id: int) -> list[dict]:
        with self._session_factory() as db:
            habits = db.query(Habit).filter_by(user_id=user_id).order_by(Habit.id).all()
            return [self._to_dict(h) for h in habits]

    def find_one(self, habit_id: int, user_id: int) -> dict | None:
        with self._session_factory() as db:
            h = self._owned(db, habit_id, user_id)
            return self._to_dict(h) if h else None

    def update(self, habit_id: int, user_id: int, fields: dict) -> dict | None:
        with self._session_factory() as db:
            try:
                h = self._owned(db, habit_id, user_id)
                if not h:
                    return None
                for k, v in fields.items():
                    if k in PROTECTED_FIELDS:
                        continue
                    if k == "streaks":
                        self._sync_streaks(h, v)
                    elif k in HABIT_COLUMNS:
                        setattr(h, k, v)
                    elif k == "created_at":
                        h.created_at = _parse_ts(v)
                    else:
                        logger.warning(f"Ignoring unknown habit column on update: {k}")
                db.commit()
                db.refresh(h)
                return self._to_dict(h)
            except Exception:
                db.rollback()
                raise

    def remove(self, habit_id: int, user_id: int) -> dict | None:
        with self._session_factory() as db:
            try:
                h = self._owned(db, habit_id, user_id)
                if not h:
                    return None
                snapshot = self._to_dict(h)
                db.delete(h)
                db.commit()
            except Exception:
                db.rollback()
                raise
        return snapshot
