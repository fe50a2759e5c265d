"""
memory_repository.py — Process-lifetime stores backed by dicts.
Nothing survives a restart. Every mutation runs under the store lock and
callers always get copies, never the stored dicts themselves.
"""

import copy
import itertools
import threading

from errors import Conflict
from repositories.base import HabitRepository, UserRepository, PROTECTED_FIELDS


class InMemoryUserRepository(UserRepository):
    def __init__(self):
        self._users: dict[int, dict] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def insert(self, user: dict) -> dict:
        with self._lock:
            email = user["email"]
            if any(u["email"] == email for u in self._users.values()):
                raise Conflict("User already exists")
            record = dict(user)
            record["id"] = next(self._ids)
            self._users[record["id"]] = record
            return dict(record)

    def find_by_email(self, email: str) -> dict | None:
        with self._lock:
            for u in self._users.values():
                if u["email"] == email:
                    return dict(u)
            return None

    def find_by_id(self, user_id: int) -> dict | None:
        with self._lock:
            u = self._users.get(user_id)
            return dict(u) if u else None


class InMemoryHabitRepository(HabitRepository):
    def __init__(self):
        super().__init__()
        # dicts keep insertion order, which find_by_owner relies on
        self._habits: dict[int, dict] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def insert(self, habit: dict) -> dict:
        with self._lock:
            record = copy.deepcopy(habit)
            record["id"] = next(self._ids)
            record.setdefault("streaks", [])
            self._habits[record["id"]] = record
            return copy.deepcopy(record)

    def find_by_owner(self, user_id: int) -> list[dict]:
        with self._lock:
            return [copy.deepcopy(h) for h in self._habits.values() if h["user_id"] == user_id]

    def _owned(self, habit_id: int, user_id: int) -> dict | None:
        h = self._habits.get(habit_id)
        if h is None or h["user_id"] != user_id:
            return None
        return h

    def find_one(self, habit_id: int, user_id: int) -> dict | None:
        with self._lock:
            h = self._owned(habit_id, user_id)
            return copy.deepcopy(h) if h else None

    def update(self, habit_id: int, user_id: int, fields: dict) -> dict | None:
        with self._lock:
            h = self._owned(habit_id, user_id)
            if h is None:
                return None
            for k, v in fields.items():
                if k in PROTECTED_FIELDS:
                    continue
                h[k] = copy.deepcopy(v)
            return copy.deepcopy(h)

    def remove(self, habit_id: int, user_id: int) -> dict | None:
        with self._lock:
            h = self._owned(habit_id, user_id)
            if h is None:
                return None
            del self._habits[habit_id]
        return h
