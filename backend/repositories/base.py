"""
base.py — Storage interfaces for users and habits.
Services only talk to these, so the in-memory store and the SQL store are
interchangeable. Records cross this boundary as plain dicts.
"""

import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager

# Never overwritten by update(), whatever the caller passes in.
PROTECTED_FIELDS = ("id", "user_id")


class UserRepository(ABC):
    """Abstract user store. Email is unique across all users."""

    @abstractmethod
    def insert(self, user: dict) -> dict:
        """
        Assign a new id and store the user.

        Raises:
            Conflict: the email is already registered.
        """
        ...

    @abstractmethod
    def find_by_email(self, email: str) -> dict | None:
        ...

    @abstractmethod
    def find_by_id(self, user_id: int) -> dict | None:
        ...


class HabitRepository(ABC):
    """
    Abstract habit store.

    Lookups that take a user_id return None both when the habit does not
    exist and when it belongs to someone else, so a non-owner cannot learn
    that a habit exists.
    """

    def __init__(self):
        # habit_id -> [lock, number of callers holding or waiting on it]
        self._locks: dict[int, list] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def habit_lock(self, habit_id: int):
        """
        Serialize read-modify-write sequences on one habit.
        The entry is dropped once the last holder or waiter leaves, so ids
        that never existed do not pile up.
        """
        with self._locks_guard:
            entry = self._locks.get(habit_id)
            if entry is None:
                entry = self._locks[habit_id] = [threading.Lock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[habit_id]

    @abstractmethod
    def insert(self, habit: dict) -> dict:
        """Assign a new unique id, store the habit and return the stored record."""
        ...

    @abstractmethod
    def find_by_owner(self, user_id: int) -> list[dict]:
        """All habits owned by user_id, in insertion order."""
        ...

    @abstractmethod
    def find_one(self, habit_id: int, user_id: int) -> dict | None:
        ...

    @abstractmethod
    def update(self, habit_id: int, user_id: int, fields: dict) -> dict | None:
        """
        Shallow-merge fields onto the habit and return the merged record.
        id and user_id are left untouched even if present in fields.
        A "streaks" key replaces the whole entry list.
        """
        ...

    @abstractmethod
    def remove(self, habit_id: int, user_id: int) -> dict | None:
        """Delete the habit with all its entries and return the deleted snapshot."""
        ...
