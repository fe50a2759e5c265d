"""
Storage selection. STORAGE_BACKEND picks the implementation once per
process; get_user_repository / get_habit_repository are the FastAPI
dependencies that hand the shared stores to routes.
"""

import logging
import threading

from config import STORAGE_BACKEND
from repositories.base import HabitRepository, UserRepository
from repositories.memory_repository import InMemoryHabitRepository, InMemoryUserRepository

logger = logging.getLogger(__name__)

_repositories: tuple[UserRepository, HabitRepository] | None = None
_init_lock = threading.Lock()


def build_repositories(backend: str = STORAGE_BACKEND) -> tuple[UserRepository, HabitRepository]:
    if backend == "memory":
        logger.info("Using in-memory storage; data is lost on restart.")
        return InMemoryUserRepository(), InMemoryHabitRepository()
    if backend == "sql":
        from database import SessionLocal, init_db
        from repositories.sql_repository import SqlHabitRepository, SqlUserRepository

        init_db()
        return SqlUserRepository(SessionLocal), SqlHabitRepository(SessionLocal)
    raise ValueError(f"Unknown STORAGE_BACKEND: {backend!r} (expected 'memory' or 'sql')")


def _shared() -> tuple[UserRepository, HabitRepository]:
    global _repositories
    with _init_lock:
        if _repositories is None:
            _repositories = build_repositories()
        return _repositories


def get_user_repository() -> UserRepository:
    return _shared()[0]


def get_habit_repository() -> HabitRepository:
    return _shared()[1]


__all__ = [
    "UserRepository",
    "HabitRepository",
    "InMemoryUserRepository",
    "InMemoryHabitRepository",
    "build_repositories",
    "get_user_repository",
    "get_habit_repository",
]
