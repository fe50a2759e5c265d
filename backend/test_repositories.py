import threading

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import init_db
from errors import Conflict
from repositories import build_repositories
from repositories.memory_repository import InMemoryHabitRepository, InMemoryUserRepository
from repositories.sql_repository import SqlHabitRepository, SqlUserRepository


def _sqlite_session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture(params=["memory", "sql"])
def repos(request):
    if request.param == "memory":
        return InMemoryUserRepository(), InMemoryHabitRepository()
    factory = _sqlite_session_factory()
    return SqlUserRepository(factory), SqlHabitRepository(factory)


def _habit(user_id, title, **extra):
    return {
        "user_id": user_id,
        "title": title,
        "description": "",
        "category": "other",
        "frequency": "daily",
        "goal": 1,
        "color": "#3B82F6",
        "icon": "📝",
        "created_at": "2024-01-01T09:00:00+00:00",
        "streaks": [],
        **extra,
    }


def test_insert_assigns_increasing_ids(repos):
    _, habits = repos
    a = habits.insert(_habit(1, "A"))
    b = habits.insert(_habit(1, "B"))
    assert b["id"] > a["id"]
    assert a["streaks"] == []
    assert a["created_at"].startswith("2024-01-01T09:00:00")

    # a removed id is never handed out again
    habits.remove(b["id"], 1)
    c = habits.insert(_habit(1, "C"))
    assert c["id"] > b["id"]


def test_find_by_owner_in_insertion_order(repos):
    _, habits = repos
    habits.insert(_habit(1, "first"))
    habits.insert(_habit(2, "someone else"))
    habits.insert(_habit(1, "second"))
    assert [h["title"] for h in habits.find_by_owner(1)] == ["first", "second"]
    assert habits.find_by_owner(3) == []


def test_find_one_requires_owner(repos):
    _, habits = repos
    h = habits.insert(_habit(2, "B's habit"))
    assert habits.find_one(h["id"], 2)["title"] == "B's habit"
    assert habits.find_one(h["id"], 1) is None
    assert habits.find_one(h["id"] + 100, 2) is None


def test_update_protects_id_and_owner(repos):
    _, habits = repos
    h = habits.insert(_habit(1, "Read"))
    updated = habits.update(h["id"], 1, {"id": 99, "user_id": 7, "title": "Read daily"})
    assert updated["id"] == h["id"]
    assert updated["user_id"] == 1
    assert updated["title"] == "Read daily"
    assert habits.update(h["id"], 7, {"title": "Stolen"}) is None


def test_update_streaks_replaces_entries_by_date(repos):
    _, habits = repos
    h = habits.insert(_habit(1, "Read"))
    habits.update(h["id"], 1, {"streaks": [
        {"date": "2024-01-01", "completed": True, "count": 1},
        {"date": "2024-01-02", "completed": True, "count": 1},
    ]})
    updated = habits.update(h["id"], 1, {"streaks": [
        {"date": "2024-01-01", "completed": False, "count": 0},
        {"date": "2024-01-02", "completed": True, "count": 1},
    ]})
    assert updated["streaks"] == [
        {"date": "2024-01-01", "completed": False, "count": 0},
        {"date": "2024-01-02", "completed": True, "count": 1},
    ]


def test_returned_records_are_copies(repos):
    _, habits = repos
    h = habits.insert(_habit(1, "Read"))
    h["title"] = "changed locally"
    h["streaks"].append({"date": "2024-01-01", "completed": True, "count": 1})
    stored = habits.find_one(h["id"], 1)
    assert stored["title"] == "Read"
    assert stored["streaks"] == []


def test_remove_returns_snapshot_and_cascades(repos):
    _, habits = repos
    h = habits.insert(_habit(1, "Read", streaks=[{"date": "2024-01-01", "completed": True, "count": 1}]))
    assert habits.remove(h["id"], 2) is None
    deleted = habits.remove(h["id"], 1)
    assert deleted["title"] == "Read"
    assert deleted["streaks"] == [{"date": "2024-01-01", "completed": True, "count": 1}]
    assert habits.find_one(h["id"], 1) is None
    assert habits.remove(h["id"], 1) is None


def test_user_email_is_unique(repos):
    users, _ = repos
    u = users.insert({"username": "a", "email": "a@example.com", "password_hash": "x"})
    with pytest.raises(Conflict):
        users.insert({"username": "b", "email": "a@example.com", "password_hash": "y"})
    assert users.find_by_email("a@example.com")["id"] == u["id"]
    assert users.find_by_id(u["id"])["username"] == "a"
    assert users.find_by_email("nobody@example.com") is None
    assert users.find_by_id(u["id"] + 1) is None


def test_concurrent_inserts_get_distinct_ids():
    habits = InMemoryHabitRepository()
    ids = []
    lock = threading.Lock()

    def worker():
        for _ in range(50):
            h = habits.insert(_habit(1, "x"))
            with lock:
                ids.append(h["id"])

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(set(ids)) == 400


def test_build_repositories_rejects_unknown_backend():
    with pytest.raises(ValueError):
        build_repositories("redis")


def test_user_ids_increase(repos):
    users, _ = repos
    a = users.insert({"username": "a", "email": "a@example.com", "password_hash": "x"})
    b = users.insert({"username": "b", "email": "b@example.com", "password_hash": "x"})
    assert b["id"] > a["id"]


def test_habit_lock_entries_are_released():
    habits = InMemoryHabitRepository()
    with habits.habit_lock(5):
        assert 5 in habits._locks
    assert habits._locks == {}

    with pytest.raises(RuntimeError):
        with habits.habit_lock(6):
            raise RuntimeError("boom")
    assert habits._locks == {}
