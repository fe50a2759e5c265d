import os
import sys

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from main import app
from repositories import get_habit_repository, get_user_repository
from repositories.memory_repository import InMemoryHabitRepository, InMemoryUserRepository


@pytest.fixture
def user_repo():
    return InMemoryUserRepository()


@pytest.fixture
def habit_repo():
    return InMemoryHabitRepository()


@pytest.fixture
def client(user_repo, habit_repo):
    """TestClient wired to fresh in-memory stores."""
    app.dependency_overrides[get_user_repository] = lambda: user_repo
    app.dependency_overrides[get_habit_repository] = lambda: habit_repo
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def register(client, username="alice", email=None, password="secret123"):
    email = email or f"{username}@example.com"
    resp = client.post("/api/auth/register", json={"username": username, "email": email, "password": password})
    assert resp.status_code == 201, resp.text
    body = resp.json()
    return {"Authorization": f"Bearer {body['token']}"}, body["user"]


@pytest.fixture
def alice(client):
    return register(client, "alice")


@pytest.fixture
def bob(client):
    return register(client, "bob")
