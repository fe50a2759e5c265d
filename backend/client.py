"""
client.py — Python client for the Habit Tracker API
Keeps the token, the logged-in user and a local copy of the user's habits,
mirrors every server-side mutation into that copy and derives the dashboard
statistics from it.
"""

import logging
from datetime import date

import httpx

from services import stats_service

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:5001"


class ClientError(Exception):
    """A request failed; message is the server's message when it sent one."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class HabitClient:
    def __init__(self, base_url: str = DEFAULT_BASE_URL, http: httpx.Client | None = None, token: str | None = None):
        self.http = http or httpx.Client(base_url=base_url, timeout=10)
        self.token: str | None = token
        self.user: dict | None = None
        self.habits: list[dict] = []
        self.error: str | None = None

    # ------------------------------------------------------------------
    def _request(self, method: str, path: str, fallback: str, json: dict | None = None) -> dict:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        logger.debug(f"API request: {method} {path} (token={'yes' if self.token else 'no'})")

        try:
            resp = self.http.request(method, path, json=json, headers=headers)
        except httpx.TimeoutException as e:
            self.error = "Request timeout. Server might be busy."
            raise ClientError(self.error) from e
        except httpx.TransportError as e:
            self.error = "Cannot connect to server. Please check if backend is running."
            raise ClientError(self.error) from e

        try:
            body = resp.json()
        except ValueError:
            body = {}

        if resp.is_error:
            if resp.status_code == 401:
                logger.info("401 Unauthorized - clearing auth data")
                self.clear_auth()
            message = body.get("message") if isinstance(body, dict) else None
            self.error = message or fallback
            logger.warning(f"API error [{resp.status_code}] {method} {path}: {self.error}")
            raise ClientError(self.error, resp.status_code)

        self.error = None
        return body

    # ------------------------------------------------------------------
    # Auth
    def _store_auth(self, body: dict) -> dict:
        token, user = body.get("token"), body.get("user")
        if not token or not user:
            self.error = "Invalid response from server"
            raise ClientError(self.error)
        self.token = token
        self.user = user
        return {"success": True, "token": token, "user": user}

    def register(self, username: str, email: str, password: str) -> dict:
        if not username or not email or not password:
            raise ClientError("Please fill in all fields")
        if len(password) < 6:
            raise ClientError("Password must be at least 6 characters")
        body = self._request("POST", "/api/auth/register", "Registration failed",
                             json={"username": username, "email": email, "password": password})
        return self._store_auth(body)

    def login(self, email: str, password: str) -> dict:
        body = self._request("POST", "/api/auth/login", "Login failed",
                             json={"email": email, "password": password})
        result = self._store_auth(body)
        self.fetch_habits()
        return result

    def clear_auth(self):
        self.token = None
        self.user = None
        self.habits = []

    def logout(self):
        self.clear_auth()

    # ------------------------------------------------------------------
    # Habits
    def fetch_habits(self) -> list[dict]:
        if not self.token:
            self.habits = []
            return []
        body = self._request("GET", "/api/habits", "Failed to fetch habits")
        self.habits = body.get("data") or []
        return self.habits

    def create_habit(self, title: str, **fields) -> dict:
        if not title or not title.strip():
            raise ClientError("Habit title is required")
        body = self._request("POST", "/api/habits", "Failed to create habit", json={"title": title, **fields})
        habit = body["data"]
        self.habits.insert(0, habit)
        return habit

    def update_habit(self, habit_id: int, **fields) -> dict:
        body = self._request("PUT", f"/api/habits/{habit_id}", "Failed to update habit", json=fields)
        habit = body["data"]
        self._replace(habit)
        return habit

    def delete_habit(self, habit_id: int) -> dict:
        body = self._request("DELETE", f"/api/habits/{habit_id}", "Failed to delete habit")
        self.habits = [h for h in self.habits if h["id"] != habit_id]
        return body.get("data")

    def track_habit(self, habit_id: int, day: str | date | None = None, completed: bool = True) -> dict:
        day = day or stats_service.utc_today()
        if isinstance(day, date):
            day = day.isoformat()
        body = self._request("POST", f"/api/habits/{habit_id}/track", "Failed to track habit",
                             json={"date": day, "completed": completed})
        habit = body["data"]
        self._replace(habit)
        return habit

    def _replace(self, habit: dict):
        for i, h in enumerate(self.habits):
            if h["id"] == habit["id"]:
                self.habits[i] = habit
                return

    def check_health(self) -> dict:
        return self._request("GET", "/api/health", "Cannot connect to backend")

    # ------------------------------------------------------------------
    # Getters
    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    @property
    def total_habits(self) -> int:
        return len(self.habits)

    def get_habit(self, habit_id: int) -> dict | None:
        return next((h for h in self.habits if h["id"] == habit_id), None)

    def completed_today(self, today: date | None = None) -> int:
        return stats_service.completed_today(self.habits, today)

    @property
    def current_streak(self) -> int:
        return stats_service.longest_current_streak(self.habits)

    @property
    def habits_by_category(self) -> dict[str, list[dict]]:
        return stats_service.habits_by_category(self.habits)

    @property
    def category_stats(self) -> dict[str, int]:
        return stats_service.category_stats(self.habits)

    @staticmethod
    def last_7_days(today: date | None = None) -> list[str]:
        return stats_service.last_7_days(today)

    def close(self):
        self.http.close()
