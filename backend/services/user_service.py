"""
user_service.py — Registration & login
Validates sign-up fields, stores bcrypt hashes and issues bearer tokens.
"""

import logging
from datetime import datetime, timezone

from auth import hash_password, verify_password, create_token
from errors import ValidationError, Unauthenticated
from repositories.base import UserRepository

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
MAX_USERNAME_LENGTH = 50  # models/user.py column sizes
MAX_EMAIL_LENGTH = 255


def public_user(user: dict) -> dict:
    """User record without the password hash."""
    return {
        "id": user["id"],
        "username": user["username"],
        "email": user["email"],
        "created_at": user.get("created_at"),
    }


class UserService:
    def __init__(self, users: UserRepository):
        self.users = users

    @staticmethod
    def _token_for(user: dict) -> str:
        return create_token({
            "user_id": user["id"],
            "username": user["username"],
            "email": user["email"],
        })

    def register(self, username: str | None, email: str | None, password: str | None) -> tuple[str, dict]:
        username = (username or "").strip()
        email = (email or "").strip().lower()
        if not username or not email or not password:
            raise ValidationError("Please provide all fields")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if len(username) > MAX_USERNAME_LENGTH or len(email) > MAX_EMAIL_LENGTH:
            raise ValidationError("Username or email is too long")

        user = self.users.insert({
            "username": username,
            "email": email,
            "password_hash": hash_password(password),
            "created_at": datetime.now(timezone.utc).isoformat(),
        })
        logger.info(f"User registered: {user['email']} (id={user['id']})")
        return self._token_for(user), public_user(user)

    def login(self, email: str | None, password: str | None) -> tuple[str, dict]:
        email = (email or "").strip().lower()
        user = self.users.find_by_email(email) if email else None
        if not user or not password or not verify_password(password, user["password_hash"]):
            logger.warning(f"Failed login attempt for: {email or '<empty>'}")
            raise Unauthenticated("Invalid credentials")

        logger.info(f"User logged in: {user['email']}")
        return self._token_for(user), public_user(user)

    def get_profile(self, user_id: int) -> dict | None:
        user = self.users.find_by_id(user_id)
        return public_user(user) if user else None
