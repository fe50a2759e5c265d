from datetime import datetime, timedelta, timezone
import logging

from fastapi import Depends, Request, HTTPException, status
from jose import jwt, JWTError
import bcrypt
import uuid

from config import JWT_SECRET, JWT_ALGORITHM, JWT_EXPIRY_HOURS
from repositories import UserRepository, get_user_repository

logger = logging.getLogger(__name__)


# bcrypt only looks at the first 72 bytes and newer releases refuse longer input
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt()).decode("ascii")


def verify_password(password: str, password_hash: str) -> bool:
    """False for a wrong password and for a malformed stored hash."""
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("ascii"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


def create_token(claims: dict) -> str:
    """Signed bearer token carrying claims, valid for JWT_EXPIRY_HOURS."""
    issued = datetime.now(timezone.utc)
    payload = {
        **claims,
        "iat": issued,
        "exp": issued + timedelta(hours=JWT_EXPIRY_HOURS),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> dict | None:
    """Claims of a valid, unexpired token; None for anything else."""
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    request: Request,
    users: UserRepository = Depends(get_user_repository),
) -> int:
    """
    FastAPI dependency — extracts the Bearer token from the Authorization
    header, verifies it, and returns the user_id.
    Raises HTTP 401 if the token is missing or invalid, or if it names a
    user the store no longer knows (e.g. the in-memory store was reset).
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise _unauthorized("No token, authorization denied")

    token = auth_header.split(" ", 1)[1].strip()
    payload = verify_token(token)
    if payload is None:
        raise _unauthorized("Token is not valid")

    user_id = payload.get("user_id")
    if user_id is None or payload.get("jti") is None:
        raise _unauthorized("Token payload missing required claims")

    user = users.find_by_id(user_id)
    if user is None or user["email"] != payload.get("email"):
        raise _unauthorized("Token is not valid")

    return user_id
