# ---------- routes/auth_routes.py ----------
"""
Auth routes — registration, login and the caller's profile.
Tokens are stateless; logout is the client discarding its token.
"""
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from typing import Optional

from auth import get_current_user
from services import get_user_service
from services.user_service import UserService

router = APIRouter(prefix="/api/auth", tags=["Auth"])


# ── Pydantic schemas ──────────────────────────────────────────────
class RegisterRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


# ── Routes ────────────────────────────────────────────────────────
@router.post("/register", status_code=201)
def register(body: RegisterRequest, service: UserService = Depends(get_user_service)):
    """Create an account and log it in straight away."""
    token, user = service.register(body.username, body.email, body.password)
    return {"success": True, "token": token, "user": user}


@router.post("/login")
def login(body: LoginRequest, service: UserService = Depends(get_user_service)):
    token, user = service.login(body.email, body.password)
    return {"success": True, "token": token, "user": user}


@router.get("/me")
async def me(user_id: int = Depends(get_current_user), service: UserService = Depends(get_user_service)):
    """Return the current user's profile."""
    user = service.get_profile(user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True, "data": user}


@router.post("/logout")
async def logout(user_id: int = Depends(get_current_user)):
    """Logout — client should discard the token."""
    return {"success": True, "message": "Logged out"}
