"""Auth API — registration, login, token refresh, current user.

Learn: Routes for user authentication:
- POST /auth/register → create account + default preferences → token
- POST /auth/login → email/password → access + refresh tokens
- POST /auth/refresh → refresh token → new token pair
- GET /auth/me → current user record
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from intraportal.auth.dependencies import CurrentIdentity, get_current_user
from intraportal.auth.jwt import (
    TokenError,
    create_access_token,
    create_refresh_token,
    verify_token,
)
from intraportal.db.engine import get_db
from intraportal.db.models import User
from intraportal.schemas.user import UserRead
from intraportal.services.user_service import EmailAlreadyRegisteredError, UserService

router = APIRouter(prefix="/auth")


# ─── Schemas ─────────────────────────────────────────────


class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    name: str = Field(..., min_length=1, max_length=255)
    password: str = Field(min_length=8)


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class AuthResponse(BaseModel):
    message: str
    user: UserRead
    token: str
    refresh_token: str | None = None


class TokenResponse(BaseModel):
    token: str
    refresh_token: str
    token_type: str = "bearer"


def _svc(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


def _access_token(user: User) -> str:
    return create_access_token(str(user.id), email=user.email, role=user.role)


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(body: RegisterRequest, svc: UserService = Depends(_svc)):
    """Create a new user account."""
    try:
        user = await svc.register(body.email, body.name, body.password)
    except EmailAlreadyRegisteredError:
        raise HTTPException(status_code=409, detail="User already exists")

    return AuthResponse(
        message="User registered successfully",
        user=UserRead.model_validate(user),
        token=_access_token(user),
    )


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, svc: UserService = Depends(_svc)):
    """Login with email and password → JWT tokens."""
    user = await svc.authenticate(body.email, body.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return AuthResponse(
        message="Login successful",
        user=UserRead.model_validate(user),
        token=_access_token(user),
        refresh_token=create_refresh_token(str(user.id)),
    )


# ─── Refresh ────────────────────────────────────────────


@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshRequest, svc: UserService = Depends(_svc)):
    """Exchange a refresh token for a new token pair."""
    try:
        payload = verify_token(body.refresh_token)
    except TokenError as e:
        raise HTTPException(status_code=401, detail=str(e))
    if payload.get("type") != "refresh":
        raise HTTPException(status_code=401, detail="Not a refresh token")

    user = await svc.get_user(payload["sub"])
    if user is None:
        raise HTTPException(status_code=401, detail="User no longer exists")

    return TokenResponse(
        token=_access_token(user),
        refresh_token=create_refresh_token(str(user.id)),
    )


# ─── Current user ───────────────────────────────────────


@router.get("/me", response_model=UserRead)
async def get_me(
    identity: CurrentIdentity = Depends(get_current_user),
    svc: UserService = Depends(_svc),
):
    """Get the current authenticated user's record."""
    user = await svc.get_user(identity.user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return user
