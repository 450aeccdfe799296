"""Auth tests — registration, login, refresh, bearer-token enforcement.

Learn: Tests cover:
1. User registration + duplicate prevention
2. Login → JWT tokens (bcrypt-verified)
3. Token refresh
4. Protected /me endpoint
5. 401 for a missing token, 403 for a bad one
"""

import uuid
from datetime import datetime, timedelta, timezone

import jwt as pyjwt
import pytest

from intraportal.auth.dependencies import CurrentIdentity
from intraportal.auth.jwt import create_access_token, create_refresh_token, verify_token
from intraportal.config import settings


def _email(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}@example.com"


async def _register(client, email: str, password: str = "secure_password_123"):
    return await client.post(
        "/api/v1/auth/register",
        json={"email": email, "name": "Test User", "password": password},
    )


# ═══════════════════════════════════════════════════════════
# Registration
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_register_user(unauthenticated_client):
    """Register a new user account."""
    email = _email("test")
    r = await _register(unauthenticated_client, email)
    assert r.status_code == 201
    data = r.json()
    assert data["message"] == "User registered successfully"
    assert data["user"]["email"] == email
    assert data["user"]["name"] == "Test User"
    assert data["user"]["role"] == "user"
    assert verify_token(data["token"])["sub"] == data["user"]["id"]


@pytest.mark.asyncio
async def test_register_creates_default_preferences(unauthenticated_client):
    r = await _register(unauthenticated_client, _email("prefs"))
    token = r.json()["token"]

    prefs = await unauthenticated_client.get(
        "/api/v1/users/preferences", headers={"Authorization": f"Bearer {token}"}
    )
    assert prefs.status_code == 200
    assert prefs.json()["notifications_enabled"] is True
    assert prefs.json()["email_digest_frequency"] == "daily"


@pytest.mark.asyncio
async def test_register_duplicate_email(unauthenticated_client):
    """Can't register with the same email twice."""
    email = _email("dup")
    r1 = await _register(unauthenticated_client, email)
    assert r1.status_code == 201

    r2 = await _register(unauthenticated_client, email)
    assert r2.status_code == 409


@pytest.mark.asyncio
async def test_register_short_password(unauthenticated_client):
    """Password must be at least 8 characters."""
    r = await _register(unauthenticated_client, _email("short"), password="abc")
    assert r.status_code == 422


# ═══════════════════════════════════════════════════════════
# Login
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_login_success(unauthenticated_client):
    """Login with valid credentials returns tokens."""
    email = _email("login")
    await _register(unauthenticated_client, email, password="my_password_123")

    r = await unauthenticated_client.post(
        "/api/v1/auth/login", json={"email": email, "password": "my_password_123"}
    )
    assert r.status_code == 200
    data = r.json()
    assert data["message"] == "Login successful"
    assert data["user"]["last_login"] is not None
    assert verify_token(data["token"])["type"] == "access"
    assert verify_token(data["refresh_token"])["type"] == "refresh"


@pytest.mark.asyncio
async def test_login_wrong_password(unauthenticated_client):
    email = _email("wrong")
    await _register(unauthenticated_client, email, password="correct_password")

    r = await unauthenticated_client.post(
        "/api/v1/auth/login", json={"email": email, "password": "incorrect_password"}
    )
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_login_unknown_email(unauthenticated_client):
    r = await unauthenticated_client.post(
        "/api/v1/auth/login",
        json={"email": "nobody@example.com", "password": "whatever_123"},
    )
    assert r.status_code == 401


# ═══════════════════════════════════════════════════════════
# Refresh
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_refresh_token(unauthenticated_client):
    email = _email("refresh")
    await _register(unauthenticated_client, email, password="refresh_pass_1")
    login = await unauthenticated_client.post(
        "/api/v1/auth/login", json={"email": email, "password": "refresh_pass_1"}
    )

    r = await unauthenticated_client.post(
        "/api/v1/auth/refresh",
        json={"refresh_token": login.json()["refresh_token"]},
    )
    assert r.status_code == 200
    data = r.json()
    assert data["token_type"] == "bearer"
    assert verify_token(data["token"])["sub"] == login.json()["user"]["id"]


@pytest.mark.asyncio
async def test_refresh_rejects_access_token(unauthenticated_client, test_user):
    """An access token can't be used as a refresh token."""
    r = await unauthenticated_client.post(
        "/api/v1/auth/refresh",
        json={"refresh_token": create_access_token(str(test_user.id))},
    )
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_refresh_unknown_user(unauthenticated_client):
    r = await unauthenticated_client.post(
        "/api/v1/auth/refresh",
        json={"refresh_token": create_refresh_token(str(uuid.uuid4()))},
    )
    assert r.status_code == 401


# ═══════════════════════════════════════════════════════════
# Bearer enforcement
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_me_with_token(unauthenticated_client, test_user):
    token = create_access_token(str(test_user.id), email=test_user.email)
    r = await unauthenticated_client.get(
        "/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"}
    )
    assert r.status_code == 200
    assert r.json()["email"] == test_user.email


@pytest.mark.asyncio
async def test_protected_route_without_token(unauthenticated_client):
    """Missing token → 401."""
    r = await unauthenticated_client.get("/api/v1/news")
    assert r.status_code == 401
    assert r.json()["detail"] == "Access token required"


@pytest.mark.asyncio
async def test_protected_route_with_garbage_token(unauthenticated_client):
    """Token that fails verification → 403."""
    r = await unauthenticated_client.get(
        "/api/v1/news", headers={"Authorization": "Bearer not-a-jwt"}
    )
    assert r.status_code == 403
    assert r.json()["detail"] == "Invalid or expired token"


@pytest.mark.asyncio
async def test_protected_route_with_expired_token(unauthenticated_client, test_user):
    now = datetime.now(timezone.utc)
    expired = pyjwt.encode(
        {
            "sub": str(test_user.id),
            "type": "access",
            "iat": now - timedelta(hours=2),
            "exp": now - timedelta(hours=1),
        },
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    r = await unauthenticated_client.get(
        "/api/v1/news", headers={"Authorization": f"Bearer {expired}"}
    )
    assert r.status_code == 403


@pytest.mark.asyncio
async def test_protected_route_rejects_refresh_token(unauthenticated_client, test_user):
    r = await unauthenticated_client.get(
        "/api/v1/news",
        headers={"Authorization": f"Bearer {create_refresh_token(str(test_user.id))}"},
    )
    assert r.status_code == 403


def test_identity_from_claims():
    identity = CurrentIdentity.from_claims(
        verify_token(create_access_token("user-9", email="a@example.com", role="admin"))
    )
    assert (identity.user_id, identity.email, identity.role) == ("user-9", "a@example.com", "admin")
    assert not hasattr(identity, "is_admin")

    assert CurrentIdentity.from_claims({"sub": "user-9"}).role == "user"
