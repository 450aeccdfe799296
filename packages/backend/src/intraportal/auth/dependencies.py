"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers to extract
and validate the current user identity from the request's
`Authorization: Bearer <jwt>` header.

Status codes follow the portal's contract: a missing token is 401,
a token that fails verification is 403.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException

from intraportal.auth.jwt import TokenError, verify_token


class CurrentIdentity:
    """Represents the authenticated user making the request."""

    def __init__(
        self,
        user_id: str,
        email: Optional[str] = None,
        role: str = "user",
    ):
        self.user_id = user_id
        self.email = email
        self.role = role

    @classmethod
    def from_claims(cls, claims: dict) -> "CurrentIdentity":
        return cls(
            user_id=claims["sub"],
            email=claims.get("email"),
            role=claims.get("role", "user"),
        )


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


async def get_current_user_optional(
    authorization: Optional[str] = Header(None),
) -> Optional[CurrentIdentity]:
    """Extract current identity (optional — returns None if no token)."""
    token = _bearer_token(authorization)
    if token is None:
        return None
    try:
        claims = verify_token(token)
    except TokenError:
        raise HTTPException(status_code=403, detail="Invalid or expired token")
    if claims.get("type", "access") != "access":
        raise HTTPException(status_code=403, detail="Invalid or expired token")
    return CurrentIdentity.from_claims(claims)


async def get_current_user(
    identity: Optional[CurrentIdentity] = Depends(get_current_user_optional),
) -> CurrentIdentity:
    """Extract current identity (required — 401 if no token)."""
    if not identity:
        raise HTTPException(
            status_code=401,
            detail="Access token required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity
