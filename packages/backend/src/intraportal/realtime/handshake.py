"""Connection handshake — gate admission on a valid access token.

Learn: The token arrives as the `token` query parameter. Two rejection
codes let clients tell the cases apart:
- 4001 → no token at all (prompt the user to log in)
- 4003 → token present but invalid or expired (refresh, then retry)
"""

from dataclasses import dataclass
from typing import Optional

from intraportal.auth.jwt import TokenError, verify_token

CLOSE_AUTH_REQUIRED = 4001
CLOSE_INVALID_TOKEN = 4003

REASON_AUTH_REQUIRED = "Unauthorized: Token required"
REASON_INVALID_TOKEN = "Invalid token"


class HandshakeRejected(Exception):
    """Raised when a connection may not be admitted."""

    def __init__(self, code: int, reason: str):
        super().__init__(reason)
        self.code = code
        self.reason = reason


@dataclass(frozen=True)
class HandshakeResult:
    user_id: str
    claims: dict


def authenticate(token: Optional[str]) -> HandshakeResult:
    """Verify the handshake token and return the subject.

    Raises HandshakeRejected with the close code to use.
    """
    if not token:
        raise HandshakeRejected(CLOSE_AUTH_REQUIRED, REASON_AUTH_REQUIRED)
    try:
        claims = verify_token(token)
    except TokenError:
        raise HandshakeRejected(CLOSE_INVALID_TOKEN, REASON_INVALID_TOKEN)
    if claims.get("type", "access") != "access":
        raise HandshakeRejected(CLOSE_INVALID_TOKEN, REASON_INVALID_TOKEN)
    return HandshakeResult(user_id=str(claims["sub"]), claims=claims)
