"""
Bearer token inspection for client-side session management.

Tokens are JWTs issued by the backend. The client only reads the claims to
decide when a session has run out; it never verifies the signature, which
remains the server's job on every authenticated request. Only the payload
segment is decoded, so an opaque header or signature doesn't matter.
"""
import json
import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime

from jwt.utils import base64url_decode

logger = logging.getLogger(__name__)

# Tokens with less than this many seconds left are reported as expiring soon
EXPIRING_SOON_SECONDS = 300


@dataclass(frozen=True)
class DecodedToken:
    """Claims the client relies on."""

    user_id: str | None
    expires_at: int
    issued_at: int | None = None


def _now(now: float | None) -> int:
    return int(time.time() if now is None else now)


def decode_token(token: str | None) -> DecodedToken | None:
    """
    Decode a bearer token's claims without verifying its signature.

    Args:
        token: The raw token (three dot-separated base64url segments).

    Returns:
        DecodedToken, or None if the token is malformed (wrong segment count,
        bad encoding, non-object payload, or a missing/non-numeric `exp`).
    """
    if not token:
        return None
    parts = token.split(".")
    if len(parts) != 3:
        logger.debug("Token has %d segments, expected 3", len(parts))
        return None
    try:
        claims = json.loads(base64url_decode(parts[1]))
    except ValueError as e:
        logger.debug("Failed to decode token payload: %s", e)
        return None
    if not isinstance(claims, dict):
        logger.debug("Token payload is not an object")
        return None

    exp = claims.get("exp")
    if isinstance(exp, bool) or not isinstance(exp, int | float):
        logger.debug("Token has no usable exp claim")
        return None

    user_id = claims.get("userId", claims.get("sub"))
    iat = claims.get("iat")
    return DecodedToken(
        user_id=str(user_id) if user_id is not None else None,
        expires_at=int(exp),
        issued_at=int(iat) if isinstance(iat, int | float) and not isinstance(iat, bool) else None,
    )


def is_token_expired(token: str | None, now: float | None = None) -> bool:
    """Return True if the token can't be decoded or its expiry has been reached."""
    decoded = decode_token(token)
    if decoded is None:
        return True
    return _now(now) >= decoded.expires_at


def is_token_expiring_soon(
    token: str | None,
    now: float | None = None,
    threshold: int = EXPIRING_SOON_SECONDS,
) -> bool:
    """Return True if the token can't be decoded or expires within `threshold` seconds."""
    decoded = decode_token(token)
    if decoded is None:
        return True
    return decoded.expires_at - _now(now) < threshold


def get_token_expiration_date(token: str | None) -> datetime | None:
    """Get the token's expiry as an aware UTC datetime, or None if undecodable."""
    decoded = decode_token(token)
    if decoded is None:
        return None
    return datetime.fromtimestamp(decoded.expires_at, tz=UTC)


def get_token_time_remaining(token: str | None, now: float | None = None) -> int:
    """Seconds until the token expires, clamped at 0. Undecodable tokens have 0 left."""
    decoded = decode_token(token)
    if decoded is None:
        return 0
    return max(0, decoded.expires_at - _now(now))
