"""Point-in-time view of the current session's remaining lifetime."""
from dataclasses import dataclass
from datetime import datetime

from core.tokens import (
    EXPIRING_SOON_SECONDS,
    get_token_expiration_date,
    get_token_time_remaining,
    is_token_expiring_soon,
)


@dataclass(frozen=True)
class SessionStatus:
    """Snapshot suitable for a "session expires in ..." indicator."""

    is_active: bool
    time_remaining: int
    expiration_date: datetime | None
    is_expiring_soon: bool
    formatted_time_remaining: str


INACTIVE_STATUS = SessionStatus(
    is_active=False,
    time_remaining=0,
    expiration_date=None,
    is_expiring_soon=False,
    formatted_time_remaining="0s",
)


def format_time_remaining(seconds: int) -> str:
    """
    Render a duration using its two most significant units.

    Examples: "2d 3h", "1h 5m", "4m 10s", "42s".
    """
    seconds = max(0, seconds)
    days, rest = divmod(seconds, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, secs = divmod(rest, 60)

    if days > 0:
        return f"{days}d {hours}h"
    if hours > 0:
        return f"{hours}h {minutes}m"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def get_session_status(
    stored_token: str | None,
    session_token: str | None,
    now: float | None = None,
    expiring_soon_threshold: int = EXPIRING_SOON_SECONDS,
) -> SessionStatus:
    """
    Compute the session status from the stored token.

    The session is only considered live when both durable storage and the
    in-memory session hold a token; otherwise the inactive status is returned.
    """
    if not stored_token or not session_token:
        return INACTIVE_STATUS

    time_remaining = get_token_time_remaining(stored_token, now=now)
    return SessionStatus(
        is_active=time_remaining > 0,
        time_remaining=time_remaining,
        expiration_date=get_token_expiration_date(stored_token),
        is_expiring_soon=is_token_expiring_soon(
            stored_token, now=now, threshold=expiring_soon_threshold,
        ),
        formatted_time_remaining=format_time_remaining(time_remaining),
    )
