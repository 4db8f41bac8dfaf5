"""Single-slot persistence for the current bearer token and user."""
import json
import logging
import time

from pydantic import ValidationError as PydanticValidationError

from core.storage import KeyValueStorage
from core.tokens import is_token_expired
from schemas.user import User

logger = logging.getLogger(__name__)

TOKEN_KEY = "auth_token"
TOKEN_TIMESTAMP_KEY = "auth_token_timestamp"
USER_KEY = "user"


class TokenStore:
    """
    Holds at most one token in durable storage, keyed by a fixed name.

    The serialized current user and the time the token was stored live next
    to it so a restarted client can repopulate its session before the
    backend confirms it. Last write wins.
    """

    def __init__(self, storage: KeyValueStorage) -> None:
        self._storage = storage

    def store(self, token: str) -> None:
        """Persist the token, replacing any previous one."""
        self._storage.set(TOKEN_KEY, token)
        self._storage.set(TOKEN_TIMESTAMP_KEY, str(int(time.time() * 1000)))

    def retrieve(self) -> str | None:
        """Get the stored token, if any."""
        return self._storage.get(TOKEN_KEY) or None

    def remove(self) -> None:
        """Clear the token, its timestamp and the cached user."""
        self._storage.delete(TOKEN_KEY)
        self._storage.delete(TOKEN_TIMESTAMP_KEY)
        self._storage.delete(USER_KEY)

    def is_valid(self, now: float | None = None) -> bool:
        """True if a token is stored and has not expired."""
        token = self.retrieve()
        if token is None:
            return False
        return not is_token_expired(token, now=now)

    def stored_at(self) -> int | None:
        """Epoch milliseconds at which the current token was stored."""
        raw = self._storage.get(TOKEN_TIMESTAMP_KEY)
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError:
            return None

    def store_user(self, user: User) -> None:
        """Persist the current user for offline bootstrap."""
        self._storage.set(USER_KEY, user.model_dump_json())

    def retrieve_user(self) -> User | None:
        """Load the persisted user. Unreadable entries are dropped."""
        raw = self._storage.get(USER_KEY)
        if raw is None:
            return None
        try:
            return User.model_validate(json.loads(raw))
        except (json.JSONDecodeError, PydanticValidationError):
            logger.warning("Discarding unreadable stored user")
            self._storage.delete(USER_KEY)
            return None
