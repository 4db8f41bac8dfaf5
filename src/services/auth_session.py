"""
Authentication state for one client.

AuthSession owns the current user and token, keeps durable storage in step
with them, and runs the SessionMonitor while logged in. Expiry can be
detected two ways: the monitor's clock check, or the API client seeing a 401
(it calls `expire` as a registered listener). Both end in the same `expire`
cleanup, which is safe to run more than once.
"""
import logging
from collections.abc import Awaitable, Callable
from enum import StrEnum

from api_client.errors import (
    DEFAULT_ERROR_MESSAGE,
    ApiError,
    NetworkError,
    SessionExpiredError,
)
from core.session_monitor import DEFAULT_CHECK_INTERVAL, SessionMonitor
from core.storage import StorageError
from core.token_store import TokenStore
from core.tokens import EXPIRING_SOON_SECONDS, is_token_expired
from schemas.auth import AuthErrorCategory, AuthResponse, AuthResult, LoginRequest, RegisterRequest
from schemas.user import ProfileUpdate, User
from services.auth_backends import AuthBackend
from services.exceptions import ValidationError, validate_form
from services.session_status import SessionStatus, get_session_status

logger = logging.getLogger(__name__)

STORAGE_ERROR_MESSAGE = "Could not save your session. Please try again."

SessionListener = Callable[["AuthSession"], None]


class SessionState(StrEnum):
    """Where the session is in its lifecycle."""

    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    SESSION_EXPIRED = "session_expired"


def _error_category(e: ApiError) -> AuthErrorCategory:
    if isinstance(e, SessionExpiredError):
        return "session_expired"
    if isinstance(e, NetworkError):
        return "network"
    return "auth_failed"


def _display_message(e: ApiError, fallback: str) -> str:
    if not e.message or e.message == DEFAULT_ERROR_MESSAGE:
        return fallback
    return e.message


class AuthSession:
    """
    Current user and token, plus the operations that change them.

    Args:
        backend: Authentication implementation (REST or in-memory).
        token_store: Durable storage for the token and user.
        check_interval: Seconds between session monitor checks.
        expiring_soon_threshold: Seconds-left below which the session
            status reports the token as expiring soon.
    """

    def __init__(
        self,
        backend: AuthBackend,
        token_store: TokenStore,
        check_interval: float = DEFAULT_CHECK_INTERVAL,
        expiring_soon_threshold: int = EXPIRING_SOON_SECONDS,
    ) -> None:
        self._backend = backend
        self._token_store = token_store
        self._expiring_soon_threshold = expiring_soon_threshold
        self._user: User | None = None
        self._token: str | None = None
        self._state = SessionState.ANONYMOUS
        self._session_expired = False
        self._logging_out = False
        self._listeners: list[SessionListener] = []
        self._monitor = SessionMonitor(
            token_store,
            on_expired=self.expire,
            is_session_active=lambda: self._token is not None,
            interval=check_interval,
        )

    @property
    def user(self) -> User | None:
        """The logged-in user, if any."""
        return self._user

    @property
    def token(self) -> str | None:
        """The current session's bearer token, if any."""
        return self._token

    @property
    def state(self) -> SessionState:
        """Current lifecycle state."""
        return self._state

    @property
    def is_authenticated(self) -> bool:
        """True while a confirmed session is active."""
        return self._state is SessionState.AUTHENTICATED

    @property
    def session_expired(self) -> bool:
        """True after a forced logout until acknowledged or a new login."""
        return self._session_expired

    @property
    def monitor(self) -> SessionMonitor:
        """The session monitor driven by this session."""
        return self._monitor

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """
        Call `listener` after every state change.

        Returns:
            A function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    async def initialize(self) -> None:
        """
        Restore a session persisted by a previous run.

        An expired stored token is discarded without a request. A live one is
        used to pre-populate the session from the stored user, then confirmed
        by fetching the profile; if that fetch fails, everything is cleared.
        """
        token = self._token_store.retrieve()
        if token is None:
            return
        if is_token_expired(token):
            logger.info("Discarding expired stored token")
            self._remove_stored_session()
            return

        self._token = token
        self._user = self._token_store.retrieve_user()
        self._state = SessionState.AUTHENTICATING
        self._notify()

        try:
            user = await self._backend.fetch_current_user()
        except SessionExpiredError:
            logger.warning("Stored session rejected by server")
            self.expire()
            return
        except ApiError as e:
            logger.warning("Failed to restore session: %s", e.message)
            self._clear_session()
            return

        try:
            self._start_session(token, user)
        except StorageError as e:
            logger.warning("Failed to persist restored session: %s", e)
            self._clear_session()
            return
        logger.info("Session restored user_id=%s", user.id)

    async def login(self, email: str, password: str) -> AuthResult:
        """
        Log in with email and password.

        Never raises. On failure any existing session is left as it was.
        """
        try:
            form = validate_form(LoginRequest, email=email, password=password)
        except ValidationError as e:
            return AuthResult.failed(e.message, "validation")

        return await self._authenticate(
            lambda: self._backend.login(form.email, form.password),
            fallback_error="Login failed",
        )

    async def register(self, email: str, password: str, name: str) -> AuthResult:
        """
        Create an account and log in as it.

        The checks run here are a courtesy; the server's verdict (duplicate
        email, password policy) is final and reported the same way.
        """
        try:
            form = validate_form(RegisterRequest, email=email, password=password, name=name)
        except ValidationError as e:
            return AuthResult.failed(e.message, "validation")

        return await self._authenticate(
            lambda: self._backend.register(form.email, form.password, form.name),
            fallback_error="Registration failed",
        )

    async def _authenticate(
        self,
        call: Callable[[], Awaitable[AuthResponse]],
        fallback_error: str,
    ) -> AuthResult:
        previous_state = self._state
        self._state = SessionState.AUTHENTICATING
        self._notify()
        try:
            response = await call()
        except ApiError as e:
            self._state = previous_state
            self._notify()
            return AuthResult.failed(_display_message(e, fallback_error), _error_category(e))

        try:
            self._start_session(response.token, response.user)
        except StorageError as e:
            logger.warning("Failed to persist session: %s", e)
            if self._token is None:
                self._remove_stored_session()
            self._state = previous_state
            self._notify()
            return AuthResult.failed(STORAGE_ERROR_MESSAGE, "storage")
        logger.info("Logged in user_id=%s", response.user.id)
        return AuthResult.ok()

    async def logout(self) -> None:
        """
        End the session.

        The server is told on a best-effort basis; whatever happens there,
        the local user, token and storage are cleared.
        """
        self._logging_out = True
        try:
            if self._token_store.retrieve() is not None:
                await self._backend.logout()
        except ApiError as e:
            logger.warning("Remote logout failed, clearing local session anyway: %s", e.message)
        except StorageError as e:
            logger.warning("Could not read stored session during logout: %s", e)
        finally:
            self._logging_out = False
            self._clear_session()
        logger.info("Logged out")

    async def update_profile(self, name: str, profile_picture: str | None = None) -> AuthResult:
        """
        Change the user's display name and picture.

        On any failure the current user is left unchanged. `created_at` is
        always kept from the existing user.
        """
        if self._user is None or self._state is not SessionState.AUTHENTICATED:
            logger.warning("Profile update attempted without an active session")
            return AuthResult.failed("You must be logged in", "session_expired")

        try:
            update = validate_form(ProfileUpdate, name=name, profile_picture=profile_picture)
        except ValidationError as e:
            return AuthResult.failed(e.message, "validation")

        try:
            updated = await self._backend.update_profile(update)
        except SessionExpiredError as e:
            self.expire()
            return AuthResult.failed(e.message, "session_expired")
        except ApiError as e:
            logger.warning("Failed to update profile: %s", e.message)
            return AuthResult.failed(
                _display_message(e, "Profile update failed"), _error_category(e),
            )

        if self._user is None:
            # Session ended while the request was in flight
            return AuthResult.failed("You must be logged in", "session_expired")
        self._user = self._user.model_copy(
            update={"name": updated.name, "profile_picture": updated.profile_picture},
        )
        try:
            self._token_store.store_user(self._user)
        except StorageError as e:
            logger.warning("Failed to persist updated profile: %s", e)
        self._notify()
        return AuthResult.ok()

    def expire(self) -> None:
        """
        Force-end the session after expiry was detected.

        Stops the monitor, clears user, token and storage, and raises the
        session-expired flag. Running it again, or with no session, only
        re-clears storage.
        """
        had_session = self._token is not None or self._user is not None
        self._monitor.stop()
        self._token = None
        self._user = None
        self._remove_stored_session()
        if not had_session or self._logging_out:
            return
        logger.info("Session expired")
        self._session_expired = True
        self._state = SessionState.SESSION_EXPIRED
        self._notify()

    def acknowledge_session_expired(self) -> None:
        """Dismiss the session-expired notice."""
        if not self._session_expired:
            return
        self._session_expired = False
        if self._state is SessionState.SESSION_EXPIRED:
            self._state = SessionState.ANONYMOUS
        self._notify()

    def require_session(self) -> None:
        """
        Guard for operations that need a live session.

        Raises:
            SessionExpiredError: If there is no stored token or it has expired.
        """
        if self._token_store.is_valid():
            return
        if self._token is not None:
            self.expire()
        raise SessionExpiredError()

    def session_status(self, now: float | None = None) -> SessionStatus:
        """Snapshot of the time left on the current token."""
        return get_session_status(
            self._token_store.retrieve(),
            self._token,
            now=now,
            expiring_soon_threshold=self._expiring_soon_threshold,
        )

    def close(self) -> None:
        """Stop background checks. The session itself is left as is."""
        self._monitor.stop()

    def _start_session(self, token: str, user: User) -> None:
        self._token_store.store(token)
        self._token_store.store_user(user)
        self._token = token
        self._user = user
        self._session_expired = False
        self._state = SessionState.AUTHENTICATED
        self._monitor.start()
        self._notify()

    def _clear_session(self) -> None:
        self._monitor.stop()
        self._token = None
        self._user = None
        self._state = SessionState.ANONYMOUS
        self._remove_stored_session()
        self._notify()

    def _remove_stored_session(self) -> None:
        """Clear durable storage. The in-memory session is already gone, so failures are only logged."""
        try:
            self._token_store.remove()
        except StorageError as e:
            logger.warning("Failed to clear stored session: %s", e)
