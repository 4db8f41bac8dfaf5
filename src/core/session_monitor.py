"""Periodic clock-based check for session expiry."""
import asyncio
import logging
from collections.abc import Callable

from core.token_store import TokenStore
from core.tokens import is_token_expired

logger = logging.getLogger(__name__)

DEFAULT_CHECK_INTERVAL = 60.0


class SessionMonitor:
    """
    Watches the stored token and reports when the session has expired.

    The check runs once when started and then on a fixed interval. The first
    time it detects expiry it calls `on_expired` and stops itself; a monitor
    fires at most once per start, and a fresh login starts it again.

    Args:
        token_store: Where the current token lives.
        on_expired: Called once when the session is found to have expired.
        is_session_active: Whether the client believes it is logged in. A
            missing token only counts as expiry while this returns True.
        interval: Seconds between checks.
    """

    def __init__(
        self,
        token_store: TokenStore,
        on_expired: Callable[[], None],
        is_session_active: Callable[[], bool],
        interval: float = DEFAULT_CHECK_INTERVAL,
    ) -> None:
        self._token_store = token_store
        self._on_expired = on_expired
        self._is_session_active = is_session_active
        self._interval = interval
        self._task: asyncio.Task | None = None
        self._fired = False

    @property
    def is_running(self) -> bool:
        """True while the periodic check is scheduled."""
        return self._task is not None and not self._task.done()

    @property
    def has_fired(self) -> bool:
        """True once expiry has been reported since the last start."""
        return self._fired

    def start(self) -> None:
        """
        Check immediately, then keep checking every interval.

        Must be called from a running event loop. Restarting a running
        monitor replaces the previous schedule.
        """
        self.stop()
        self._fired = False
        if self.check():
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug("Session monitor started interval=%ss", self._interval)

    def stop(self) -> None:
        """Cancel the periodic check. Safe to call repeatedly."""
        task, self._task = self._task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            logger.debug("Session monitor stopped")

    def check(self) -> bool:
        """
        Run a single expiry check.

        Returns:
            True if expiry was detected (and reported) by this check.
        """
        if self._fired:
            return False

        token = self._token_store.retrieve()
        if token is None:
            if not self._is_session_active():
                return False
            logger.info("Session token missing while session active")
        elif not is_token_expired(token):
            return False
        else:
            logger.info("Session token expired")

        self._fired = True
        self.stop()
        self._on_expired()
        return True

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            if self.check():
                return
