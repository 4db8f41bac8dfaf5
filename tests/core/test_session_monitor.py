"""Tests for the session monitor."""
import asyncio

from core.session_monitor import SessionMonitor
from core.token_store import TokenStore


class _Recorder:
    """Counts expiry callbacks."""

    def __init__(self) -> None:
        self.calls = 0

    def __call__(self) -> None:
        self.calls += 1


def _monitor(
    token_store: TokenStore,
    on_expired: _Recorder,
    active: bool = True,
    interval: float = 60.0,
) -> SessionMonitor:
    return SessionMonitor(
        token_store,
        on_expired=on_expired,
        is_session_active=lambda: active,
        interval=interval,
    )


class TestCheck:
    """Tests for a single monitor check."""

    def test__check__live_token_does_nothing(self, token_store: TokenStore, make_token) -> None:
        """A valid token doesn't trigger expiry."""
        token_store.store(make_token(expires_in=3600))
        on_expired = _Recorder()

        assert _monitor(token_store, on_expired).check() is False
        assert on_expired.calls == 0

    def test__check__expired_token_fires(self, token_store: TokenStore, make_token) -> None:
        """An expired token triggers expiry."""
        token_store.store(make_token(expires_in=-10))
        on_expired = _Recorder()

        assert _monitor(token_store, on_expired).check() is True
        assert on_expired.calls == 1

    def test__check__missing_token_while_active_fires(self, token_store: TokenStore) -> None:
        """Losing the token mid-session counts as expiry."""
        on_expired = _Recorder()

        assert _monitor(token_store, on_expired, active=True).check() is True
        assert on_expired.calls == 1

    def test__check__missing_token_while_inactive_does_nothing(
        self, token_store: TokenStore,
    ) -> None:
        """No token and no session is just the logged-out state."""
        on_expired = _Recorder()

        assert _monitor(token_store, on_expired, active=False).check() is False
        assert on_expired.calls == 0

    def test__check__fires_only_once(self, token_store: TokenStore, make_token) -> None:
        """Repeated checks after expiry don't fire again."""
        token_store.store(make_token(expires_in=-10))
        on_expired = _Recorder()
        monitor = _monitor(token_store, on_expired)

        monitor.check()
        monitor.check()

        assert on_expired.calls == 1
        assert monitor.has_fired is True


class TestStart:
    """Tests for the periodic schedule."""

    async def test__start__checks_immediately(self, token_store: TokenStore, make_token) -> None:
        """An already-expired token fires on start without waiting for the interval."""
        token_store.store(make_token(expires_in=-10))
        on_expired = _Recorder()
        monitor = _monitor(token_store, on_expired, interval=3600)

        monitor.start()

        assert on_expired.calls == 1
        assert monitor.is_running is False

    async def test__start__live_token_keeps_running(
        self, token_store: TokenStore, make_token,
    ) -> None:
        """With a valid token the monitor stays scheduled."""
        token_store.store(make_token(expires_in=3600))
        monitor = _monitor(token_store, _Recorder(), interval=3600)

        monitor.start()
        try:
            assert monitor.is_running is True
        finally:
            monitor.stop()

        await asyncio.sleep(0)
        assert monitor.is_running is False

    async def test__interval__detects_later_expiry(
        self, token_store: TokenStore, make_token,
    ) -> None:
        """A token replaced by an expired one is caught on a later tick, exactly once."""
        token_store.store(make_token(expires_in=3600))
        on_expired = _Recorder()
        monitor = _monitor(token_store, on_expired, interval=0.01)
        monitor.start()

        token_store.store(make_token(expires_in=-10))
        for _ in range(50):
            await asyncio.sleep(0.01)
            if on_expired.calls:
                break
        await asyncio.sleep(0.05)

        assert on_expired.calls == 1
        assert monitor.is_running is False

    async def test__stop__prevents_further_checks(
        self, token_store: TokenStore, make_token,
    ) -> None:
        """After stop, expiry is no longer reported."""
        token_store.store(make_token(expires_in=3600))
        on_expired = _Recorder()
        monitor = _monitor(token_store, on_expired, interval=0.01)
        monitor.start()
        monitor.stop()

        token_store.store(make_token(expires_in=-10))
        await asyncio.sleep(0.05)

        assert on_expired.calls == 0

    async def test__start__again_after_firing_rearms(
        self, token_store: TokenStore, make_token,
    ) -> None:
        """A fresh start (new login) re-arms a monitor that already fired."""
        token_store.store(make_token(expires_in=-10))
        on_expired = _Recorder()
        monitor = _monitor(token_store, on_expired, interval=3600)
        monitor.start()

        token_store.store(make_token(expires_in=3600))
        monitor.start()
        try:
            assert monitor.has_fired is False
            assert monitor.is_running is True
        finally:
            monitor.stop()
