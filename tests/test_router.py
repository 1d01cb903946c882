"""
Tests for the session event router.

Tests:
- Snapshot replacement and first-snapshot disconnect arming
- Disconnect, invalid code, name collision, locked warning, removal
- Preview code behaviour and teardown
"""
import pytest

from party_client.messages import NAME_IN_USE
from party_client.router import SessionEventRouter, SessionState
from party_shared.events import SessionEvent

from helpers import settle, snapshot


@pytest.fixture
def state():
    return SessionState(is_connected=True)


def make_router(state, navigator, notifier, code="AB12"):
    return SessionEventRouter(code, state, navigator, notifier, preview_code="ffff")


class TestSnapshot:
    def test_replaces_snapshot_wholesale(self, state, navigator, notifier):
        router = make_router(state, navigator, notifier)
        router.dispatch(SessionEvent.SNAPSHOT, snapshot(players=["Alice", "Bob"]))
        assert state.snapshot.extras == {"players": ["Alice", "Bob"]}

        router.dispatch(SessionEvent.SNAPSHOT, snapshot(status="ingame"))
        assert state.snapshot.status == "ingame"
        assert state.snapshot.extras == {}

    def test_first_snapshot_arms_disconnect(self, state, navigator, notifier):
        router = make_router(state, navigator, notifier)
        assert not router.disconnect_armed
        router.dispatch(SessionEvent.SNAPSHOT, snapshot())
        assert router.disconnect_armed

    def test_malformed_snapshot_is_ignored(self, state, navigator, notifier):
        router = make_router(state, navigator, notifier)
        router.dispatch(SessionEvent.SNAPSHOT, snapshot(status="lobby"))
        router.dispatch(SessionEvent.SNAPSHOT, "garbage")
        assert state.snapshot.status == "lobby"

    def test_notifies_on_change(self, state, navigator, notifier):
        calls = []
        router = make_router(state, navigator, notifier)
        router.on_change = lambda: calls.append(state.snapshot.status)
        router.dispatch(SessionEvent.SNAPSHOT, snapshot(status="lobby"))
        assert calls == ["lobby"]

    def test_rejects_events_it_does_not_route(self, state, navigator, notifier):
        router = make_router(state, navigator, notifier)
        with pytest.raises(ValueError):
            router.dispatch(SessionEvent.CONNECT)


class TestDisconnect:
    def test_before_first_snapshot_only_clears_connectivity(self, state, navigator, notifier):
        router = make_router(state, navigator, notifier)
        router.dispatch(SessionEvent.DISCONNECT, "transport close")
        assert state.is_connected is False
        assert navigator.history == []

    def test_armed_disconnect_navigates_to_session_route(self, state, navigator, notifier):
        router = make_router(state, navigator, notifier)
        router.dispatch(SessionEvent.SNAPSHOT, snapshot())
        router.dispatch(SessionEvent.DISCONNECT, "transport close")
        assert state.is_connected is False
        assert navigator.history == ["/AB12"]

    def test_arm_is_consumed_once(self, state, navigator, notifier):
        router = make_router(state, navigator, notifier)
        router.dispatch(SessionEvent.SNAPSHOT, snapshot())
        router.dispatch(SessionEvent.DISCONNECT)
        router.dispatch(SessionEvent.SNAPSHOT, snapshot())
        router.dispatch(SessionEvent.DISCONNECT)
        assert navigator.history == ["/AB12"]

    def test_preview_code_never_navigates(self, state, navigator, notifier):
        router = make_router(state, navigator, notifier, code="ffff")
        router.dispatch(SessionEvent.SNAPSHOT, snapshot(code="ffff"))
        router.dispatch(SessionEvent.DISCONNECT)
        assert not router.disconnect_armed
        assert navigator.history == []
        assert state.is_connected is False


class TestInvalid:
    def test_navigates_to_join_prompt_with_code(self, state, navigator, notifier):
        router = make_router(state, navigator, notifier, code="ZZ99")
        router.dispatch(SessionEvent.INVALID)
        assert navigator.history == ["/join?invalid=ZZ99"]


class TestBadName:
    @pytest.mark.asyncio
    async def test_notifies_without_touching_snapshot(self, state, navigator, notifier):
        router = make_router(state, navigator, notifier)
        router.dispatch(SessionEvent.SNAPSHOT, snapshot(name=None))
        before = state.snapshot

        router.dispatch(SessionEvent.BAD_NAME)
        await settle()

        assert notifier.messages == [NAME_IN_USE]
        assert state.snapshot is before
        assert navigator.history == []

        notifier.dismiss_all()
        await settle()
        assert navigator.history == []


class TestLockedWarning:
    @pytest.mark.asyncio
    async def test_navigates_home_only_after_dismissal(self, state, navigator, notifier):
        router = make_router(state, navigator, notifier)
        router.dispatch(SessionEvent.LOCKED_WARNING, 5)
        await settle()

        assert len(notifier.messages) == 1
        assert "5" in notifier.messages[0]
        assert navigator.history == []

        notifier.dismiss_all()
        await settle()
        assert navigator.history == ["/"]

    @pytest.mark.asyncio
    async def test_accepts_object_payload(self, state, navigator, notifier):
        router = make_router(state, navigator, notifier)
        router.dispatch(SessionEvent.LOCKED_WARNING, {"minutes": 3})
        assert "3 minutes" in notifier.messages[0]
        router.close()

    @pytest.mark.asyncio
    async def test_keeps_fractional_minutes(self, state, navigator, notifier):
        router = make_router(state, navigator, notifier)
        router.dispatch(SessionEvent.LOCKED_WARNING, 2.5)
        assert "2.5 minutes" in notifier.messages[0]
        router.close()

    @pytest.mark.asyncio
    async def test_bad_payload_still_warns(self, state, navigator, notifier):
        router = make_router(state, navigator, notifier)
        router.dispatch(SessionEvent.LOCKED_WARNING, "soon")
        assert "later" in notifier.messages[0]
        notifier.dismiss_all()
        await settle()
        assert navigator.history == ["/"]

    @pytest.mark.asyncio
    async def test_close_cancels_pending_navigation(self, state, navigator, notifier):
        router = make_router(state, navigator, notifier)
        router.dispatch(SessionEvent.LOCKED_WARNING, 5)
        await settle()

        router.close()
        await settle()
        notifier.dismiss_all()
        await settle()
        assert navigator.history == []


class TestRemoved:
    def test_navigates_home(self, state, navigator, notifier):
        router = make_router(state, navigator, notifier)
        router.dispatch(SessionEvent.REMOVED)
        assert navigator.history == ["/"]

    def test_disarms_before_a_trailing_disconnect(self, state, navigator, notifier):
        router = make_router(state, navigator, notifier)
        router.dispatch(SessionEvent.SNAPSHOT, snapshot())
        assert router.disconnect_armed

        router.dispatch(SessionEvent.REMOVED)
        router.dispatch(SessionEvent.DISCONNECT)

        assert navigator.history == ["/"]
        assert "/AB12" not in navigator.history
