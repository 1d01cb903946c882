"""
MODULE OVERVIEW:
The session event router: the state machine that turns server pushes and
channel lifecycle events into state updates, notifications and navigation.

WHAT IS HAPPENING HERE:
Every routed event goes through one `dispatch()` call, in arrival order, on the
channel's reader task. Reactions never block that task: navigation is a queue
push and notifications are awaited on side tasks, so the next frame is
processed immediately. The one ordered side effect is the locked warning,
where navigation home waits for the player to dismiss the notice.

Disconnect handling is a flag, not a handler registration. It is armed by the
first snapshot of the mount (never for the preview code), disarmed by an
administrative removal, and consumed by the navigation it triggers.
"""
import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Protocol, Set

from loguru import logger
from pydantic import ValidationError

from party_client.messages import NAME_IN_USE, locked_message
from party_client.navigation import ROOT_ROUTE, Navigator, join_prompt_route, session_route
from party_shared.events import SessionEvent
from party_shared.models import LockedResponse, SessionSnapshot


class Notifier(Protocol):
    def notify(self, message: str) -> Awaitable[None]:
        """Show a blocking message; the awaitable resolves when it is dismissed."""
        ...


@dataclass
class SessionState:
    snapshot: SessionSnapshot = field(default_factory=SessionSnapshot.loading)
    is_connected: bool = False


def _locked_minutes(payload: Any) -> int | float | None:
    if not isinstance(payload, dict):
        payload = {"minutes": payload}
    try:
        return LockedResponse.model_validate(payload).minutes
    except ValidationError as e:
        logger.warning(f"event=lockedWarning reason=bad_payload error='{e.errors()[0]['msg']}'")
        return None


class SessionEventRouter:
    def __init__(
        self,
        game_code: str,
        state: SessionState,
        navigator: Navigator,
        notifier: Notifier,
        preview_code: str,
        on_change: Callable[[], None] | None = None,
    ):
        self.game_code = game_code
        self.state = state
        self.navigator = navigator
        self.notifier = notifier
        self.preview_code = preview_code
        self.on_change = on_change

        self.disconnect_armed = False
        self._first_snapshot_seen = False
        self._pending: Set[asyncio.Task] = set()

        self._reactions: Dict[SessionEvent, Callable[[Any], None]] = {
            SessionEvent.SNAPSHOT: self._on_snapshot,
            SessionEvent.DISCONNECT: self._on_disconnect,
            SessionEvent.INVALID: self._on_invalid,
            SessionEvent.BAD_NAME: self._on_bad_name,
            SessionEvent.LOCKED_WARNING: self._on_locked_warning,
            SessionEvent.REMOVED: self._on_removed,
        }

    def dispatch(self, event: SessionEvent, payload: Any = None) -> None:
        reaction = self._reactions.get(event)
        if reaction is None:
            raise ValueError(f"session router does not handle '{event.value}'")
        logger.debug(f"game_code={self.game_code} event={event.value}")
        reaction(payload)

    def close(self) -> None:
        """Cancel outstanding notice waits; nothing may navigate after unmount."""
        self.disconnect_armed = False
        for task in list(self._pending):
            task.cancel()
        self._pending.clear()

    # ==========================
    # REACTIONS
    # ==========================
    def _on_snapshot(self, payload: Any) -> None:
        try:
            snapshot = SessionSnapshot.model_validate(payload)
        except ValidationError as e:
            logger.error(f"game_code={self.game_code} event=gameChange reason=bad_snapshot error='{e}'")
            return

        self.state.snapshot = snapshot
        if not self._first_snapshot_seen:
            self._first_snapshot_seen = True
            # Armed only now: arming before the join lands would bounce us
            # back to /<code> while the server is still rejecting the code
            if self.game_code != self.preview_code:
                self.disconnect_armed = True
                logger.debug(f"game_code={self.game_code} event=disconnect_armed")
        self._changed()

    def _on_disconnect(self, payload: Any) -> None:
        self.state.is_connected = False
        self._changed()
        if not self.disconnect_armed:
            return
        self.disconnect_armed = False
        logger.info(f"game_code={self.game_code} event=disconnect action=reload reason='{payload}'")
        self.navigator.push(session_route(self.game_code))

    def _on_invalid(self, payload: Any) -> None:
        logger.info(f"game_code={self.game_code} event=invalid action=join_prompt")
        self.navigator.push(join_prompt_route(self.game_code))

    def _on_bad_name(self, payload: Any) -> None:
        logger.info(f"game_code={self.game_code} event=badName action=notify")
        self._spawn(self._await_notice(self.notifier.notify(NAME_IN_USE)))

    def _on_locked_warning(self, payload: Any) -> None:
        minutes = _locked_minutes(payload)
        logger.info(f"game_code={self.game_code} event=lockedWarning minutes={minutes}")
        self._spawn(
            self._await_notice(self.notifier.notify(locked_message(minutes)), then=ROOT_ROUTE)
        )

    def _on_removed(self, payload: Any) -> None:
        # Disarm first so a trailing disconnect cannot race us to /<code>
        self.disconnect_armed = False
        logger.info(f"game_code={self.game_code} event=removedPlayerFromLobby action=home")
        self.navigator.push(ROOT_ROUTE)

    # ==========================
    # HELPERS
    # ==========================
    async def _await_notice(self, dismissed: Awaitable[None], then: str | None = None) -> None:
        await dismissed
        if then is not None:
            self.navigator.push(then)

    def _spawn(self, coro) -> None:
        task = asyncio.ensure_future(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def _changed(self) -> None:
        if self.on_change:
            self.on_change()
