"""
MODULE OVERVIEW:
One mounted game session: the glue between the channel, the rejoin resolver,
the event router and whatever is rendering the phases.

WHAT IS HAPPENING HERE:
A `SessionController` lives exactly as long as the player stays on `/<code>`.
Mounting subscribes to the channel and makes sure it is dialing; every
`connect` re-checks readiness and, the first time the channel is up, sends the
single join (or rejoin) request. Unmounting removes every subscription,
cancels pending notice waits, closes the channel and resets the snapshot to the
loading sentinel. Use it as an async context manager so that happens whatever
path leaves the block.
"""
from functools import partial
from typing import Any, Callable, List, Tuple

from loguru import logger

from party_client.channel import Channel
from party_client.errors import ChannelNotConnectedError
from party_client.identity import IdentityStore, read_rejoin_hint, write_rejoin_hint
from party_client.navigation import Navigator
from party_client.phase import Phase, select_phase
from party_client.rejoin import JoinGuard, resolve_join_request
from party_client.router import Notifier, SessionEventRouter, SessionState
from party_shared.config import Settings, settings as default_settings
from party_shared.events import JOIN_GAME, ROUTED_EVENTS, SUBMIT_NAME, SessionEvent
from party_shared.models import NameSubmission, SessionSnapshot


class SessionController:
    def __init__(
        self,
        game_code: str,
        channel: Channel,
        store: IdentityStore,
        navigator: Navigator,
        notifier: Notifier,
        settings: Settings = default_settings,
        on_change: Callable[[], None] | None = None,
    ):
        self.game_code = game_code
        self.channel = channel
        self.store = store
        self.settings = settings
        self.on_change = on_change

        self.state = SessionState(is_connected=channel.connected)
        self.join_guard = JoinGuard()
        self.router = SessionEventRouter(
            game_code,
            self.state,
            navigator,
            notifier,
            preview_code=settings.PREVIEW_GAME_CODE,
            on_change=self._changed,
        )

        self._subscriptions: List[Tuple[SessionEvent, Callable[[Any], Any]]] = []
        self._mounted = False

    async def __aenter__(self) -> "SessionController":
        await self.mount()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.unmount()

    @property
    def snapshot(self) -> SessionSnapshot:
        return self.state.snapshot

    @property
    def mounted(self) -> bool:
        return self._mounted

    def phase(self, is_loading_external: bool = False) -> Phase:
        return select_phase(self.state.snapshot, is_loading_external)

    # ==========================
    # MOUNT / UNMOUNT
    # ==========================
    async def mount(self) -> None:
        if self._mounted:
            return
        self._mounted = True
        logger.info(f"game_code={self.game_code} event=mount")

        self._subscribe(SessionEvent.CONNECT, self._on_connect)
        for event in ROUTED_EVENTS:
            self._subscribe(event, partial(self.router.dispatch, event))

        await self._ensure_joined()

    async def unmount(self) -> None:
        if not self._mounted:
            return
        self._mounted = False

        for event, handler in self._subscriptions:
            self.channel.off(event, handler)
        self._subscriptions.clear()
        self.router.close()

        await self.channel.close()
        self.state.snapshot = SessionSnapshot.loading()
        self.state.is_connected = False
        logger.info(f"game_code={self.game_code} event=unmount")

    def _subscribe(self, event: SessionEvent, handler: Callable[[Any], Any]) -> None:
        self.channel.on(event, handler)
        self._subscriptions.append((event, handler))

    # ==========================
    # CONNECT / JOIN
    # ==========================
    async def _on_connect(self, _payload: Any = None) -> None:
        self.state.is_connected = True
        self._changed()
        await self._ensure_joined()

    async def _ensure_joined(self) -> None:
        if not self.channel.connected:
            if not self.channel.active:
                self.channel.connect()
            return

        if not self.join_guard.acquire():
            return

        request = resolve_join_request(self.game_code, read_rejoin_hint(self.store))
        try:
            await self.channel.emit(JOIN_GAME, request.to_payload())
        except ChannelNotConnectedError as e:
            # Nothing left the socket; the next connect may try again
            self.join_guard.release()
            logger.warning(f"game_code={self.game_code} event=join reason=not_sent error='{e}'")

    def reconnect(self) -> None:
        """Manual retry from the loading screen. Idempotent."""
        logger.info(f"game_code={self.game_code} event=reconnect reason=manual")
        self.channel.connect()

    # ==========================
    # PLAYER ACTIONS
    # ==========================
    async def submit_name(self, name: str) -> None:
        """
        Send the chosen name and, once it is on the wire, remember it as the
        rejoin hint for this code. Raises ChannelNotConnectedError or a
        pydantic ValidationError (empty name); the hint is untouched then.
        """
        submission = NameSubmission(name=name.strip())
        await self.channel.emit(SUBMIT_NAME, submission.to_payload())
        write_rejoin_hint(self.store, self.game_code, submission.name)

    def _changed(self) -> None:
        if self.on_change:
            self.on_change()
