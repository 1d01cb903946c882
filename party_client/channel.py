"""
MODULE OVERVIEW:
The persistent, auto-reconnecting websocket channel to the game server.

WHAT IS HAPPENING HERE:
We use the `websockets` library. One background task owns the socket: it dials,
publishes a local `connect` event, then reads frames until the socket dies,
publishes `disconnect`, and dials again with exponential backoff. Everything
else talks to the channel through a socket.io-like surface:
`connect / close / on / off / emit`.

The channel is constructed once by the application and handed to each session.
Sessions come and go; the channel object outlives them.
"""

import asyncio
from datetime import datetime, timezone
from enum import Enum

import websockets
from loguru import logger

from party_client.errors import ChannelNotConnectedError
from party_shared.client_utils import make_client_stats, mark_event, with_reconnect
from party_shared.config import Settings
from party_shared.events import (
    PING,
    PONG,
    Handler,
    HandlerRegistry,
    SessionEvent,
    decode_message,
    encode_message,
)


def _event_name(event: str | Enum) -> str:
    return event.value if isinstance(event, Enum) else event


class Channel:
    def __init__(
        self,
        url: str,
        *,
        base_delay_s: float = 1.0,
        max_delay_s: float = 5.0,
        max_attempts: int | None = None,
        connector=websockets.connect,
    ):
        self.url = url
        self.base_delay_s = base_delay_s
        self.max_delay_s = max_delay_s
        self.max_attempts = max_attempts
        self._connector = connector

        self._handlers = HandlerRegistry()
        self._ws = None
        self._task: asyncio.Task | None = None

        self.stats = make_client_stats()

    @classmethod
    def from_settings(cls, cfg: Settings, **kwargs) -> "Channel":
        return cls(
            cfg.ws_url,
            base_delay_s=cfg.RECONNECT_BASE_DELAY_S,
            max_delay_s=cfg.RECONNECT_MAX_DELAY_S,
            max_attempts=cfg.RECONNECT_ATTEMPTS,
            **kwargs,
        )

    @property
    def connected(self) -> bool:
        return self._ws is not None

    @property
    def active(self) -> bool:
        """True while connected or while an attempt (or backoff wait) is in progress."""
        return self._task is not None and not self._task.done()

    # ==========================
    # SUBSCRIPTIONS
    # ==========================
    def on(self, event: str | Enum, handler: Handler) -> Handler:
        self._handlers.subscribe(_event_name(event), handler)
        return handler

    def off(self, event: str | Enum, handler: Handler | None = None) -> None:
        self._handlers.unsubscribe(_event_name(event), handler)

    def listener_count(self, event: str | Enum) -> int:
        return self._handlers.count(_event_name(event))

    # ==========================
    # LIFECYCLE
    # ==========================
    def connect(self) -> None:
        """Start dialing. A no-op while already connected or connecting."""
        if self.active:
            return
        logger.info(f"url={self.url} event=connect reason=requested")
        self._task = asyncio.create_task(self._run())

    async def close(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        # A handler running on the reader task may ask for close; it cannot await itself
        if task is not asyncio.current_task():
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._ws = None
        logger.info(f"url={self.url} event=close reason=requested")

    async def emit(self, event: str | Enum, payload: dict | None = None) -> None:
        ws = self._ws
        name = _event_name(event)
        if ws is None:
            raise ChannelNotConnectedError(f"cannot emit '{name}': channel is not connected")
        try:
            await ws.send(encode_message(name, payload))
        except (websockets.ConnectionClosed, ConnectionError) as e:
            raise ChannelNotConnectedError(f"cannot emit '{name}': {e}") from e
        logger.debug(f"url={self.url} event=emit type={name}")

    # ==========================
    # BACKGROUND LOOP
    # ==========================
    async def _run(self) -> None:
        await with_reconnect(
            self._connect_once,
            self.stats,
            max_attempts=self.max_attempts,
            base_delay_s=self.base_delay_s,
            max_delay_s=self.max_delay_s,
            url=self.url,
            stable_after_s=self.max_delay_s,
        )
        logger.warning(f"url={self.url} event=inactive reason=gave_up")

    async def _connect_once(self) -> None:
        async with self._connector(self.url, ping_interval=None) as ws:
            self._ws = ws
            self.stats["connected_at"] = datetime.now(timezone.utc).isoformat()
            logger.info(f"url={self.url} event=connected")

            error = None
            try:
                await self._handlers.publish(SessionEvent.CONNECT.value)
                await self._read_loop(ws)
            except (ConnectionError, OSError, websockets.WebSocketException) as e:
                error = e
            finally:
                self._ws = None

            reason = (str(error) or error.__class__.__name__) if error is not None else "closed"
            logger.warning(f"url={self.url} event=disconnect reason='{reason}'")
            await self._handlers.publish(SessionEvent.DISCONNECT.value, reason)
            # with_reconnect backs off on the error before dialing again
            if error is not None:
                raise error

    async def _read_loop(self, ws) -> None:
        while True:
            message = await ws.recv()
            try:
                event, payload = decode_message(message)
            except ValueError as e:
                logger.warning(f"url={self.url} event=bad_frame error='{e}'")
                continue

            if event == PING:
                await ws.send(encode_message(PONG))
                continue

            mark_event(self.stats, len(message))
            if not self._handlers.count(event):
                logger.debug(f"url={self.url} event=unhandled type={event}")
            await self._handlers.publish(event, payload)
