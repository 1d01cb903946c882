"""
Test doubles for the party client.
"""
import asyncio
from enum import Enum

from party_client.errors import ChannelNotConnectedError
from party_shared.client_utils import make_client_stats
from party_shared.events import HandlerRegistry


def _name(event):
    return event.value if isinstance(event, Enum) else event


async def settle(rounds: int = 5):
    """Let callbacks and freshly spawned tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


async def wait_until(predicate, timeout: float = 1.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.001)


class FakeChannel:
    """In-memory stand-in for Channel; the test plays the server."""

    def __init__(self, connected: bool = False):
        self.connected = connected
        self.active = connected
        self.connect_calls = 0
        self.close_calls = 0
        self.emitted = []
        self.fail_next_emit = False
        self.stats = make_client_stats()
        self._handlers = HandlerRegistry()

    def on(self, event, handler):
        self._handlers.subscribe(_name(event), handler)
        return handler

    def off(self, event, handler=None):
        self._handlers.unsubscribe(_name(event), handler)

    def listener_count(self, event):
        return self._handlers.count(_name(event))

    def connect(self):
        self.connect_calls += 1
        self.active = True

    async def close(self):
        self.close_calls += 1
        self.connected = False
        self.active = False

    async def emit(self, event, payload=None):
        if not self.connected or self.fail_next_emit:
            self.fail_next_emit = False
            raise ChannelNotConnectedError("fake channel is down")
        self.emitted.append((_name(event), payload))

    # Server side
    async def server_connect(self):
        self.connected = True
        self.active = True
        await self._handlers.publish("connect")

    async def server_drop(self, reason: str = "transport close"):
        self.connected = False
        await self._handlers.publish("disconnect", reason)

    async def push(self, event, payload=None):
        await self._handlers.publish(_name(event), payload)

    def joins(self):
        return [payload for event, payload in self.emitted if event == "joinGame"]


class ControlledNotifier:
    """Records notices; the test decides when they are dismissed."""

    def __init__(self):
        self.messages = []
        self.futures = []

    def notify(self, message: str) -> asyncio.Future:
        fut = asyncio.get_running_loop().create_future()
        self.messages.append(message)
        self.futures.append(fut)
        return fut

    def dismiss_all(self):
        for fut in self.futures:
            if not fut.done():
                fut.set_result(None)


def snapshot(status: str = "lobby", name: str | None = "Alice", code: str = "AB12", **extra) -> dict:
    return {"status": status, "code": code, "me": {"name": name}, **extra}
