"""
MODULE OVERVIEW:
The event vocabulary of a game session and the primitives for delivering it.

WHAT IS HAPPENING HERE:
Every frame on the wire is a JSON object with a `type` tag. Server pushes carry
their payload under `data`; client requests are flat (`{"type": "joinGame",
"gameCode": "AB12"}`). `connect` and `disconnect` never travel on the wire: the
channel raises them locally from its own lifecycle.

`HandlerRegistry` is the per-channel pub/sub table. Handlers run one after the
other in subscription order, and a misbehaving handler is logged rather than
allowed to kill the reader loop that called it.
"""
import inspect
import json
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List

from loguru import logger


class SessionEvent(str, Enum):
    CONNECT = "connect"
    DISCONNECT = "disconnect"
    SNAPSHOT = "gameChange"
    INVALID = "invalid"
    BAD_NAME = "badName"
    LOCKED_WARNING = "lockedWarning"
    REMOVED = "removedPlayerFromLobby"


# Events the session router reacts to
ROUTED_EVENTS = (
    SessionEvent.SNAPSHOT,
    SessionEvent.DISCONNECT,
    SessionEvent.INVALID,
    SessionEvent.BAD_NAME,
    SessionEvent.LOCKED_WARNING,
    SessionEvent.REMOVED,
)

# Client -> server request types
JOIN_GAME = "joinGame"
SUBMIT_NAME = "name"

# Application-level keepalive
PING = "ping"
PONG = "pong"


def encode_message(event: str, payload: dict | None = None) -> str:
    body: dict[str, Any] = {"type": event}
    if payload:
        body.update(payload)
    return json.dumps(body)


def decode_message(raw: str | bytes) -> tuple[str, Any]:
    """Split a server frame into (event name, payload). Raises ValueError on garbage."""
    data = json.loads(raw)
    if not isinstance(data, dict) or not isinstance(data.get("type"), str):
        raise ValueError(f"frame has no type tag: {raw!r:.80}")
    return data["type"], data.get("data")


Handler = Callable[[Any], Awaitable[None] | None]


class HandlerRegistry:
    """
    Maps event names to ordered handler lists. Handlers may be plain functions
    or coroutines; coroutines are awaited before the next handler runs.
    """
    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = {}

    def subscribe(self, event: str, callback: Handler):
        self._subscribers.setdefault(event, []).append(callback)

    def unsubscribe(self, event: str, callback: Handler | None = None):
        if callback is None:
            self._subscribers.pop(event, None)
            return
        handlers = self._subscribers.get(event, [])
        if callback in handlers:
            handlers.remove(callback)
        if not handlers:
            self._subscribers.pop(event, None)

    def count(self, event: str) -> int:
        return len(self._subscribers.get(event, []))

    async def publish(self, event: str, payload: Any = None):
        # Copy so a handler may unsubscribe itself mid-dispatch
        for sub in list(self._subscribers.get(event, [])):
            try:
                result = sub(payload)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"event={event} reason=handler_error")
