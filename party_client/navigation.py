"""
MODULE OVERVIEW:
The navigation surface shared by the session router and the application loop.

WHAT IS HAPPENING HERE:
Routes are plain path strings, exactly as a browser build would push them:
`/` (menu), `/join?invalid=<code>` (join prompt with an error), `/<code>`
(a game session). The router only ever *pushes* routes; the application loop
is the single consumer that acts on them, one at a time.
"""
import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import List, Protocol
from urllib.parse import parse_qs, quote, unquote, urlencode, urlsplit

ROOT_ROUTE = "/"
JOIN_PATH = "/join"


class RouteKind(str, Enum):
    ROOT = "root"
    JOIN_PROMPT = "join_prompt"
    SESSION = "session"


@dataclass(frozen=True)
class Route:
    kind: RouteKind
    game_code: str | None = None
    invalid_code: str | None = None


def join_prompt_route(invalid_code: str | None = None) -> str:
    if invalid_code is None:
        return JOIN_PATH
    return f"{JOIN_PATH}?{urlencode({'invalid': invalid_code})}"


def session_route(game_code: str) -> str:
    return "/" + quote(game_code, safe="")


def parse_route(path: str) -> Route:
    parts = urlsplit(path)
    route_path = parts.path.rstrip("/") or "/"

    if route_path == "/":
        return Route(RouteKind.ROOT)
    if route_path == JOIN_PATH:
        invalid = parse_qs(parts.query).get("invalid", [None])[0]
        return Route(RouteKind.JOIN_PROMPT, invalid_code=invalid)

    segment = route_path.lstrip("/")
    if "/" in segment:
        raise ValueError(f"unknown route: {path}")
    return Route(RouteKind.SESSION, game_code=unquote(segment))


class Navigator(Protocol):
    def push(self, route: str) -> None: ...


class QueueNavigator:
    """Buffers pushed routes for the application loop; keeps a history for inspection."""

    def __init__(self):
        self._queue: asyncio.Queue[str] = asyncio.Queue()
        self.history: List[str] = []

    def push(self, route: str) -> None:
        self.history.append(route)
        self._queue.put_nowait(route)

    async def next_route(self) -> str:
        return await self._queue.get()

    def drain(self) -> List[str]:
        """Drop routes queued by a session that is already being left."""
        dropped = []
        while not self._queue.empty():
            dropped.append(self._queue.get_nowait())
        return dropped
