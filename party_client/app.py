"""
MODULE OVERVIEW:
The application shell: owns the channel for the whole run and turns routes
into screens.

WHAT IS HAPPENING HERE:
The loop consumes one route at a time. `/<code>` mounts a fresh
`SessionController` and waits for the next navigation; leaving the `async with`
block unmounts it, which removes its handlers and closes the channel, so a late
frame for the old session has nowhere to land. `/join?invalid=...` asks for a
new code, `/` ends the run. The `finally` blocks guarantee that Ctrl-C or any
crash still closes the channel.
"""
import asyncio

import httpx
from loguru import logger

from party_client.channel import Channel
from party_client.errors import GameLockedError, NewGameError
from party_client.identity import IdentityStore, JsonFileIdentityStore
from party_client.menu import create_game
from party_client.messages import locked_message
from party_client.navigation import QueueNavigator, RouteKind, ROOT_ROUTE, parse_route, session_route
from party_client.session import SessionController
from party_client.view import ConsoleShell
from party_shared.config import Settings, settings as default_settings


class App:
    def __init__(
        self,
        cfg: Settings = default_settings,
        channel: Channel | None = None,
        store: IdentityStore | None = None,
        shell: ConsoleShell | None = None,
    ):
        self.settings = cfg
        self.channel = channel or Channel.from_settings(cfg)
        self.store = store or JsonFileIdentityStore(cfg.IDENTITY_STORE_PATH)
        self.shell = shell or ConsoleShell()
        self.navigator = QueueNavigator()

    async def run(self, initial_route: str | None = None, new_game: bool = False) -> None:
        input_task = asyncio.create_task(self.shell.read_stdin())
        try:
            route = await self._create_game() if new_game else initial_route
            while route is not None:
                route = await self.visit(route)
        finally:
            input_task.cancel()
            await asyncio.gather(input_task, return_exceptions=True)
            await self.channel.close()

    async def visit(self, path: str) -> str | None:
        """Show one route; return the next route, or None to stop."""
        try:
            route = parse_route(path)
        except ValueError as e:
            logger.warning(f"route={path} event=navigate reason='{e}'")
            return ROOT_ROUTE

        logger.debug(f"route={path} event=navigate kind={route.kind.value}")
        if route.kind is RouteKind.ROOT:
            self.shell.console.print("Back to the main menu. Bye!")
            return None

        if route.kind is RouteKind.JOIN_PROMPT:
            code = await self.shell.ask_game_code(route.invalid_code)
            return session_route(code) if code else None

        return await self._run_session(route.game_code)

    async def _run_session(self, game_code: str) -> str:
        session = SessionController(
            game_code,
            self.channel,
            self.store,
            self.navigator,
            self.shell,
            settings=self.settings,
            on_change=self.shell.render,
        )
        async with session:
            self.shell.attach(session)
            try:
                next_route = await self.navigator.next_route()
            finally:
                self.shell.detach()

        for stale in self.navigator.drain():
            logger.debug(f"game_code={game_code} event=navigate_dropped route={stale}")
        return next_route

    async def _create_game(self) -> str | None:
        try:
            game_code = await create_game(self.settings.SERVER_URL, timeout_s=self.settings.HTTP_TIMEOUT_S)
        except GameLockedError as e:
            await self.shell.notify(locked_message(e.minutes))
            return None
        except (NewGameError, httpx.HTTPError) as e:
            logger.error(f"event=new_game reason=failed error='{e}'")
            self.shell.error(f"Could not create a game: {e}")
            return None
        return session_route(game_code)
