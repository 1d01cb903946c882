"""
MODULE OVERVIEW:
The terminal shell: renders the current phase with Rich, shows blocking
notices, and routes the player's input lines.

WHAT IS HAPPENING HERE:
The shell is deliberately thin. It asks the attached session which phase to
show and prints one panel whenever that picture changes. Input is read from
stdin without threads (`loop.add_reader`) and every line goes to exactly one
place, in this order: an open notice (Enter dismisses it), a pending prompt
(the join-code question), or the phase on screen (reconnect while loading, the
player's name during name entry).
"""
import asyncio
import sys
from collections import deque
from typing import Deque

from loguru import logger
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table

from party_client.errors import ChannelNotConnectedError
from party_client.phase import Phase
from party_client.session import SessionController
from party_shared.models import SessionSnapshot


def _short(value) -> str:
    text = str(value)
    return text[:40] + "..." if len(text) > 40 else text


def _snapshot_table(snapshot: SessionSnapshot) -> Table:
    table = Table(expand=True, show_header=False)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")
    table.add_row("You", snapshot.my_name or "")
    for key, value in snapshot.extras.items():
        table.add_row(key, _short(value))
    return table


def build_phase_view(phase: Phase, snapshot: SessionSnapshot, game_code: str, connected: bool, stats: dict):
    """Return a renderable for the phase, or None for UNKNOWN."""
    if phase is Phase.LOADING:
        color = "green" if connected else "red"
        status = "Connected" if connected else "Disconnected"
        stats_text = (
            f"Events: {stats['events_received']}  Reconnects: {stats['reconnect_count']}"
        )
        body = (
            f"Waiting for players...\n[{color} bold]{status}[/]\n"
            f"{stats_text}\nPress Enter to reconnect."
        )
        return Panel(body, title=f"Game {game_code}", style=color)

    if phase is Phase.NAME_ENTRY:
        return Panel(
            "Type your name and press Enter.",
            title=f"Join game {snapshot.code or game_code}",
            style="cyan",
        )

    if phase is Phase.LOBBY:
        return Panel(
            Group(f"Status: {snapshot.status}", _snapshot_table(snapshot)),
            title=f"Lobby | {snapshot.code or game_code}",
            style="blue",
        )

    if phase is Phase.IN_GAME:
        return Panel(
            _snapshot_table(snapshot),
            title=f"In game | {snapshot.code or game_code}",
            style="magenta",
        )

    return None


class ConsoleShell:
    def __init__(self, console: Console | None = None):
        self.console = console or Console()
        self.session: SessionController | None = None
        self.loading = True

        self._notices: Deque[asyncio.Future] = deque()
        self._line_waiter: asyncio.Future | None = None
        self._last_render: tuple | None = None

    # ==========================
    # NOTIFIER
    # ==========================
    def notify(self, message: str) -> asyncio.Future:
        fut = asyncio.get_running_loop().create_future()
        self._notices.append(fut)
        self.console.print(Panel(message, title="Notice", subtitle="press Enter", style="yellow"))
        return fut

    def error(self, message: str) -> None:
        self.console.print(f"[red bold]{message}[/]")

    # ==========================
    # RENDERING
    # ==========================
    def attach(self, session: SessionController) -> None:
        self.session = session
        self.loading = False
        self._last_render = None
        self.render()

    def detach(self) -> None:
        self.session = None
        self.loading = True
        self._last_render = None

    def render(self) -> None:
        session = self.session
        if session is None:
            return
        phase = session.phase(self.loading)
        connected = session.channel.connected
        key = (phase, session.snapshot.model_dump_json(), connected)
        if key == self._last_render:
            return
        self._last_render = key

        view = build_phase_view(phase, session.snapshot, session.game_code, connected, session.channel.stats)
        if view is not None:
            self.console.print(view)

    def _rerender(self) -> None:
        self._last_render = None
        self.render()

    # ==========================
    # INPUT
    # ==========================
    async def ask(self, prompt: str) -> str:
        self.console.print(prompt)
        fut = asyncio.get_running_loop().create_future()
        self._line_waiter = fut
        try:
            return await fut
        finally:
            self._line_waiter = None

    async def ask_game_code(self, invalid_code: str | None = None) -> str:
        if invalid_code:
            self.error(f"No game with code {invalid_code}.")
        return (await self.ask("Enter a game code (blank to quit):")).strip()

    async def handle_line(self, line: str) -> None:
        text = line.strip()

        while self._notices:
            fut = self._notices.popleft()
            if not fut.done():
                fut.set_result(None)
                self._rerender()
                return

        if self._line_waiter is not None and not self._line_waiter.done():
            self._line_waiter.set_result(text)
            return

        session = self.session
        if session is None:
            return

        phase = session.phase(self.loading)
        if phase is Phase.LOADING:
            self.console.print("Reconnecting...")
            session.reconnect()
        elif phase is Phase.NAME_ENTRY:
            if not text:
                self._rerender()
                return
            try:
                await session.submit_name(text)
            except ChannelNotConnectedError as e:
                self.error(f"Could not send your name: {e}")
        else:
            self.console.print("[dim]Waiting on the other players...[/]")

    def end_of_input(self) -> None:
        logger.debug("event=stdin_eof")
        if self._line_waiter is not None and not self._line_waiter.done():
            self._line_waiter.set_result("")

    async def read_stdin(self) -> None:
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[str] = asyncio.Queue()
        fd = sys.stdin.fileno()

        def on_readable():
            line = sys.stdin.readline()
            if line == "":
                loop.remove_reader(fd)
            queue.put_nowait(line)

        loop.add_reader(fd, on_readable)
        try:
            while True:
                line = await queue.get()
                if line == "":
                    self.end_of_input()
                    return
                await self.handle_line(line)
        finally:
            loop.remove_reader(fd)
