"""
CLI entrypoint for the Spyfall party client.
"""
import sys
import typer
import asyncio
from loguru import logger

from party_client.app import App
from party_client.identity import JsonFileIdentityStore, clear_rejoin_hint, read_rejoin_hint
from party_client.navigation import session_route
from party_shared.config import settings

app = typer.Typer(help="Spyfall party client")

def _configure_logging():
    logger.remove()
    logger.add(sys.stderr, level=settings.LOG_LEVEL.upper())

@app.command()
def join(code: str = typer.Argument(..., help="Game code to join")):
    """Join an existing game by its code."""
    _configure_logging()
    try:
        asyncio.run(App(settings).run(session_route(code)))
    except KeyboardInterrupt:
        pass

@app.command()
def new():
    """Ask the server for a new game and join it."""
    _configure_logging()
    try:
        asyncio.run(App(settings).run(new_game=True))
    except KeyboardInterrupt:
        pass

@app.command()
def whoami():
    """Show the remembered game code and name used for rejoining."""
    hint = read_rejoin_hint(JsonFileIdentityStore(settings.IDENTITY_STORE_PATH))
    if not hint.previous_code:
        typer.echo("No previous game remembered.")
        raise typer.Exit(0)
    typer.echo(f"{hint.previous_name or '?'} in game {hint.previous_code}")

@app.command()
def forget():
    """Forget the remembered game so the next join asks for a name again."""
    clear_rejoin_hint(JsonFileIdentityStore(settings.IDENTITY_STORE_PATH))
    typer.echo("Forgotten.")

if __name__ == "__main__":
    app()
