"""
MODULE OVERVIEW:
The main-menu "new game" call.

WHAT IS HAPPENING HERE:
A single POST to `/new`. The server answers 200 with the fresh game code, or
423 when it is locked ahead of a restart, with the minutes left in the lock.
Anything else is surfaced as a `NewGameError`.
"""
import httpx
from loguru import logger
from pydantic import ValidationError

from party_client.errors import GameLockedError, NewGameError
from party_shared.models import LockedResponse, NewGameResponse


async def create_game(base_url: str, client: httpx.AsyncClient | None = None, timeout_s: float = 10.0) -> str:
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(timeout=timeout_s)

    try:
        resp = await client.post(
            f"{base_url.rstrip('/')}/new",
            json={},
            headers={"Accept": "application/json"},
        )
    finally:
        if owns_client:
            await client.aclose()

    if resp.status_code == 200:
        try:
            game_code = NewGameResponse.model_validate(resp.json()).game_code
        except (ValueError, ValidationError) as e:
            raise NewGameError(resp.status_code, f"malformed body: {e}") from e
        logger.info(f"game_code={game_code} event=new_game")
        return game_code

    if resp.status_code == 423:
        try:
            minutes = LockedResponse.model_validate(resp.json()).minutes
        except (ValueError, ValidationError) as e:
            raise NewGameError(resp.status_code, f"malformed body: {e}") from e
        logger.warning(f"event=new_game reason=locked minutes={minutes}")
        raise GameLockedError(minutes)

    raise NewGameError(resp.status_code, resp.reason_phrase)
