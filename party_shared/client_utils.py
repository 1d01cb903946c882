import asyncio
import random
from typing import Callable, Awaitable
from loguru import logger
from datetime import datetime, timezone

import websockets

def make_client_stats() -> dict:
    """
    Returns a fresh stats dictionary with zeroed counters.
    The channel calls this once in __init__.
    Keys: events_received, reconnect_count, bytes_received,
          last_event_at, connected_at.
    """
    return {
        "events_received": 0,
        "reconnect_count": 0,
        "bytes_received": 0,
        "last_event_at": None,
        "connected_at": None,
    }

def mark_event(stats: dict, size: int) -> None:
    stats["events_received"] += 1
    stats["bytes_received"] += size
    stats["last_event_at"] = datetime.now(timezone.utc).isoformat()

def backoff_delay(attempt: int, base_delay_s: float, max_delay_s: float) -> float:
    """Exponential backoff capped at max_delay_s, plus up to 10% jitter."""
    delay = min(base_delay_s * (2 ** (attempt - 1)), max_delay_s)
    return delay + random.uniform(0, delay * 0.1)

async def with_reconnect(
    connect_fn: Callable[[], Awaitable[None]],
    stats: dict,
    max_attempts: int | None = None,
    base_delay_s: float = 1.0,
    max_delay_s: float = 5.0,
    url: str = "-",
    stable_after_s: float = 30.0,
) -> None:
    """
    Keep calling connect_fn until it gives up.

    Every redial waits out a backoff delay, whether connect_fn raised a
    connection error or returned. The attempt counter only resets once an
    attempt has stayed up for stable_after_s, so a socket that dies right after
    the handshake keeps backing off instead of redialing in a tight loop.
    With max_attempts set, that many consecutive failures end the loop.
    """
    loop = asyncio.get_running_loop()
    attempt = 0
    while True:
        started = loop.time()
        try:
            await connect_fn()
        except (ConnectionError, OSError, websockets.WebSocketException) as e:
            if loop.time() - started >= stable_after_s:
                attempt = 0
            attempt += 1
            stats["reconnect_count"] += 1
            if max_attempts is not None and attempt >= max_attempts:
                logger.error(f"url={url} event=reconnect_exhausted attempts={attempt} error='{e}'")
                return
            delay = backoff_delay(attempt, base_delay_s, max_delay_s)
            logger.warning(f"url={url} event=reconnect attempt={attempt} delay={delay:.2f}s error='{e}'")
        else:
            attempt = 0
            delay = backoff_delay(1, base_delay_s, max_delay_s)
            logger.info(f"url={url} event=redial delay={delay:.2f}s")
        await asyncio.sleep(delay)
