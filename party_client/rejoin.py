"""
Rejoin resolution and the per-mount join latch.

A flaky network can fire `connect` several times before the first join lands.
The `JoinGuard` makes sure only one `joinGame` leaves per mounted session; the
resolver decides whether that one request reclaims a remembered seat.
"""
from loguru import logger

from party_shared.models import JoinRequest, RejoinHint


class JoinGuard:
    def __init__(self):
        self.has_joined = False

    def acquire(self) -> bool:
        """Latch the guard. Returns False if it was already latched."""
        if self.has_joined:
            return False
        self.has_joined = True
        return True

    def release(self) -> None:
        # Only for a join that never left the socket
        self.has_joined = False


def resolve_join_request(game_code: str, hint: RejoinHint | None) -> JoinRequest:
    if hint is not None and hint.previous_code == game_code and hint.previous_name:
        request = JoinRequest(game_code=game_code, previous_name=hint.previous_name)
    else:
        request = JoinRequest(game_code=game_code)

    kind = "rejoin" if request.is_rejoin else "fresh"
    logger.info(f"game_code={game_code} event=join kind={kind}")
    return request
