from enum import Enum

from party_shared.models import INGAME_STATUS, LOBBY_PREFIX, SessionSnapshot


class Phase(str, Enum):
    LOADING = "loading"
    NAME_ENTRY = "name_entry"
    LOBBY = "lobby"
    IN_GAME = "in_game"
    UNKNOWN = "unknown"


def select_phase(
    snapshot: SessionSnapshot,
    is_loading_external: bool = False,
    lobby_prefix: str = LOBBY_PREFIX,
) -> Phase:
    """
    Pick the one phase to render. The checks are a precedence chain: a player
    without a name always gets name entry, even when the server already says
    the session is in the lobby or in game.
    """
    if is_loading_external or snapshot.is_loading:
        return Phase.LOADING
    if not snapshot.my_name:
        return Phase.NAME_ENTRY
    if snapshot.status.startswith(lobby_prefix):
        return Phase.LOBBY
    if snapshot.status == INGAME_STATUS:
        return Phase.IN_GAME
    return Phase.UNKNOWN
