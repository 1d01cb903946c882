class PartyClientError(Exception):
    """Base class for errors raised by the party client."""


class ChannelNotConnectedError(PartyClientError):
    """Raised when emitting on a channel that has no live websocket."""


class NewGameError(PartyClientError):
    def __init__(self, status_code: int, reason: str = ""):
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"{status_code} {reason}".strip())


class GameLockedError(PartyClientError):
    """The server refuses new sessions for a while (HTTP 423)."""

    def __init__(self, minutes: int | float):
        self.minutes = minutes
        super().__init__(f"server locked for {minutes} more minute(s)")
