"""
MODULE OVERVIEW:
Typed data structures shared by the channel, the session state machine and the
terminal shell, powered by Pydantic v2.

WHAT IS HAPPENING HERE:
The server owns the session snapshot; the client only mirrors it. We declare
the few fields the client actually reasons about (`status`, `code`, `me.name`)
and let everything else ride along untouched as model extras, so new
server-side fields never break an older client.
"""
from pydantic import BaseModel, ConfigDict, Field

LOADING_STATUS = "loading"
LOBBY_PREFIX = "lobby"
INGAME_STATUS = "ingame"


class PlayerSelf(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str | None = None


# WHAT IS HAPPENING HERE:
# A snapshot is always replaced wholesale. `me` may be missing only while the
# status is still the loading sentinel.
class SessionSnapshot(BaseModel):
    model_config = ConfigDict(extra="allow")

    status: str = LOADING_STATUS
    code: str | None = None
    me: PlayerSelf | None = None

    @classmethod
    def loading(cls) -> "SessionSnapshot":
        return cls(status=LOADING_STATUS)

    @property
    def is_loading(self) -> bool:
        return self.status == LOADING_STATUS

    @property
    def my_name(self) -> str | None:
        return self.me.name if self.me else None

    @property
    def extras(self) -> dict:
        return dict(self.model_extra or {})


class JoinRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    game_code: str = Field(alias="gameCode")
    previous_name: str | None = Field(default=None, alias="previousName")

    @property
    def is_rejoin(self) -> bool:
        return self.previous_name is not None

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class NameSubmission(BaseModel):
    name: str = Field(min_length=1)

    def to_payload(self) -> dict:
        return self.model_dump()


class RejoinHint(BaseModel):
    previous_code: str | None = None
    previous_name: str | None = None


# New game endpoint bodies
class NewGameResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    game_code: str = Field(alias="gameCode")


class LockedResponse(BaseModel):
    # the server may send a fractional number of minutes
    minutes: int | float
