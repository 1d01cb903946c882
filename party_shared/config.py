"""
MODULE OVERVIEW:
Application-wide configuration using Pydantic Settings.

WHAT IS HAPPENING HERE:
Every tunable of the client lives here: where the game server is, how hard the
channel retries when the network flaps, and where the rejoin hint is kept
between runs. Values come from `SPYFALL_*` environment variables or a `.env`
file, so pointing the client at a staging server needs no code change.
"""
from pathlib import Path

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    SERVER_URL: str = "http://127.0.0.1:3000"
    WS_PATH: str = "/ws"
    LOG_LEVEL: str = "INFO"

    # Rejoin hint persistence (the "cookie jar")
    IDENTITY_STORE_PATH: Path = Path.home() / ".spyfall" / "identity.json"

    # Preview/demo sessions never navigate away on disconnect
    PREVIEW_GAME_CODE: str = "ffff"

    # Channel reconnection
    RECONNECT_BASE_DELAY_S: float = 1.0
    RECONNECT_MAX_DELAY_S: float = 5.0
    RECONNECT_ATTEMPTS: int | None = None

    # New game HTTP call
    HTTP_TIMEOUT_S: float = 10.0

    class Config:
        env_prefix = "SPYFALL_"
        env_file = ".env"
        env_file_encoding = 'utf-8'
        extra = 'ignore'

    @property
    def ws_url(self) -> str:
        base = self.SERVER_URL.rstrip('/')
        base = base.replace('http://', 'ws://').replace('https://', 'wss://')
        return f"{base}{self.WS_PATH}"

settings = Settings()
