"""
MODULE OVERVIEW:
The persistent identity store: a tiny cookie-like key-value jar that survives
restarts of the client.

WHAT IS HAPPENING HERE:
The only thing the session machine keeps here is the rejoin hint, the last game
code we submitted a name for and that name, under the same keys a browser
build would keep in cookies (`previousGameCode`, `previousName`).
"""
import json
from pathlib import Path
from typing import Dict, Protocol

from loguru import logger

from party_shared.models import RejoinHint

PREVIOUS_CODE_KEY = "previousGameCode"
PREVIOUS_NAME_KEY = "previousName"


class IdentityStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryIdentityStore:
    def __init__(self, initial: Dict[str, str] | None = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileIdentityStore:
    """
    Keeps the jar as one JSON object on disk. Every write rewrites the file via
    a sibling temp file and a rename, so a crash never leaves half a jar behind.
    An unreadable jar is treated as empty.
    """
    def __init__(self, path: Path):
        self.path = Path(path).expanduser()

    def _load(self) -> Dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"path={self.path} event=identity_corrupt error='{e}'")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"path={self.path} event=identity_corrupt error='not an object'")
            return {}
        return {str(k): str(v) for k, v in data.items() if v is not None}

    def _save(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        tmp.replace(self.path)

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._save(data)


def read_rejoin_hint(store: IdentityStore) -> RejoinHint:
    return RejoinHint(
        previous_code=store.get(PREVIOUS_CODE_KEY),
        previous_name=store.get(PREVIOUS_NAME_KEY),
    )


def write_rejoin_hint(store: IdentityStore, game_code: str, name: str) -> None:
    store.set(PREVIOUS_CODE_KEY, game_code)
    store.set(PREVIOUS_NAME_KEY, name)
    logger.debug(f"game_code={game_code} event=rejoin_hint_saved")


def clear_rejoin_hint(store: IdentityStore) -> None:
    store.delete(PREVIOUS_CODE_KEY)
    store.delete(PREVIOUS_NAME_KEY)
