"""Client-side session storage for the issued token."""

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger("authgate.panel")

TOKEN_KEY = "token"
DEFAULT_SESSION_FILE = Path.home() / ".authgate" / "session.json"


class SessionStore(ABC):
    """Holds the bearer token between runs.

    ``load`` is called once on start-up, ``clear`` on logout.
    """

    @abstractmethod
    def load(self) -> str | None:
        ...

    @abstractmethod
    def get_token(self) -> str | None:
        ...

    @abstractmethod
    def set_token(self, token: str) -> None:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...

    @property
    def is_authenticated(self) -> bool:
        return bool(self.get_token())


class MemorySessionStore(SessionStore):
    """Process-local store, used by tests and one-shot scripts."""

    def __init__(self, token: str | None = None) -> None:
        self._token = token

    def load(self) -> str | None:
        return self._token

    def get_token(self) -> str | None:
        return self._token

    def set_token(self, token: str) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class FileSessionStore(SessionStore):
    """JSON file holding ``{"token": ...}``, readable only by the owner."""

    def __init__(self, path: Path | str | None = None) -> None:
        self.path = Path(path) if path else DEFAULT_SESSION_FILE
        self._data: dict[str, str] = {}
        self._loaded = False

    def load(self) -> str | None:
        self._loaded = True
        self._data = {}
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", self.path, e)
            return None
        if isinstance(data, dict) and isinstance(data.get(TOKEN_KEY), str):
            self._data = {TOKEN_KEY: data[TOKEN_KEY]}
        return self._data.get(TOKEN_KEY)

    def get_token(self) -> str | None:
        if not self._loaded:
            self.load()
        return self._data.get(TOKEN_KEY)

    def set_token(self, token: str) -> None:
        self._data = {TOKEN_KEY: token}
        self._loaded = True
        self._write()

    def clear(self) -> None:
        self._data = {}
        self._loaded = True
        if self.path.exists():
            self.path.unlink()

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(self._data, f)
