"""Client-local credential markers.

One store object owns the markers; the gate and the strategies receive it
explicitly instead of reading storage on their own.
"""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Protocol

from fundtrack.core.config import ClientSettings

CREDENTIAL_KEY = "webauthnCredential"
SOCIAL_TOKEN_KEY = "googleAuthToken"
MANUAL_TOKEN_KEY = "manualAuthToken"


class SessionStore(Protocol):
    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def clear(self, key: str) -> None:
        ...


class MemorySessionStore:
    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def clear(self, key: str) -> None:
        self._data.pop(key, None)


class FileSessionStore:
    """Markers persisted as a JSON object so they survive restarts."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    @classmethod
    def from_settings(cls, cfg: ClientSettings | None = None) -> "FileSessionStore":
        cfg = cfg or ClientSettings()
        return cls(Path(cfg.session_file).expanduser())

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        with self.path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp, self.path)

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def clear(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._save(data)
