"""Persist the local player identity and the last game played."""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Dict, Optional

from ..config import get_settings
from ..logging_config import logger
from ..utils import prefixed_id


class IdentityStore:
    """Small JSON file holding ``player_id`` and ``last_game_id``."""

    def __init__(self, path: Path):
        self._path = path
        self._lock = threading.Lock()
        self._cached: Dict[str, str] = {}
        self._load()

    def _load(self) -> None:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            self._cached = {}
            return
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("failed to read identity file", extra={"error": str(exc)})
            self._cached = {}
            return
        self._cached = {key: str(value) for key, value in data.items() if value} if isinstance(data, dict) else {}

    def _write_locked(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(self._cached, indent=2), encoding="utf-8")

    def player_id(self) -> str:
        with self._lock:
            value = self._cached.get("player_id")
            if not value:
                value = prefixed_id("player")
                self._cached["player_id"] = value
                self._write_locked()
                logger.info("generated player id", extra={"player_id": value})
            return value

    def last_game_id(self) -> str:
        """Return the last game played, creating a default id on first run."""
        with self._lock:
            value = self._cached.get("last_game_id")
            if not value:
                value = prefixed_id("game")
                self._cached["last_game_id"] = value
                self._write_locked()
            return value

    def set_last_game(self, game_id: str) -> None:
        candidate = (game_id or "").strip()
        if not candidate:
            raise ValueError("game id must be a non-empty string")
        with self._lock:
            self._cached["last_game_id"] = candidate
            self._write_locked()

    def snapshot(self) -> Dict[str, Optional[str]]:
        with self._lock:
            return {
                "player_id": self._cached.get("player_id"),
                "last_game_id": self._cached.get("last_game_id"),
            }


_identity_store: Optional[IdentityStore] = None
_factory_lock = threading.Lock()


def get_identity_store() -> IdentityStore:
    global _identity_store
    if _identity_store is None:
        with _factory_lock:
            if _identity_store is None:
                _identity_store = IdentityStore(get_settings().identity_path)
    return _identity_store


__all__ = ["IdentityStore", "get_identity_store"]
