from __future__ import annotations

import asyncio
from typing import Dict, Optional

from ...api_client import get_backend_client
from ...config import Settings, get_settings
from ...logging_config import logger
from ..store import DocumentStore, get_document_store
from .game_session import GameBackend, GameSession


class SessionManager:
    """Keeps one live ``GameSession`` per game id."""

    def __init__(
        self,
        *,
        store: Optional[DocumentStore] = None,
        backend: Optional[GameBackend] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self._store = store
        self._backend = backend
        self._settings = settings
        self._sessions: Dict[str, GameSession] = {}
        self._lock = asyncio.Lock()

    def _resolve(self) -> None:
        if self._store is None:
            self._store = get_document_store()
        if self._backend is None:
            self._backend = get_backend_client()
        if self._settings is None:
            self._settings = get_settings()

    async def get_session(self, game_id: str, player_id: Optional[str] = None) -> GameSession:
        async with self._lock:
            session = self._sessions.get(game_id)
            if session is not None:
                return session
            self._resolve()
            session = GameSession(
                game_id,
                player_id,
                store=self._store,
                backend=self._backend,
                settings=self._settings,
            )
            await session.start()
            self._sessions[game_id] = session
            logger.info("session started", extra={"game_id": game_id})
            return session

    @property
    def store(self) -> DocumentStore:
        self._resolve()
        return self._store

    def peek(self, game_id: str) -> Optional[GameSession]:
        return self._sessions.get(game_id)

    async def close_session(self, game_id: str) -> None:
        async with self._lock:
            session = self._sessions.pop(game_id, None)
        if session is not None:
            await session.close()
            logger.info("session closed", extra={"game_id": game_id})

    async def close_all(self) -> None:
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            await session.close()


_session_manager: Optional[SessionManager] = None


def get_session_manager() -> SessionManager:
    global _session_manager
    if _session_manager is None:
        _session_manager = SessionManager()
    return _session_manager


def set_session_manager(manager: Optional[SessionManager]) -> None:
    global _session_manager
    _session_manager = manager


__all__ = ["SessionManager", "get_session_manager", "set_session_manager"]
