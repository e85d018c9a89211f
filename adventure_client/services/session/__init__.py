"""Session controller owning live game state."""

from .game_session import (
    ERROR_MESSAGE,
    WELCOME_MESSAGE,
    GameBackend,
    GameSession,
    SessionBusyError,
    new_game_state,
)
from .manager import SessionManager, get_session_manager, set_session_manager

__all__ = [
    "ERROR_MESSAGE",
    "WELCOME_MESSAGE",
    "GameBackend",
    "GameSession",
    "SessionBusyError",
    "SessionManager",
    "get_session_manager",
    "new_game_state",
    "set_session_manager",
]
