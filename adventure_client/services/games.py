"""Save-manager operations: list, create and delete a player's games."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import TypeAdapter, ValidationError

from ..api_client import BackendClient
from ..logging_config import logger
from ..models import GameListEntry
from .store import DocumentStore
from ..utils import format_relative_time

DEFAULT_GAME_NAME = "Unnamed adventure"
DEFAULT_LOCATION = "Unknown location"
DEFAULT_DESCRIPTION = "A new adventure is about to begin..."

_datetime_adapter = TypeAdapter(datetime)


def _parse_timestamp(raw: Any) -> Optional[datetime]:
    if raw is None or raw == "":
        return None
    try:
        return _datetime_adapter.validate_python(raw)
    except ValidationError:
        return None


def game_stats(game: Dict[str, Any]) -> Dict[str, Any]:
    """Counts shown for one entry of the game list."""

    current = game.get("currentState") or {}
    return {
        "messageCount": len(game.get("messageHistory") or []),
        "summaryCount": len(game.get("summaries") or []),
        "location": current.get("location") or DEFAULT_LOCATION,
    }


def to_list_entry(
    game: Dict[str, Any], *, current_game_id: Optional[str] = None, now: Optional[datetime] = None
) -> GameListEntry:
    stats = game_stats(game)
    last_saved = _parse_timestamp(game.get("lastSaved"))
    game_id = str(game.get("gameId") or "")
    return GameListEntry(
        game_id=game_id,
        name=game.get("name") or DEFAULT_GAME_NAME,
        location=stats["location"],
        message_count=stats["messageCount"],
        summary_count=stats["summaryCount"],
        last_saved=last_saved,
        last_saved_label=format_relative_time(last_saved, now=now),
        is_current=bool(current_game_id) and game_id == current_game_id,
    )


class SaveManager:
    def __init__(self, backend: BackendClient, store: Optional[DocumentStore] = None) -> None:
        self._backend = backend
        self._store = store

    async def list_games(self, player_id: str, *, current_game_id: Optional[str] = None) -> List[GameListEntry]:
        games = await self._backend.get_game_list(player_id)
        entries = [
            to_list_entry(game, current_game_id=current_game_id)
            for game in games
            if isinstance(game, dict) and game.get("gameId")
        ]
        logger.debug("loaded game list", extra={"player_id": player_id, "count": len(entries)})
        return entries

    async def create_game(self, player_id: str, name: str, description: Optional[str] = None) -> str:
        cleaned = (name or "").strip()
        if not cleaned:
            raise ValueError("game name must be a non-empty string")
        game_id = await self._backend.create_game(
            player_id,
            {"name": cleaned, "description": description or DEFAULT_DESCRIPTION},
        )
        logger.info("created game", extra={"player_id": player_id, "game_id": game_id})
        return game_id

    async def delete_game(self, game_id: str) -> None:
        """Delete the game on the backend, then drop the local document."""
        await self._backend.delete_game(game_id)
        if self._store is not None:
            self._store.delete(game_id)
        logger.info("deleted game", extra={"game_id": game_id})


__all__ = [
    "DEFAULT_DESCRIPTION",
    "DEFAULT_GAME_NAME",
    "DEFAULT_LOCATION",
    "SaveManager",
    "game_stats",
    "to_list_entry",
]
