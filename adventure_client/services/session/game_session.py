from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, Optional, Protocol, Union

from pydantic import ValidationError

from ...api_client import BackendAPIError
from ...config import Settings, get_settings
from ...logging_config import logger
from ...models import (
    CurrentState,
    GameState,
    Message,
    MessageType,
    NarrativeResponse,
    PlayerStats,
    SummaryStats,
    SummaryStatus,
)
from ...utils import message_id, utc_now
from ..store import Document, DocumentStore, DocumentStoreError, Subscription
from ..summarization import (
    ConsolidationOutcome,
    ConsolidationScheduler,
    HistoryConsolidator,
    PersistenceFailure,
    SummaryBackend,
    prune_summarized_messages,
)

OPENING_SCENE = "You stand at a mysterious crossroads, mist swirling all around you..."
OPENING_LOCATION = "Mysterious Crossroads"
WELCOME_MESSAGE = "Welcome to the world of the text RPG! Enter your first action."
ERROR_MESSAGE = "Sorry, something went wrong. Please try again later."


class SessionBusyError(RuntimeError):
    """Raised when a player turn arrives while another is still processing."""


class GameBackend(SummaryBackend, Protocol):
    async def send_message(
        self, game_id: str, message: str, game_context: CurrentState
    ) -> NarrativeResponse:  # pragma: no cover - typing protocol
        ...

    async def save_game_state(self, game_id: str, game_state: Dict[str, Any]) -> Dict[str, Any]:  # pragma: no cover - typing protocol
        ...

    async def load_game_state(self, game_id: str) -> Dict[str, Any]:  # pragma: no cover - typing protocol
        ...


def new_game_state(game_id: str, player_id: Optional[str], name: Optional[str] = None) -> GameState:
    now = utc_now()
    return GameState(
        game_id=game_id,
        player_id=player_id,
        name=name,
        current_state=CurrentState(
            scene=OPENING_SCENE,
            inventory=[],
            stats=PlayerStats(health=100, mana=50),
            location=OPENING_LOCATION,
        ),
        message_history=[
            Message(id="welcome", type=MessageType.SYSTEM, content=WELCOME_MESSAGE, timestamp=now)
        ],
        summaries=[],
        created_at=now,
        last_saved=now,
    )


StateUpdate = Union[Document, Callable[[GameState], Document]]


def _dump_messages(messages) -> list:
    return [message.model_dump(mode="json") for message in messages]


def _prunable(state: GameState) -> Optional[list]:
    """Messages left after pruning, or None when nothing can be dropped."""
    if not state.summaries:
        return None
    remaining = prune_summarized_messages(
        state.message_history, state.summaries, offset=state.pruned_count
    )
    return remaining if len(remaining) < len(state.message_history) else None


class GameSession:
    """Owns one game's in-memory snapshot and keeps it in sync.

    The document store is the durable copy; the backend receives a mirror
    of every save. All mutation goes through ``save`` which adopts a fresh
    snapshot rather than editing the current one in place.
    """

    def __init__(
        self,
        game_id: str,
        player_id: Optional[str],
        *,
        store: DocumentStore,
        backend: GameBackend,
        settings: Optional[Settings] = None,
    ) -> None:
        self._game_id = game_id
        self._player_id = player_id
        self._store = store
        self._backend = backend
        self._settings = settings or get_settings()
        self._state = GameState(game_id=game_id, player_id=player_id)
        self._consolidator = HistoryConsolidator(backend, self._persist, settings=self._settings)
        self._scheduler = ConsolidationScheduler(self._consolidator)
        self._subscription: Optional[Subscription] = None
        self._is_connected = False
        self._is_loading = False
        self._is_processing = False
        self._save_lock = asyncio.Lock()

    @property
    def game_id(self) -> str:
        return self._game_id

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._is_connected

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def is_processing(self) -> bool:
        return self._is_processing

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def consolidator(self) -> HistoryConsolidator:
        return self._consolidator

    @property
    def scheduler(self) -> ConsolidationScheduler:
        return self._scheduler

    @property
    def summary_status(self) -> SummaryStatus:
        return self._consolidator.status

    async def start(self) -> GameState:
        """Load or create the game, then follow document changes."""
        await self.initialize()
        if self._subscription is None:
            try:
                self._subscription = self._store.subscribe(self._game_id, self._on_document_change)
            except DocumentStoreError as exc:
                self._is_connected = False
                logger.error(
                    "document subscription failed",
                    extra={"game_id": self._game_id, "error": str(exc)},
                )
        return self._state

    async def initialize(self) -> GameState:
        self._is_loading = True
        try:
            document = self._store.get(self._game_id)
            if not document:
                document = await self._load_remote()
                if document:
                    self._store.set(self._game_id, self._state.merge_document(document).to_document())
            if document:
                self._state = self._state.merge_document(document)
            else:
                fresh = new_game_state(self._game_id, self._player_id)
                self._store.set(self._game_id, fresh.to_document())
                self._state = fresh
                logger.info("created new game", extra={"game_id": self._game_id})
            self._is_connected = True
        except (DocumentStoreError, ValidationError) as exc:
            logger.error(
                "failed to initialize game",
                extra={"game_id": self._game_id, "error": str(exc)},
            )
        finally:
            self._is_loading = False
        self._consolidator.refresh(self._state)
        return self._state

    async def _load_remote(self) -> Optional[Document]:
        """Backend copy of a game with no local document, e.g. one created elsewhere."""
        try:
            payload = await self._backend.load_game_state(self._game_id)
        except BackendAPIError as exc:
            logger.info(
                "no backend copy of game",
                extra={"game_id": self._game_id, "status_code": exc.status_code},
            )
            return None
        if isinstance(payload, dict) and isinstance(payload.get("gameState"), dict):
            payload = payload["gameState"]
        if not isinstance(payload, dict) or not payload.get("messageHistory"):
            return None
        logger.info("restored game from backend", extra={"game_id": self._game_id})
        return payload

    async def close(self) -> None:
        """Cancel the change subscription and wait for background checks."""
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.cancel()
        await self._scheduler.drain()
        self._consolidator.close()
        self._is_connected = False

    def _on_document_change(self, document: Document) -> None:
        try:
            self._state = self._state.merge_document(document)
        except ValidationError as exc:
            self._is_connected = False
            logger.error(
                "ignoring malformed game document",
                extra={"game_id": self._game_id, "error": str(exc)},
            )
            return
        self._is_connected = True

    async def save(self, update: StateUpdate) -> GameState:
        """Merge *update* (document keys) into the game and persist it.

        *update* may be a callable; it then receives the current snapshot
        once this save holds the session's save lock. Saves run one at a
        time, each mirroring the snapshot left by the previous one. The
        backend mirror is written first so a failed save leaves the local
        snapshot and the document store untouched.
        """
        async with self._save_lock:
            changes = update(self._state) if callable(update) else update
            document = {**changes, "lastSaved": utc_now().isoformat()}
            try:
                new_state = self._state.merge_document(document)
            except ValidationError as exc:
                raise PersistenceFailure(f"invalid game state update: {exc}") from exc

            try:
                await self._backend.save_game_state(self._game_id, new_state.to_document())
            except BackendAPIError as exc:
                logger.error("failed to save game state", extra={"game_id": self._game_id, "error": str(exc)})
                raise PersistenceFailure(f"backend save failed: {exc}") from exc

            return self._commit(new_state)

    def _commit(self, new_state: GameState) -> GameState:
        try:
            self._store.set(self._game_id, new_state.to_document(), merge=True)
        except DocumentStoreError as exc:
            logger.error("failed to save game state", extra={"game_id": self._game_id, "error": str(exc)})
            raise PersistenceFailure(f"document store save failed: {exc}") from exc

        self._state = new_state
        return new_state

    async def _persist(self, game_id: str, update: Dict[str, Any]) -> GameState:
        if game_id and game_id != self._game_id:
            raise PersistenceFailure(f"session for {self._game_id} cannot persist {game_id}")
        return await self.save(update)

    async def add_message(self, message_type: MessageType, content: str) -> Message:
        message = Message(
            id=message_id(),
            type=MessageType(message_type),
            content=content,
            timestamp=utc_now(),
        )
        state = await self.save(
            lambda current: {"messageHistory": _dump_messages([*current.message_history, message])}
        )
        self._consolidator.refresh(state)
        self._scheduler.schedule(state)
        return message

    async def update_state(self, update: Document) -> GameState:
        return await self.save(update)

    async def send_player_message(self, content: str) -> Message:
        """Play one turn: record the input, ask the narrator, record the reply."""
        if self._is_processing:
            raise SessionBusyError("a turn is already being processed")

        self._is_processing = True
        try:
            await self.add_message(MessageType.USER, content)
            response = await self._backend.send_message(
                self._game_id, content, self._state.current_state
            )
            reply = await self.add_message(MessageType.AI, response.content)
            if response.game_state is not None:
                await self.update_state({"currentState": response.game_state.model_dump(mode="json")})
            return reply
        except (BackendAPIError, PersistenceFailure) as exc:
            logger.error(
                "player turn failed",
                extra={"game_id": self._game_id, "error": str(exc)},
            )
            try:
                await self.add_message(MessageType.SYSTEM, ERROR_MESSAGE)
            except PersistenceFailure as notice_exc:
                logger.warning(
                    "failed to record error notice",
                    extra={"game_id": self._game_id, "error": str(notice_exc)},
                )
            raise
        finally:
            self._is_processing = False

    async def generate_summary(self) -> ConsolidationOutcome:
        """Manually requested consolidation; bypasses the thresholds."""
        return await self._consolidator.consolidate(self._state, force=True)

    async def cleanup_old_messages(self) -> int:
        """Drop messages the latest summary already covers. Returns the count removed."""
        if _prunable(self._state) is None:
            return 0

        removed = 0

        def prune(current: GameState) -> Document:
            nonlocal removed
            remaining = _prunable(current)
            if remaining is None:
                return {}
            removed = len(current.message_history) - len(remaining)
            return {
                "messageHistory": _dump_messages(remaining),
                "prunedCount": current.pruned_count + removed,
            }

        new_state = await self.save(prune)
        self._consolidator.refresh(new_state)
        logger.info(
            "pruned summarized messages",
            extra={"game_id": self._game_id, "removed": removed, "remaining": len(new_state.message_history)},
        )
        return removed

    def stats(self) -> SummaryStats:
        return self._consolidator.stats(self._state)


__all__ = [
    "ERROR_MESSAGE",
    "GameBackend",
    "GameSession",
    "SessionBusyError",
    "WELCOME_MESSAGE",
    "new_game_state",
]
