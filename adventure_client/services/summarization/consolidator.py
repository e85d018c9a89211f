from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Dict, List, Optional, Protocol

from ...config import Settings, get_settings
from ...logging_config import logger
from ...models import (
    CurrentState,
    GameState,
    Message,
    MessageRange,
    Summary,
    SummaryResponse,
    SummaryStats,
    SummaryStatus,
)
from ...utils import summary_id, utc_now
from .policy import (
    count_unsummarized_messages,
    estimate_token_count,
    last_summary_end,
    should_consolidate,
    summary_stats,
    total_message_count,
    unsummarized_slice,
)
from .state import (
    ConsolidationError,
    ConsolidationOutcome,
    PersistenceFailure,
    RemoteSummarizationFailure,
)


class SummaryBackend(Protocol):
    def generate_summary(
        self, game_id: str, messages: List[Message], game_state: CurrentState
    ) -> Awaitable[SummaryResponse]:  # pragma: no cover - typing protocol
        ...


class StatePersister(Protocol):
    def __call__(self, game_id: str, update: Dict[str, Any]) -> Awaitable[GameState]:  # pragma: no cover - typing protocol
        ...


class HistoryConsolidator:
    """Compacts the unsummarized suffix of one game's history into a summary.

    One instance belongs to one session. ``is_generating`` is a non-blocking
    mutex: a second request while one is outstanding returns a skipped
    outcome immediately instead of queueing.
    """

    def __init__(
        self,
        backend: SummaryBackend,
        persist: StatePersister,
        *,
        settings: Optional[Settings] = None,
    ) -> None:
        resolved = settings or get_settings()
        self._backend = backend
        self._persist = persist
        self._summary_threshold = resolved.summary_threshold
        self._token_threshold = resolved.token_threshold
        self._token_warning_ratio = resolved.token_warning_ratio
        self._progress_reset_seconds = resolved.summary_progress_reset_seconds
        self._status = SummaryStatus()
        self._reset_handle: Optional[asyncio.TimerHandle] = None

    @property
    def status(self) -> SummaryStatus:
        return self._status

    @property
    def is_generating(self) -> bool:
        return self._status.is_generating

    @property
    def summary_threshold(self) -> int:
        return self._summary_threshold

    @property
    def token_threshold(self) -> int:
        return self._token_threshold

    def should_consolidate(self, state: GameState, force: bool = False) -> bool:
        return should_consolidate(
            state.message_history,
            state.summaries,
            force,
            in_progress=self.is_generating,
            offset=state.pruned_count,
            summary_threshold=self._summary_threshold,
            token_threshold=self._token_threshold,
        )

    def refresh(self, state: GameState) -> SummaryStatus:
        """Recompute the unsummarized-message counter after a history change."""
        self._update(
            messages_since_last_summary=count_unsummarized_messages(
                state.message_history, state.summaries, state.pruned_count
            )
        )
        return self._status

    def stats(self, state: GameState) -> SummaryStats:
        return summary_stats(
            state.message_history,
            state.summaries,
            self._status,
            offset=state.pruned_count,
            summary_threshold=self._summary_threshold,
            token_threshold=self._token_threshold,
            token_warning_ratio=self._token_warning_ratio,
        )

    async def on_history_changed(self, state: GameState) -> ConsolidationOutcome:
        """Automatic trigger evaluated after every appended message."""
        self.refresh(state)
        if not self.should_consolidate(state):
            reason = "in_progress" if self.is_generating else "below_threshold"
            return ConsolidationOutcome.skipped(reason)
        return await self.consolidate(state)

    async def consolidate(self, state: GameState, force: bool = False) -> ConsolidationOutcome:
        if self.is_generating:
            logger.debug("consolidation skipped; already generating", extra={"game_id": state.game_id})
            return ConsolidationOutcome.skipped("in_progress")

        start = last_summary_end(state.summaries)
        candidate = unsummarized_slice(state.message_history, state.summaries, state.pruned_count)
        end = total_message_count(state.message_history, state.pruned_count)

        if not candidate:
            return ConsolidationOutcome.skipped("no_new_messages")
        if not self.should_consolidate(state, force):
            return ConsolidationOutcome.skipped("below_threshold")

        # Flag is set before the first await so no second attempt can start.
        self._cancel_progress_reset()
        self._update(is_generating=True, progress=0)
        game_id = state.game_id or ""

        logger.info(
            "history consolidation started",
            extra={
                "game_id": game_id,
                "forced": force,
                "range_start": start,
                "range_end": end,
                "candidate_messages": len(candidate),
            },
        )

        try:
            self._update(progress=30)
            content = await self._request_summary(game_id, candidate, state.current_state)
            self._update(progress=70)

            summary = Summary(
                id=summary_id(),
                content=content,
                message_range=MessageRange(start=start, end=end),
                timestamp=utc_now(),
                tokens_saved=estimate_token_count(candidate),
            )
            summaries = [*state.summaries, summary]
            new_state = await self._store(game_id, summaries)
        except ConsolidationError as exc:
            self._update(is_generating=False, progress=0)
            logger.error(
                "history consolidation failed",
                extra={"game_id": game_id, "error": str(exc), "kind": type(exc).__name__},
            )
            return ConsolidationOutcome.failed(exc)

        self._update(
            is_generating=False,
            progress=100,
            last_summary_at=summary.timestamp,
            messages_since_last_summary=0,
        )
        self._schedule_progress_reset()

        logger.info(
            "history consolidation completed",
            extra={
                "game_id": game_id,
                "summary_id": summary.id,
                "tokens_saved": summary.tokens_saved,
                "summary_count": len(summaries),
            },
        )
        return ConsolidationOutcome.completed(summary, new_state)

    def close(self) -> None:
        self._cancel_progress_reset()

    async def _request_summary(self, game_id: str, messages: List[Message], current: CurrentState) -> str:
        try:
            response = await self._backend.generate_summary(game_id, messages, current)
        except Exception as exc:
            raise RemoteSummarizationFailure(f"summary generation failed: {exc}") from exc
        content = (response.summary or "").strip()
        if not content:
            raise RemoteSummarizationFailure("summary generation returned no content")
        return content

    async def _store(self, game_id: str, summaries: List[Summary]) -> GameState:
        update = {"summaries": [item.model_dump(mode="json", by_alias=True) for item in summaries]}
        try:
            return await self._persist(game_id, update)
        except PersistenceFailure:
            raise
        except Exception as exc:
            raise PersistenceFailure(f"saving summaries failed: {exc}") from exc

    def _update(self, **changes: Any) -> None:
        self._status = self._status.model_copy(update=changes)

    def _schedule_progress_reset(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._reset_handle = loop.call_later(self._progress_reset_seconds, self._reset_progress)

    def _cancel_progress_reset(self) -> None:
        if self._reset_handle is not None:
            self._reset_handle.cancel()
            self._reset_handle = None

    def _reset_progress(self) -> None:
        self._reset_handle = None
        if not self._status.is_generating:
            self._update(progress=0)


__all__ = ["HistoryConsolidator", "StatePersister", "SummaryBackend"]
