from __future__ import annotations

import asyncio
from typing import Optional, Set

from ...logging_config import logger
from ...models import GameState
from .consolidator import HistoryConsolidator
from .state import ConsolidationOutcome


class ConsolidationScheduler:
    """Runs the automatic consolidation check in the background of a session."""

    def __init__(self, consolidator: HistoryConsolidator) -> None:
        self._consolidator = consolidator
        self._tasks: Set["asyncio.Task[Optional[ConsolidationOutcome]]"] = set()

    def schedule(self, state: GameState) -> Optional["asyncio.Task[Optional[ConsolidationOutcome]]"]:
        """Queue a check for *state* on the running loop, if there is one."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("consolidation check skipped (no running event loop)")
            return None

        task = loop.create_task(self._run(state))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every scheduled check to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run(self, state: GameState) -> Optional[ConsolidationOutcome]:
        try:
            return await self._consolidator.on_history_changed(state)
        except Exception as exc:  # pragma: no cover - defensive
            logger.error(
                "consolidation worker failed",
                extra={"game_id": state.game_id, "error": str(exc)},
            )
            return None


__all__ = ["ConsolidationScheduler"]
