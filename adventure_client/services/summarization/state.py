from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

from ...models import GameState, Summary

SkipReason = Literal["in_progress", "no_new_messages", "below_threshold"]


class ConsolidationError(RuntimeError):
    """Base class for failures that abort a consolidation attempt."""


class RemoteSummarizationFailure(ConsolidationError):
    """The backend could not produce a summary for the candidate slice."""


class PersistenceFailure(ConsolidationError):
    """Writing the updated game state to durable storage failed."""


@dataclass(frozen=True)
class ConsolidationOutcome:
    """Result of one consolidation attempt; failures are values, not raises."""

    status: Literal["completed", "skipped", "failed"]
    summary: Optional[Summary] = None
    state: Optional[GameState] = None
    reason: Optional[SkipReason] = None
    error: Optional[ConsolidationError] = None

    @classmethod
    def completed(cls, summary: Summary, state: GameState) -> "ConsolidationOutcome":
        return cls(status="completed", summary=summary, state=state)

    @classmethod
    def skipped(cls, reason: SkipReason) -> "ConsolidationOutcome":
        return cls(status="skipped", reason=reason)

    @classmethod
    def failed(cls, error: ConsolidationError) -> "ConsolidationOutcome":
        return cls(status="failed", error=error)

    @property
    def ok(self) -> bool:
        return self.status != "failed"


__all__ = [
    "ConsolidationError",
    "ConsolidationOutcome",
    "PersistenceFailure",
    "RemoteSummarizationFailure",
    "SkipReason",
]
