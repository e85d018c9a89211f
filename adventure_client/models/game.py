from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..utils.timefmt import ensure_utc, utc_now


class MessageType(str, Enum):
    USER = "user"
    AI = "ai"
    SYSTEM = "system"


class Message(BaseModel):
    """A single transcript entry. Immutable once appended."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(..., min_length=1)
    type: MessageType = MessageType.USER
    content: str = Field(default="")
    timestamp: datetime = Field(default_factory=utc_now)

    @model_validator(mode="before")
    @classmethod
    def _coerce_content(cls, data: Any) -> Any:
        if isinstance(data, dict) and "content" in data:
            data = dict(data)
            data["content"] = "" if data["content"] is None else str(data["content"])
        return data

    @field_validator("timestamp")
    @classmethod
    def _aware_timestamp(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class MessageRange(BaseModel):
    """Indices of the history a summary covers; ``end`` is the next ``start``."""

    model_config = ConfigDict(frozen=True)

    start: int = Field(..., ge=0)
    end: int = Field(..., ge=0)

    @model_validator(mode="after")
    def _ordered(self) -> "MessageRange":
        if self.end < self.start:
            raise ValueError("messageRange.end must not precede messageRange.start")
        return self


class Summary(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(..., min_length=1)
    content: str = Field(default="")
    message_range: MessageRange = Field(..., alias="messageRange")
    timestamp: datetime = Field(default_factory=utc_now)
    tokens_saved: int = Field(default=0, alias="tokensSaved", ge=0)

    @field_validator("timestamp")
    @classmethod
    def _aware_timestamp(cls, value: datetime) -> datetime:
        return ensure_utc(value)


class PlayerStats(BaseModel):
    model_config = ConfigDict(extra="allow")

    health: int = 100
    mana: int = 50


class CurrentState(BaseModel):
    """Narrative state forwarded to the backend with every turn."""

    model_config = ConfigDict(extra="allow")

    scene: str = ""
    inventory: List[str] = Field(default_factory=list)
    stats: PlayerStats = Field(default_factory=PlayerStats)
    location: str = ""


class GameState(BaseModel):
    """Snapshot of one game document; mutate with ``evolve`` to get a new one."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    game_id: Optional[str] = Field(default=None, alias="gameId")
    player_id: Optional[str] = Field(default=None, alias="playerId")
    name: Optional[str] = None
    current_state: CurrentState = Field(default_factory=CurrentState, alias="currentState")
    message_history: List[Message] = Field(default_factory=list, alias="messageHistory")
    summaries: List[Summary] = Field(default_factory=list)
    pruned_count: int = Field(default=0, alias="prunedCount", ge=0)
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    last_saved: Optional[datetime] = Field(default=None, alias="lastSaved")

    def evolve(self, **changes: Any) -> "GameState":
        """Return a new snapshot with *changes* applied (field names, not aliases)."""
        return self.model_copy(update=changes)

    def merge_document(self, document: Dict[str, Any]) -> "GameState":
        """Overlay a (partial) stored document onto this snapshot."""
        merged = self.to_document()
        merged.update(document)
        return GameState.model_validate(merged)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class SummaryStatus(BaseModel):
    """Process-local consolidation status; never persisted."""

    model_config = ConfigDict(populate_by_name=True)

    is_generating: bool = Field(default=False, alias="isGenerating")
    progress: int = Field(default=0, ge=0, le=100)
    last_summary_at: Optional[datetime] = Field(default=None, alias="lastSummaryAt")
    messages_since_last_summary: int = Field(default=0, alias="messagesSinceLastSummary")


class SummaryStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_messages: int = Field(alias="totalMessages")
    estimated_tokens: int = Field(alias="estimatedTokens")
    summary_count: int = Field(alias="summaryCount")
    messages_since_last_summary: int = Field(alias="messagesSinceLastSummary")
    needs_summary: bool = Field(alias="needsSummary")
    token_warning: bool = Field(default=False, alias="tokenWarning")


__all__ = [
    "CurrentState",
    "GameState",
    "Message",
    "MessageRange",
    "MessageType",
    "PlayerStats",
    "Summary",
    "SummaryStats",
    "SummaryStatus",
]
