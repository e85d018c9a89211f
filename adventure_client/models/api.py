from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .game import CurrentState, Message, MessageRange, Summary, SummaryStats, SummaryStatus


class SendMessageRequest(BaseModel):
    content: str = Field(..., min_length=1)

    @field_validator("content")
    @classmethod
    def _strip(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("message must not be blank")
        return stripped


class SendMessageResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    reply: Optional[Message] = None
    current_state: CurrentState = Field(alias="currentState")


class NarrativeResponse(BaseModel):
    """Backend reply to a player turn."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    content: str = ""
    game_state: Optional[CurrentState] = Field(default=None, alias="gameState")


class SummaryResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    summary: str = ""


class TranscriptItem(BaseModel):
    kind: Literal["message", "summary"]
    index: int
    timestamp: datetime
    message: Optional[Message] = None
    summary: Optional[Summary] = None
    label: Optional[str] = None


class TranscriptResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    game_id: str = Field(alias="gameId")
    items: List[TranscriptItem] = Field(default_factory=list)
    text: str = ""
    is_connected: bool = Field(default=False, alias="isConnected")
    is_processing: bool = Field(default=False, alias="isProcessing")


class SummaryOverviewResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: SummaryStatus
    stats: SummaryStats
    summary_threshold: int = Field(alias="summaryThreshold")
    token_threshold: int = Field(alias="tokenThreshold")


class ConsolidationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    status: Literal["completed", "skipped", "failed"]
    reason: Optional[str] = None
    summary: Optional[Summary] = None
    message_range: Optional[MessageRange] = Field(default=None, alias="messageRange")


class PruneResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    removed: int = 0
    remaining: int = 0


class GameListEntry(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    game_id: str = Field(alias="gameId")
    name: str = "Unnamed adventure"
    location: str = "Unknown location"
    message_count: int = Field(default=0, alias="messageCount")
    summary_count: int = Field(default=0, alias="summaryCount")
    last_saved: Optional[datetime] = Field(default=None, alias="lastSaved")
    last_saved_label: str = Field(default="unknown time", alias="lastSavedLabel")
    is_current: bool = Field(default=False, alias="isCurrent")


class GameListResponse(BaseModel):
    games: List[GameListEntry] = Field(default_factory=list)


class CreateGameRequest(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _strip(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("game name must not be blank")
        return stripped


class CreateGameResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    game_id: str = Field(alias="gameId")


class SessionInfoResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    player_id: str = Field(alias="playerId")
    game_id: str = Field(alias="gameId")


class SwitchGameRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    game_id: str = Field(..., min_length=1, alias="gameId")


class OkResponse(BaseModel):
    ok: bool = True
    detail: Optional[Dict[str, Any]] = None
