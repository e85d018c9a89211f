from .api import (
    ConsolidationResponse,
    CreateGameRequest,
    CreateGameResponse,
    GameListEntry,
    GameListResponse,
    NarrativeResponse,
    OkResponse,
    PruneResponse,
    SendMessageRequest,
    SendMessageResponse,
    SessionInfoResponse,
    SummaryOverviewResponse,
    SummaryResponse,
    SwitchGameRequest,
    TranscriptItem,
    TranscriptResponse,
)
from .game import (
    CurrentState,
    GameState,
    Message,
    MessageRange,
    MessageType,
    PlayerStats,
    Summary,
    SummaryStats,
    SummaryStatus,
)
from .meta import HealthResponse, RootResponse

__all__ = [
    "ConsolidationResponse",
    "CreateGameRequest",
    "CreateGameResponse",
    "CurrentState",
    "GameListEntry",
    "GameListResponse",
    "GameState",
    "HealthResponse",
    "Message",
    "MessageRange",
    "MessageType",
    "NarrativeResponse",
    "OkResponse",
    "PlayerStats",
    "PruneResponse",
    "RootResponse",
    "SendMessageRequest",
    "SendMessageResponse",
    "SessionInfoResponse",
    "Summary",
    "SummaryOverviewResponse",
    "SummaryResponse",
    "SummaryStats",
    "SummaryStatus",
    "SwitchGameRequest",
    "TranscriptItem",
    "TranscriptResponse",
]
