"""Service layer components."""

from .games import SaveManager, game_stats, to_list_entry
from .identity import IdentityStore, get_identity_store
from .session import (
    GameSession,
    SessionBusyError,
    SessionManager,
    get_session_manager,
    set_session_manager,
)
from .store import (
    DocumentStore,
    DocumentStoreError,
    InMemoryDocumentStore,
    JsonFileDocumentStore,
    Subscription,
    get_document_store,
)
from .summarization import (
    ConsolidationError,
    ConsolidationOutcome,
    HistoryConsolidator,
    PersistenceFailure,
    RemoteSummarizationFailure,
)
from .transcript import build_transcript, render_transcript

__all__ = [
    "ConsolidationError",
    "ConsolidationOutcome",
    "DocumentStore",
    "DocumentStoreError",
    "GameSession",
    "HistoryConsolidator",
    "IdentityStore",
    "InMemoryDocumentStore",
    "JsonFileDocumentStore",
    "PersistenceFailure",
    "RemoteSummarizationFailure",
    "SaveManager",
    "SessionBusyError",
    "SessionManager",
    "Subscription",
    "build_transcript",
    "game_stats",
    "get_document_store",
    "get_identity_store",
    "get_session_manager",
    "render_transcript",
    "set_session_manager",
    "to_list_entry",
]
