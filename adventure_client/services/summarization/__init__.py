"""History consolidation package."""

from .consolidator import HistoryConsolidator, StatePersister, SummaryBackend
from .policy import (
    SUMMARY_THRESHOLD,
    TOKEN_THRESHOLD,
    count_unsummarized_messages,
    estimate_token_count,
    last_summary_end,
    prune_summarized_messages,
    should_consolidate,
    summary_stats,
    total_message_count,
    unsummarized_slice,
)
from .scheduler import ConsolidationScheduler
from .state import (
    ConsolidationError,
    ConsolidationOutcome,
    PersistenceFailure,
    RemoteSummarizationFailure,
)

__all__ = [
    "ConsolidationError",
    "ConsolidationOutcome",
    "ConsolidationScheduler",
    "HistoryConsolidator",
    "PersistenceFailure",
    "RemoteSummarizationFailure",
    "StatePersister",
    "SummaryBackend",
    "SUMMARY_THRESHOLD",
    "TOKEN_THRESHOLD",
    "count_unsummarized_messages",
    "estimate_token_count",
    "last_summary_end",
    "prune_summarized_messages",
    "should_consolidate",
    "summary_stats",
    "total_message_count",
    "unsummarized_slice",
]
