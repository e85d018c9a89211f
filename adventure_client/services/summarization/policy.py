"""Threshold rules deciding when history should be compacted into a summary.

Summary ranges index the full message sequence of a game. Once summarized
messages are pruned, the stored history starts part-way into that sequence;
``offset`` is the number of messages pruned from the front and keeps the
ranges absolute.
"""

from __future__ import annotations

import math
from typing import List, Optional, Sequence

from ...models import Message, Summary, SummaryStats, SummaryStatus

SUMMARY_THRESHOLD = 30
TOKEN_THRESHOLD = 8000
TOKEN_WARNING_RATIO = 0.8
CHARS_PER_TOKEN = 4


def estimate_token_count(history: Sequence[Message]) -> int:
    """Rough token estimate: four characters per token, rounded up."""

    total_chars = sum(len(message.content or "") for message in history)
    return math.ceil(total_chars / CHARS_PER_TOKEN)


def last_summary_end(summaries: Sequence[Summary]) -> int:
    if not summaries:
        return 0
    return summaries[-1].message_range.end


def total_message_count(history: Sequence[Message], offset: int = 0) -> int:
    return offset + len(history)


def unsummarized_slice(history: Sequence[Message], summaries: Sequence[Summary], offset: int = 0) -> List[Message]:
    """Messages appended after the most recent summary's range."""

    start = max(last_summary_end(summaries) - offset, 0)
    return list(history[start:])


def count_unsummarized_messages(
    history: Sequence[Message], summaries: Sequence[Summary], offset: int = 0
) -> int:
    return max(total_message_count(history, offset) - last_summary_end(summaries), 0)


def should_consolidate(
    history: Sequence[Message],
    summaries: Sequence[Summary],
    force: bool = False,
    *,
    in_progress: bool = False,
    offset: int = 0,
    summary_threshold: int = SUMMARY_THRESHOLD,
    token_threshold: int = TOKEN_THRESHOLD,
) -> bool:
    """Return True when a consolidation should start now.

    A running consolidation always wins: nothing starts while one is in
    flight, forced or not. Otherwise a forced request, a message count that
    lands exactly on a multiple of *summary_threshold*, or unsummarized
    messages estimated at or above *token_threshold* tokens all qualify.
    """

    if in_progress:
        return False
    if force:
        return True

    count = total_message_count(history, offset)
    if summary_threshold > 0 and count > 0 and count % summary_threshold == 0:
        return True
    return estimate_token_count(unsummarized_slice(history, summaries, offset)) >= token_threshold


def prune_summarized_messages(
    history: Sequence[Message], summaries: Sequence[Summary], *, offset: int
) -> List[Message]:
    """Drop messages already covered by the most recent summary.

    *offset* must be the number of messages already pruned from *history*;
    pass the updated count on every call or a second prune eats into the
    unsummarized tail.
    """

    if not summaries:
        return list(history)
    return unsummarized_slice(history, summaries, offset)


def summary_stats(
    history: Sequence[Message],
    summaries: Sequence[Summary],
    status: Optional[SummaryStatus] = None,
    *,
    offset: int = 0,
    summary_threshold: int = SUMMARY_THRESHOLD,
    token_threshold: int = TOKEN_THRESHOLD,
    token_warning_ratio: float = TOKEN_WARNING_RATIO,
) -> SummaryStats:
    count = total_message_count(history, offset)
    tokens = estimate_token_count(history)
    since_last = (
        status.messages_since_last_summary
        if status is not None
        else count_unsummarized_messages(history, summaries, offset)
    )
    return SummaryStats(
        total_messages=count,
        estimated_tokens=tokens,
        summary_count=len(summaries),
        messages_since_last_summary=since_last,
        needs_summary=count >= summary_threshold or tokens >= token_threshold,
        token_warning=tokens > token_threshold * token_warning_ratio,
    )


__all__ = [
    "CHARS_PER_TOKEN",
    "SUMMARY_THRESHOLD",
    "TOKEN_THRESHOLD",
    "TOKEN_WARNING_RATIO",
    "count_unsummarized_messages",
    "estimate_token_count",
    "last_summary_end",
    "prune_summarized_messages",
    "should_consolidate",
    "summary_stats",
    "total_message_count",
    "unsummarized_slice",
]
