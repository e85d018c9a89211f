"""Merge messages and summaries into the scrolling transcript."""

from __future__ import annotations

from typing import List, Sequence

from ..models import Message, MessageType, Summary, TranscriptItem
from ..utils import format_clock

EMPTY_TRANSCRIPT = "Ready to begin your adventure..."
TYPING_INDICATOR = "..."

_SPEAKERS = {
    MessageType.USER: "You",
    MessageType.AI: "Narrator",
    MessageType.SYSTEM: "System",
}


def summary_label(summary: Summary) -> str:
    span = summary.message_range
    return f"Story summary (messages {span.start + 1} - {span.end})"


def build_transcript(messages: Sequence[Message], summaries: Sequence[Summary]) -> List[TranscriptItem]:
    """Chronological view of both sequences; messages sort before summaries on ties."""

    items: List[TranscriptItem] = []
    for index, message in enumerate(messages):
        items.append(
            TranscriptItem(kind="message", index=index, timestamp=message.timestamp, message=message)
        )
    for index, summary in enumerate(summaries):
        items.append(
            TranscriptItem(
                kind="summary",
                index=index,
                timestamp=summary.timestamp,
                summary=summary,
                label=summary_label(summary),
            )
        )
    # sorted() is stable, so equal timestamps keep messages first
    return sorted(items, key=lambda item: item.timestamp)


def render_transcript(items: Sequence[TranscriptItem], *, is_loading: bool = False) -> str:
    if not items and not is_loading:
        return EMPTY_TRANSCRIPT

    lines: List[str] = []
    for item in items:
        clock = format_clock(item.timestamp)
        if item.kind == "summary" and item.summary is not None:
            lines.append(f"[{clock}] == {item.label} ==")
            lines.append(item.summary.content)
        elif item.message is not None:
            speaker = _SPEAKERS.get(item.message.type, "System")
            lines.append(f"[{clock}] {speaker}: {item.message.content}")
    if is_loading:
        lines.append(f"Narrator: {TYPING_INDICATOR}")
    return "\n".join(lines)


__all__ = [
    "EMPTY_TRANSCRIPT",
    "build_transcript",
    "render_transcript",
    "summary_label",
]
