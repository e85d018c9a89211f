from .ids import message_id, prefixed_id, summary_id
from .responses import error_response
from .timefmt import UTC, ensure_utc, format_clock, format_relative_time, utc_now

__all__ = [
    "error_response",
    "message_id",
    "prefixed_id",
    "summary_id",
    "UTC",
    "ensure_utc",
    "format_clock",
    "format_relative_time",
    "utc_now",
]
