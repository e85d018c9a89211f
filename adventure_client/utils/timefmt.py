"""Timestamp helpers shared by the transcript and the save manager."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

UTC = timezone.utc


def utc_now() -> datetime:
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so stored documents compare cleanly."""

    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def format_clock(value: datetime) -> str:
    """Return the ``HH:MM`` label shown beside transcript entries."""

    return ensure_utc(value).strftime("%H:%M")


def format_relative_time(value: Optional[datetime], *, now: Optional[datetime] = None) -> str:
    """Describe how long ago *value* happened.

    Recent times read as "just now" or "N minutes ago"; anything within a day
    reads in hours, and older saves fall back to a short date.
    """

    if value is None:
        return "unknown time"

    current = ensure_utc(now or utc_now())
    moment = ensure_utc(value)
    elapsed = (current - moment).total_seconds()
    minutes = int(elapsed // 60)
    hours = int(elapsed // 3600)

    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes} minute{'s' if minutes != 1 else ''} ago"
    if hours < 24:
        return f"{hours} hour{'s' if hours != 1 else ''} ago"
    return moment.strftime("%b %d, %H:%M")


__all__ = ["UTC", "ensure_utc", "format_clock", "format_relative_time", "utc_now"]
