"""Identifier generation for messages, summaries, players and games."""

from __future__ import annotations

import secrets
import string
import threading
import time

_ALPHABET = string.digits + string.ascii_lowercase
_lock = threading.Lock()
_last_millis = 0


def timestamp_millis() -> int:
    """Millisecond wall-clock stamp, strictly increasing within the process."""

    global _last_millis
    with _lock:
        current = int(time.time() * 1000)
        if current <= _last_millis:
            current = _last_millis + 1
        _last_millis = current
        return current


def random_base36(length: int = 9) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def message_id() -> str:
    return str(timestamp_millis())


def summary_id() -> str:
    return f"summary-{timestamp_millis()}"


def prefixed_id(prefix: str) -> str:
    """Return ids shaped like ``player_1700000000000_k3j9x0a1b``."""

    return f"{prefix}_{timestamp_millis()}_{random_base36()}"


__all__ = ["message_id", "prefixed_id", "random_base36", "summary_id", "timestamp_millis"]
