from __future__ import annotations

import threading
from typing import Any, Callable, Dict, List, Optional, Protocol

from ...logging_config import logger

Document = Dict[str, Any]
ChangeListener = Callable[[Document], None]


class DocumentStoreError(RuntimeError):
    """Raised when a document cannot be read or written."""


class Subscription:
    """Handle returned by ``subscribe``; ``cancel`` releases the listener."""

    def __init__(self, release: Callable[[], None]) -> None:
        self._release: Optional[Callable[[], None]] = release
        self._lock = threading.Lock()

    @property
    def active(self) -> bool:
        return self._release is not None

    def cancel(self) -> None:
        with self._lock:
            release, self._release = self._release, None
        if release is not None:
            release()


class DocumentStore(Protocol):
    def get(self, game_id: str) -> Optional[Document]:  # pragma: no cover - typing protocol
        ...

    def set(self, game_id: str, data: Document, *, merge: bool = False) -> Document:  # pragma: no cover - typing protocol
        ...

    def delete(self, game_id: str) -> None:  # pragma: no cover - typing protocol
        ...

    def list_ids(self) -> List[str]:  # pragma: no cover - typing protocol
        ...

    def subscribe(self, game_id: str, on_change: ChangeListener) -> Subscription:  # pragma: no cover - typing protocol
        ...


class ListenerRegistry:
    """Per-document listener bookkeeping shared by the store implementations."""

    def __init__(self) -> None:
        self._listeners: Dict[str, List[ChangeListener]] = {}
        self._lock = threading.Lock()

    def add(self, game_id: str, listener: ChangeListener) -> Subscription:
        with self._lock:
            self._listeners.setdefault(game_id, []).append(listener)

        def _release() -> None:
            with self._lock:
                listeners = self._listeners.get(game_id, [])
                if listener in listeners:
                    listeners.remove(listener)
                if not listeners:
                    self._listeners.pop(game_id, None)

        return Subscription(_release)

    def count(self, game_id: str) -> int:
        with self._lock:
            return len(self._listeners.get(game_id, []))

    def notify(self, game_id: str, document: Document) -> None:
        with self._lock:
            listeners = list(self._listeners.get(game_id, []))
        for listener in listeners:
            try:
                listener(dict(document))
            except Exception as exc:  # pragma: no cover - defensive
                logger.warning(
                    "document listener failed",
                    extra={"game_id": game_id, "error": str(exc)},
                )


def merge_documents(existing: Optional[Document], data: Document, merge: bool) -> Document:
    if merge and existing:
        merged = dict(existing)
        merged.update(data)
        return merged
    return dict(data)


__all__ = [
    "ChangeListener",
    "Document",
    "DocumentStore",
    "DocumentStoreError",
    "ListenerRegistry",
    "Subscription",
    "merge_documents",
]
