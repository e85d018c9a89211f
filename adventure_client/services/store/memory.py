from __future__ import annotations

import copy
import threading
from typing import Dict, List, Optional

from .base import ChangeListener, Document, ListenerRegistry, Subscription, merge_documents


class InMemoryDocumentStore:
    """Process-local document store used in tests and offline play."""

    def __init__(self) -> None:
        self._documents: Dict[str, Document] = {}
        self._lock = threading.Lock()
        self._listeners = ListenerRegistry()

    def get(self, game_id: str) -> Optional[Document]:
        with self._lock:
            document = self._documents.get(game_id)
            return copy.deepcopy(document) if document is not None else None

    def set(self, game_id: str, data: Document, *, merge: bool = False) -> Document:
        with self._lock:
            document = merge_documents(self._documents.get(game_id), copy.deepcopy(data), merge)
            self._documents[game_id] = document
            snapshot = copy.deepcopy(document)
        self._listeners.notify(game_id, snapshot)
        return snapshot

    def delete(self, game_id: str) -> None:
        with self._lock:
            self._documents.pop(game_id, None)

    def list_ids(self) -> List[str]:
        with self._lock:
            return sorted(self._documents)

    def subscribe(self, game_id: str, on_change: ChangeListener) -> Subscription:
        subscription = self._listeners.add(game_id, on_change)
        current = self.get(game_id)
        if current is not None:
            on_change(current)
        return subscription

    def listener_count(self, game_id: str) -> int:
        return self._listeners.count(game_id)


__all__ = ["InMemoryDocumentStore"]
