"""Document stores holding durable game state."""

from functools import lru_cache

from ...config import get_settings
from .base import (
    ChangeListener,
    Document,
    DocumentStore,
    DocumentStoreError,
    Subscription,
)
from .file_store import JsonFileDocumentStore
from .memory import InMemoryDocumentStore


@lru_cache(maxsize=1)
def get_document_store() -> DocumentStore:
    settings = get_settings()
    if settings.document_store_backend == "memory":
        return InMemoryDocumentStore()
    return JsonFileDocumentStore(settings.games_dir)


__all__ = [
    "ChangeListener",
    "Document",
    "DocumentStore",
    "DocumentStoreError",
    "InMemoryDocumentStore",
    "JsonFileDocumentStore",
    "Subscription",
    "get_document_store",
]
