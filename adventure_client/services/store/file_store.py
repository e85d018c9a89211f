from __future__ import annotations

import json
import re
import threading
from pathlib import Path
from typing import List, Optional

from ...logging_config import logger
from .base import (
    ChangeListener,
    Document,
    DocumentStoreError,
    ListenerRegistry,
    Subscription,
    merge_documents,
)

_SAFE_ID = re.compile(r"^[A-Za-z0-9_.-]+$")


class JsonFileDocumentStore:
    """One JSON document per game, replaced atomically on every write."""

    def __init__(self, directory: Path) -> None:
        self._directory = directory
        self._lock = threading.Lock()
        self._listeners = ListenerRegistry()
        self._ensure_directory()

    def _ensure_directory(self) -> None:
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.warning(
                "document store directory creation failed",
                extra={"error": str(exc), "path": str(self._directory)},
            )

    def _path_for(self, game_id: str) -> Path:
        if not _SAFE_ID.match(game_id or ""):
            raise DocumentStoreError(f"Invalid game id: {game_id!r}")
        return self._directory / f"{game_id}.json"

    def _read_locked(self, path: Path) -> Optional[Document]:
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.error("document read failed", extra={"error": str(exc), "path": str(path)})
            raise DocumentStoreError(f"Failed to read {path.name}") from exc
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error("document is not valid JSON", extra={"error": str(exc), "path": str(path)})
            raise DocumentStoreError(f"Corrupt document {path.name}") from exc
        return data if isinstance(data, dict) else None

    def get(self, game_id: str) -> Optional[Document]:
        path = self._path_for(game_id)
        with self._lock:
            return self._read_locked(path)

    def set(self, game_id: str, data: Document, *, merge: bool = False) -> Document:
        path = self._path_for(game_id)
        temp_path = path.with_suffix(".tmp")
        with self._lock:
            document = merge_documents(self._read_locked(path), data, merge)
            try:
                temp_path.write_text(json.dumps(document, ensure_ascii=False, indent=2), encoding="utf-8")
                temp_path.replace(path)
            except (OSError, TypeError, ValueError) as exc:
                logger.error("document write failed", extra={"error": str(exc), "path": str(path)})
                raise DocumentStoreError(f"Failed to write {path.name}") from exc
            finally:
                if temp_path.exists():
                    try:
                        temp_path.unlink()
                    except OSError:  # pragma: no cover - defensive cleanup
                        pass
        self._listeners.notify(game_id, document)
        return dict(document)

    def delete(self, game_id: str) -> None:
        path = self._path_for(game_id)
        with self._lock:
            try:
                path.unlink()
            except FileNotFoundError:
                return
            except OSError as exc:
                logger.warning("document delete failed", extra={"error": str(exc), "path": str(path)})
                raise DocumentStoreError(f"Failed to delete {path.name}") from exc

    def list_ids(self) -> List[str]:
        with self._lock:
            return sorted(path.stem for path in self._directory.glob("*.json"))

    def subscribe(self, game_id: str, on_change: ChangeListener) -> Subscription:
        subscription = self._listeners.add(game_id, on_change)
        current = self.get(game_id)
        if current is not None:
            on_change(current)
        return subscription


__all__ = ["JsonFileDocumentStore"]
