"""Store interfaces consumed by the tool dispatcher.

Stores are synchronous; tools call them through ``asyncio.to_thread``.
Read-modify-write sequences against one key must hold ``locked(key)`` so
concurrent gateway calls do not lose updates.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


class KeyedLocks:
    """Lazily created per-key locks."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def get(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock


@dataclass
class ProfileDocument:
    filename: str
    content: str
    modified_at: str = ""
    size_bytes: int = 0


class ProfileStore(ABC):
    """Plain-text documents keyed by filename."""

    def __init__(self) -> None:
        self._locks = KeyedLocks()

    def locked(self, filename: str) -> threading.Lock:
        return self._locks.get(filename)

    @abstractmethod
    def list(self) -> dict[str, str]:
        """Return every document as ``{filename: content}``."""

    @abstractmethod
    def write(self, filename: str, content: str) -> str:
        """Create or overwrite a document; return a confirmation message."""

    @abstractmethod
    def delete(self, filename: str) -> str:
        """Remove a document if present; absence is not an error."""

    def list_detailed(self) -> list[ProfileDocument]:
        return [
            ProfileDocument(filename=name, content=content, size_bytes=len(content.encode()))
            for name, content in sorted(self.list().items())
        ]


class DecisionStore(ABC):
    """Decision records with an opaque JSON summary and a status."""

    def __init__(self) -> None:
        self._locks = KeyedLocks()

    def locked(self, decision_id: str) -> threading.Lock:
        return self._locks.get(decision_id)

    @abstractmethod
    def get_summary(self, decision_id: str) -> str | None:
        """Return the stored summary JSON text, or None."""

    @abstractmethod
    def save_summary(self, decision_id: str, summary_json: str) -> None:
        ...

    @abstractmethod
    def set_status(self, decision_id: str, status: str) -> None:
        ...

    def get_decision(self, decision_id: str) -> dict[str, Any] | None:
        summary = self.get_summary(decision_id)
        if summary is None:
            return None
        return {"id": decision_id, "summary_json": summary}
