from __future__ import annotations

from typing import Optional

from .repository import LedgerStorage


class InMemoryLedgerStorage(LedgerStorage):
    """Process-local storage; used by the testing settings and dev runs."""

    def __init__(self, initial: Optional[dict[str, bytes]] = None):
        self._blobs: dict[str, bytes] = dict(initial or {})

    def load(self, key: str) -> Optional[bytes]:
        return self._blobs.get(key)

    def save(self, key: str, payload: bytes) -> None:
        self._blobs[key] = bytes(payload)

    def delete(self, key: str) -> None:
        self._blobs.pop(key, None)
