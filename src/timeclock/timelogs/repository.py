from __future__ import annotations

from typing import Optional, Protocol


class LedgerStorage(Protocol):
    """Keyed byte store holding one serialized ledger per key."""

    def load(self, key: str) -> Optional[bytes]:
        raise NotImplementedError

    def save(self, key: str, payload: bytes) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError
