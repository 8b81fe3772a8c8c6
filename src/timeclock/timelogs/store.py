from __future__ import annotations

import logging
from typing import Optional

from ..common.validators import require_non_empty
from ..core.constants import STORAGE_KEY_PREFIX
from ..core.exceptions import CorruptLedgerError, PersistenceError
from .codec import decode_ledger, encode_ledger
from .model import Ledger
from .repository import LedgerStorage

logger = logging.getLogger(__name__)


def storage_key(organization_id: str) -> str:
    return STORAGE_KEY_PREFIX + organization_id


class LedgerStore:
    """Holds the ledger of the active organization and round-trips it to storage.

    Ledgers are fully partitioned by organization: switching drops the
    previous in-memory ledger and never merges anything across ids.
    """

    def __init__(self, storage: LedgerStorage):
        self._storage = storage
        self._organization_id: Optional[str] = None
        self._ledger = Ledger()

    @property
    def organization_id(self) -> Optional[str]:
        return self._organization_id

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    def load(self, organization_id: str) -> Ledger:
        """Read the stored ledger; corrupt data is dropped and reads as empty."""

        key = storage_key(require_non_empty(organization_id, "Organization"))
        try:
            payload = self._storage.load(key)
        except PersistenceError:
            raise
        except Exception as exc:
            raise PersistenceError(f"Could not read time logs: {exc}") from exc

        if payload is None:
            return Ledger()

        try:
            return decode_ledger(payload)
        except CorruptLedgerError as exc:
            logger.warning("Discarding corrupt ledger %s: %s", key, exc)
            try:
                self._storage.delete(key)
            except Exception:
                logger.exception("Could not delete corrupt ledger %s", key)
            return Ledger()

    def save(self, organization_id: str, ledger: Ledger) -> None:
        key = storage_key(require_non_empty(organization_id, "Organization"))
        try:
            self._storage.save(key, encode_ledger(ledger))
        except PersistenceError:
            logger.error("Saving ledger %s failed", key)
            raise
        except Exception as exc:
            logger.error("Saving ledger %s failed: %s", key, exc)
            raise PersistenceError(f"Could not save time logs: {exc}") from exc

    def delete(self, organization_id: str) -> None:
        key = storage_key(require_non_empty(organization_id, "Organization"))
        try:
            self._storage.delete(key)
        except PersistenceError:
            raise
        except Exception as exc:
            raise PersistenceError(f"Could not delete time logs: {exc}") from exc
        if self._organization_id == organization_id:
            self.clear_active()

    def switch_organization(self, organization_id: str) -> Ledger:
        # Drop the old ledger first so a failed load never leaves it visible
        # under the new organization.
        self.clear_active()
        ledger = self.load(organization_id)
        self._organization_id = organization_id
        self._ledger = ledger
        return ledger

    def restore(self, organization_id: str, ledger: Ledger) -> Ledger:
        """Make ``ledger`` active without reading storage (unsaved state)."""

        self.clear_active()
        self._organization_id = organization_id
        self._ledger = ledger
        return ledger

    def clear_active(self) -> None:
        self._organization_id = None
        self._ledger = Ledger()

    def commit(self, organization_id: str, ledger: Ledger) -> None:
        """Keep ``ledger`` in memory, then persist it.

        A failed write raises PersistenceError but the new state stays in
        memory.
        """

        self._organization_id = organization_id
        self._ledger = ledger
        self.save(organization_id, ledger)
