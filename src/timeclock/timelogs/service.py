from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterator, Optional, Union

from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.enums import DurationState, Role
from ..core.exceptions import PersistenceError
from . import operations, projections
from .model import Duration, Ledger, LogEntry
from .operations import ClearScope
from .repository import LedgerStorage
from .resolver import is_open
from .store import LedgerStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportBundle:
    records: list[dict]
    filename: str

    @property
    def is_empty(self) -> bool:
        return not self.records


@dataclass
class _Partition:
    lock: threading.Lock = field(default_factory=threading.Lock)
    users: int = 0


class TimeLogService:
    """Use cases over per-organization ledgers.

    Every load/mutate/persist cycle for one organization runs under that
    organization's lock. Each cycle hydrates the ledger from storage and
    discards it afterwards; only a ledger whose last write failed stays in
    memory, until a later write for that organization succeeds.
    """

    def __init__(self, storage: LedgerStorage):
        self._storage = storage
        self._partitions: dict[str, _Partition] = {}
        self._unsaved: dict[str, Ledger] = {}
        self._guard = threading.Lock()

    @contextmanager
    def _partition(self, organization_id: str) -> Iterator[str]:
        org_id = require_non_empty(organization_id, "Organization")
        with self._guard:
            part = self._partitions.setdefault(org_id, _Partition())
            part.users += 1
        try:
            with part.lock:
                yield org_id
        finally:
            with self._guard:
                part.users -= 1
                if part.users == 0:
                    del self._partitions[org_id]

    @contextmanager
    def _locked(self, organization_id: str) -> Iterator[tuple[LedgerStore, Ledger]]:
        with self._partition(organization_id) as org_id:
            store = LedgerStore(self._storage)
            pending = self._unsaved.get(org_id)
            if pending is not None:
                ledger = store.restore(org_id, pending)
            else:
                ledger = store.switch_organization(org_id)
            try:
                yield store, ledger
            finally:
                store.clear_active()

    def _commit(self, store: LedgerStore, ledger: Ledger) -> None:
        org_id = store.organization_id
        try:
            store.commit(org_id, ledger)
        except PersistenceError:
            self._unsaved[org_id] = ledger
            raise
        self._unsaved.pop(org_id, None)

    def ledger(self, organization_id: str) -> Ledger:
        with self._locked(organization_id) as (_, ledger):
            return ledger

    # Mutations

    def clock_in(self, organization_id: str, subject_name: str, *, now: Optional[datetime] = None) -> LogEntry:
        now = now or now_local()
        with self._locked(organization_id) as (store, ledger):
            result = operations.clock_in(ledger, subject_name, now)
            logger.info("Clock-in %s org=%s at %s", result.entry.subject_name, organization_id, now)
            self._commit(store, result.ledger)
            return result.entry

    def clock_out(self, organization_id: str, subject_name: str, *, now: Optional[datetime] = None) -> LogEntry:
        now = now or now_local()
        with self._locked(organization_id) as (store, ledger):
            result = operations.clock_out(ledger, subject_name, now)
            logger.info("Clock-out %s org=%s at %s", result.entry.subject_name, organization_id, now)
            self._commit(store, result.ledger)
            return result.entry

    def add_manual_entry(
        self,
        organization_id: str,
        subject_name: str,
        logical_date: date,
        clock_in: datetime,
        clock_out: Optional[datetime] = None,
        note: Optional[str] = None,
    ) -> LogEntry:
        with self._locked(organization_id) as (store, ledger):
            result = operations.add_manual_entry(ledger, subject_name, logical_date, clock_in, clock_out, note)
            logger.info("Manual entry %s org=%s date=%s", result.entry.subject_name, organization_id, logical_date)
            self._commit(store, result.ledger)
            return result.entry

    def clear_entries(self, organization_id: str, scope: ClearScope) -> int:
        with self._locked(organization_id) as (store, ledger):
            result = operations.clear_entries(ledger, scope)
            logger.info(
                "Cleared %d entries org=%s date=%s subject=%s",
                result.removed,
                organization_id,
                scope.logical_date,
                scope.subject_name or "*",
            )
            if result.removed:
                self._commit(store, result.ledger)
            return result.removed

    def purge_organization(self, organization_id: str) -> None:
        """Forget an organization's ledger, in memory and in storage."""

        with self._partition(organization_id) as org_id:
            self._unsaved.pop(org_id, None)
            LedgerStore(self._storage).delete(org_id)
        logger.info("Purged time logs of org=%s", organization_id)

    # Queries

    def is_open(self, organization_id: str, subject_name: str, *, today: Optional[date] = None) -> bool:
        today = today or now_local().date()
        with self._locked(organization_id) as (_, ledger):
            return is_open(ledger, subject_name.strip(), today)

    def entries_for_date(
        self,
        organization_id: str,
        logical_date: date,
        role: Role,
        subject_name: Optional[str] = None,
    ) -> list[LogEntry]:
        with self._locked(organization_id) as (_, ledger):
            return projections.entries_for_date(ledger, logical_date, role, subject_name)

    @staticmethod
    def distinct_subjects(entries: list[LogEntry]) -> list[str]:
        return projections.distinct_subjects(entries)

    @staticmethod
    def duration(entry: LogEntry) -> Union[Duration, DurationState]:
        return projections.duration(entry)

    @staticmethod
    def to_export_records(entries: list[LogEntry]) -> list[dict]:
        return projections.to_export_records(entries)

    def export_for_date(
        self,
        organization_id: str,
        logical_date: date,
        role: Role,
        caller_name: Optional[str] = None,
        *,
        subject_name: Optional[str] = None,
        extension: str = "xlsx",
    ) -> ExportBundle:
        entries = self.entries_for_date(organization_id, logical_date, role, caller_name)
        selected = projections.select_for_export(entries, subject_name)
        return ExportBundle(
            records=projections.to_export_records(selected),
            filename=projections.export_filename(logical_date, subject_name, extension),
        )
