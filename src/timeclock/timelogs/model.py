from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Callable, Iterator, Optional


def new_entry_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class LogEntry:
    """Domain entity: one clock session of one person."""

    entry_id: str
    subject_name: str
    clock_in: datetime
    clock_out: Optional[datetime]
    logical_date: date
    note: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.clock_out is None

    def close(self, at: datetime) -> "LogEntry":
        return replace(self, clock_out=at)


@dataclass(frozen=True)
class Ledger:
    """Ordered log entries of one organization.

    Insertion order is kept as-is so a save/load round-trip reproduces the
    same ledger; views always re-sort.
    """

    entries: tuple[LogEntry, ...] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[LogEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, index: int) -> LogEntry:
        return self.entries[index]

    def appended(self, entry: LogEntry) -> "Ledger":
        return Ledger(self.entries + (entry,))

    def replaced(self, index: int, entry: LogEntry) -> "Ledger":
        items = list(self.entries)
        items[index] = entry
        return Ledger(tuple(items))

    def without(self, predicate: Callable[[LogEntry], bool]) -> "Ledger":
        return Ledger(tuple(e for e in self.entries if not predicate(e)))


@dataclass(frozen=True)
class MutationResult:
    ledger: Ledger
    entry: LogEntry


@dataclass(frozen=True)
class ClearResult:
    ledger: Ledger
    removed: int


@dataclass(frozen=True)
class Duration:
    hours: int
    minutes: int
    seconds: int

    @classmethod
    def between(cls, start: datetime, end: datetime) -> "Duration":
        total = int((end - start).total_seconds())
        return cls(hours=total // 3600, minutes=(total % 3600) // 60, seconds=total % 60)

    def __str__(self) -> str:
        return f"{self.hours}h {self.minutes}m {self.seconds}s"
