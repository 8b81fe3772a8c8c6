"""Ledger transitions: clock-in, clock-out, manual entry, clear.

Each function takes the current ledger and returns a new one; the input is
never modified, so a failed call leaves the caller's ledger as it was.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..common.datetime_utils import combine_clock
from ..common.validators import optional_text, require_non_empty
from ..core.exceptions import AlreadyOpenError, InvalidRangeError, NotOpenError, ValidationError
from .model import ClearResult, Ledger, LogEntry, MutationResult, new_entry_id
from .resolver import find_open_index, is_open


@dataclass(frozen=True)
class ClearScope:
    """Which entries a clear removes: a whole date, or one subject's share of it."""

    logical_date: date
    subject_name: Optional[str] = None

    @classmethod
    def for_date(cls, logical_date: date) -> "ClearScope":
        return cls(logical_date=logical_date)

    @classmethod
    def own_for_date(cls, logical_date: date, subject_name: str) -> "ClearScope":
        return cls(logical_date=logical_date, subject_name=require_non_empty(subject_name, "Name"))

    def matches(self, entry: LogEntry) -> bool:
        if entry.logical_date != self.logical_date:
            return False
        return self.subject_name is None or entry.subject_name == self.subject_name


def clock_in(ledger: Ledger, subject_name: str, now: datetime) -> MutationResult:
    name = require_non_empty(subject_name, "Name")
    today = now.date()

    if is_open(ledger, name, today):
        raise AlreadyOpenError(f"{name} is already clocked in for today.")

    entry = LogEntry(
        entry_id=new_entry_id(),
        subject_name=name,
        clock_in=now,
        clock_out=None,
        logical_date=today,
    )
    return MutationResult(ledger=ledger.appended(entry), entry=entry)


def clock_out(ledger: Ledger, subject_name: str, now: datetime) -> MutationResult:
    name = require_non_empty(subject_name, "Name")
    today = now.date()

    index = find_open_index(ledger, name, today)
    if index is None:
        raise NotOpenError(f"{name} is not clocked in for today.")

    current = ledger[index]
    if now <= current.clock_in:
        raise InvalidRangeError("Clock-out time must be after clock-in time.")

    closed = current.close(now)
    return MutationResult(ledger=ledger.replaced(index, closed), entry=closed)


def add_manual_entry(
    ledger: Ledger,
    subject_name: str,
    logical_date: date,
    clock_in: datetime,
    clock_out: Optional[datetime] = None,
    note: Optional[str] = None,
) -> MutationResult:
    """Backfill a session; live clock state is deliberately not consulted."""

    name = require_non_empty(subject_name, "Name")
    if logical_date is None:
        raise ValidationError("Date is required.")
    if clock_in is None:
        raise ValidationError("Clock-in time is required.")
    if clock_out is not None and clock_out <= clock_in:
        raise InvalidRangeError("Clock-out time must be after clock-in time.")

    entry = LogEntry(
        entry_id=new_entry_id(),
        subject_name=name,
        clock_in=clock_in,
        clock_out=clock_out,
        logical_date=logical_date,
        note=optional_text(note),
    )
    ordered = sorted(ledger.appended(entry), key=lambda e: e.clock_in, reverse=True)
    return MutationResult(ledger=Ledger(tuple(ordered)), entry=entry)


def parse_manual_times(
    logical_date: date,
    clock_in: str,
    clock_out: Optional[str] = None,
) -> tuple[datetime, Optional[datetime]]:
    """Turn HH:MM form values into datetimes on the entry's date."""

    start = combine_clock(logical_date, require_non_empty(clock_in, "Clock-in time"))
    end = combine_clock(logical_date, clock_out) if optional_text(clock_out, "Clock-out time") else None
    return start, end


def clear_entries(ledger: Ledger, scope: ClearScope) -> ClearResult:
    remaining = ledger.without(scope.matches)
    return ClearResult(ledger=remaining, removed=len(ledger) - len(remaining))
