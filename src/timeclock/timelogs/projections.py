from __future__ import annotations

import re
from datetime import date
from typing import Iterable, Optional, Sequence, Union

from ..common.datetime_utils import format_date, format_timestamp
from ..common.validators import require_non_empty
from ..core.constants import EXPORT_ALL_SUBJECTS, EXPORT_OPEN_CLOCK_OUT
from ..core.enums import DurationState, EntryStatus, Role
from .model import Duration, Ledger, LogEntry


def entries_for_date(
    ledger: Ledger,
    logical_date: date,
    role: Role,
    subject_name: Optional[str] = None,
) -> list[LogEntry]:
    """Entries filed under a date, most recent clock-in first.

    Members only see their own entries; owners see everyone's.
    """

    items = [e for e in ledger if e.logical_date == logical_date]
    if Role(role) == Role.MEMBER:
        name = require_non_empty(subject_name, "Name")
        items = [e for e in items if e.subject_name == name]
    items.sort(key=lambda e: e.clock_in, reverse=True)
    return items


def distinct_subjects(entries: Iterable[LogEntry]) -> list[str]:
    return sorted({e.subject_name for e in entries})


def duration(entry: LogEntry) -> Union[Duration, DurationState]:
    if entry.clock_out is None:
        return DurationState.IN_PROGRESS
    # Stored data is untrusted, so the range is checked again here.
    if entry.clock_out <= entry.clock_in:
        return DurationState.INVALID
    return Duration.between(entry.clock_in, entry.clock_out)


def format_duration(entry: LogEntry) -> str:
    value = duration(entry)
    if isinstance(value, DurationState):
        return value.value
    return str(value)


def entry_status(entry: LogEntry) -> EntryStatus:
    return EntryStatus.IN_PROGRESS if entry.is_open else EntryStatus.COMPLETED


def to_export_records(entries: Iterable[LogEntry]) -> list[dict]:
    return [
        {
            "Employee Name": e.subject_name,
            "Date": format_date(e.logical_date),
            "Clock In": format_timestamp(e.clock_in),
            "Clock Out": format_timestamp(e.clock_out) if e.clock_out else EXPORT_OPEN_CLOCK_OUT,
            "Duration": format_duration(e),
            "Status": entry_status(e).value,
            "Note": e.note or "",
        }
        for e in entries
    ]


def select_for_export(entries: Sequence[LogEntry], subject_name: Optional[str] = None) -> list[LogEntry]:
    if subject_name:
        return [e for e in entries if e.subject_name == subject_name]
    # sorted() is stable: each subject keeps the incoming recency order.
    return sorted(entries, key=lambda e: e.subject_name)


def export_filename(logical_date: date, subject_name: Optional[str] = None, extension: str = "xlsx") -> str:
    part = re.sub(r"\s+", "_", subject_name.strip()) if subject_name else EXPORT_ALL_SUBJECTS
    return f"TimeLogs_{part}_{format_date(logical_date)}.{extension}"
