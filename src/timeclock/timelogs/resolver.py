"""Clock state derived from the ledger.

Nothing here caches state: every answer is recomputed from the entries so
controls and ledger can never disagree.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from .model import Ledger, LogEntry


def _matches_open(entry: LogEntry, subject_name: str, logical_date: date) -> bool:
    return entry.is_open and entry.subject_name == subject_name and entry.logical_date == logical_date


def is_open(ledger: Ledger, subject_name: str, logical_date: date) -> bool:
    return any(_matches_open(e, subject_name, logical_date) for e in ledger)


def find_open_index(ledger: Ledger, subject_name: str, logical_date: date) -> Optional[int]:
    """Index of the most recently inserted open entry for the subject/date."""
    for index in range(len(ledger) - 1, -1, -1):
        if _matches_open(ledger[index], subject_name, logical_date):
            return index
    return None
