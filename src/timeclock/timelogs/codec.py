"""Byte encoding of a ledger for the keyed store.

Wire format is a UTF-8 JSON array; each object uses the keys
``id, name, clockIn, clockOut, date, note`` with ISO-8601 timestamps.
Timestamps carrying an offset (``...Z`` from browsers) are read back as
naive local time so they compare with ``now_local()``.
"""

from __future__ import annotations

import json
from datetime import date, datetime
from typing import Any

from ..core.exceptions import CorruptLedgerError
from .model import Ledger, LogEntry


def _entry_to_dict(entry: LogEntry) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": entry.entry_id,
        "name": entry.subject_name,
        "clockIn": entry.clock_in.isoformat(),
        "clockOut": entry.clock_out.isoformat() if entry.clock_out else None,
        "date": entry.logical_date.isoformat(),
    }
    if entry.note is not None:
        data["note"] = entry.note
    return data


def _require_str(raw: dict, key: str) -> str:
    value = raw.get(key)
    if not isinstance(value, str) or not value:
        raise CorruptLedgerError(f"Field {key!r} missing or not a string")
    return value


def _parse_timestamp(value: str) -> datetime:
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def _entry_from_dict(raw: Any) -> LogEntry:
    if not isinstance(raw, dict):
        raise CorruptLedgerError("Ledger item is not an object")

    try:
        clock_in = _parse_timestamp(_require_str(raw, "clockIn"))
        clock_out_raw = raw.get("clockOut")
        clock_out = _parse_timestamp(clock_out_raw) if clock_out_raw is not None else None
        logical_date = date.fromisoformat(_require_str(raw, "date"))
    except (AttributeError, TypeError, ValueError, OverflowError) as exc:
        raise CorruptLedgerError(f"Bad timestamp in ledger item: {exc}") from exc

    note = raw.get("note")
    if note is not None and not isinstance(note, str):
        raise CorruptLedgerError("Field 'note' is not a string")

    return LogEntry(
        entry_id=_require_str(raw, "id"),
        subject_name=_require_str(raw, "name"),
        clock_in=clock_in,
        clock_out=clock_out,
        logical_date=logical_date,
        note=note,
    )


def encode_ledger(ledger: Ledger) -> bytes:
    return json.dumps([_entry_to_dict(e) for e in ledger], ensure_ascii=False).encode("utf-8")


def decode_ledger(payload: bytes) -> Ledger:
    try:
        raw = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise CorruptLedgerError(f"Ledger payload is not valid JSON: {exc}") from exc

    if not isinstance(raw, list):
        raise CorruptLedgerError("Ledger payload is not a list")
    return Ledger(tuple(_entry_from_dict(item) for item in raw))
