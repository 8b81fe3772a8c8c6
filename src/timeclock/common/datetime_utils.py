from __future__ import annotations

from datetime import date, datetime

from ..core.constants import CLOCK_FORMAT, DATE_FORMAT, TIMESTAMP_FORMAT
from ..core.exceptions import ValidationError


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value, DATE_FORMAT).date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date: {value!r} (expected YYYY-MM-DD)") from None


def combine_clock(work_date: date, value: str) -> datetime:
    """Combine an HH:MM clock string with a calendar date."""
    try:
        clock = datetime.strptime(value.strip(), CLOCK_FORMAT).time()
    except (AttributeError, ValueError):
        raise ValidationError(f"Invalid time: {value!r} (expected HH:MM)") from None
    return datetime.combine(work_date, clock)


def format_timestamp(value: datetime) -> str:
    return value.strftime(TIMESTAMP_FORMAT)


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now().replace(microsecond=0)
