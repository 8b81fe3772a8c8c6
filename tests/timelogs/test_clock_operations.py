from __future__ import annotations

from datetime import date, datetime

import pytest

from timeclock.core.exceptions import AlreadyOpenError, InvalidRangeError, NotOpenError, ValidationError
from timeclock.timelogs.model import Ledger, LogEntry
from timeclock.timelogs.operations import (
    ClearScope,
    add_manual_entry,
    clear_entries,
    clock_in,
    clock_out,
    parse_manual_times,
)
from timeclock.timelogs.projections import duration, entry_status
from timeclock.timelogs.resolver import find_open_index, is_open


def _open_pairs(ledger: Ledger) -> list[tuple[str, date]]:
    return [(e.subject_name, e.logical_date) for e in ledger if e.is_open]


def test_clock_in_creates_open_entry(fixed_now):
    result = clock_in(Ledger(), "  Alice ", fixed_now)

    assert len(result.ledger) == 1
    entry = result.ledger[0]
    assert entry.subject_name == "Alice"
    assert entry.clock_in == fixed_now
    assert entry.clock_out is None
    assert entry.logical_date == date(2024, 1, 5)
    assert entry.note is None
    assert is_open(result.ledger, "Alice", date(2024, 1, 5))


def test_clock_in_requires_name(fixed_now):
    with pytest.raises(ValidationError):
        clock_in(Ledger(), "   ", fixed_now)


def test_second_clock_in_same_day_is_rejected_and_ledger_unchanged(fixed_now):
    ledger = clock_in(Ledger(), "Alice", fixed_now).ledger

    with pytest.raises(AlreadyOpenError):
        clock_in(ledger, "Alice", fixed_now.replace(hour=10))

    assert len(ledger) == 1


def test_clock_out_without_clock_in_is_rejected(fixed_now):
    ledger = Ledger()
    with pytest.raises(NotOpenError):
        clock_out(ledger, "Alice", fixed_now)
    assert len(ledger) == 0


def test_clock_in_then_out_closes_single_entry(fixed_now):
    ledger = clock_in(Ledger(), "Alice", fixed_now).ledger
    result = clock_out(ledger, "Alice", datetime(2024, 1, 5, 17, 30, 15))

    assert len(result.ledger) == 1
    entry = result.ledger[0]
    assert entry.clock_out > entry.clock_in
    assert str(duration(entry)) == "8h 30m 15s"
    assert entry_status(entry).value == "Completed"
    assert not is_open(result.ledger, "Alice", date(2024, 1, 5))
    # the original ledger is untouched
    assert ledger[0].is_open


def test_clock_out_keeps_entry_id(fixed_now):
    opened = clock_in(Ledger(), "Alice", fixed_now)
    closed = clock_out(opened.ledger, "Alice", fixed_now.replace(hour=12))
    assert closed.entry.entry_id == opened.entry.entry_id


def test_clock_out_at_clock_in_instant_is_invalid_range(fixed_now):
    ledger = clock_in(Ledger(), "Alice", fixed_now).ledger
    with pytest.raises(InvalidRangeError):
        clock_out(ledger, "Alice", fixed_now)


def test_clock_in_after_closed_session_starts_new_entry(fixed_now):
    ledger = clock_in(Ledger(), "Alice", fixed_now).ledger
    ledger = clock_out(ledger, "Alice", fixed_now.replace(hour=12)).ledger
    ledger = clock_in(ledger, "Alice", fixed_now.replace(hour=13)).ledger

    assert len(ledger) == 2
    assert ledger[0].clock_out is not None
    assert ledger[1].is_open


def test_clock_out_closes_last_inserted_open_entry(fixed_now):
    # Two open entries for one key can only come from bad stored data.
    first = LogEntry("a", "Alice", fixed_now, None, fixed_now.date())
    second = LogEntry("b", "Alice", fixed_now.replace(hour=10), None, fixed_now.date())
    ledger = Ledger((first, second))

    assert find_open_index(ledger, "Alice", fixed_now.date()) == 1

    result = clock_out(ledger, "Alice", fixed_now.replace(hour=11))
    assert result.entry.entry_id == "b"
    assert result.ledger[0].is_open
    assert not result.ledger[1].is_open


def test_subjects_and_dates_are_independent(fixed_now):
    ledger = clock_in(Ledger(), "Alice", fixed_now).ledger
    ledger = clock_in(ledger, "Bob", fixed_now).ledger
    ledger = clock_in(ledger, "Alice", datetime(2024, 1, 6, 9, 0)).ledger

    assert len(ledger) == 3
    with pytest.raises(NotOpenError):
        clock_out(ledger, "Carol", fixed_now.replace(hour=12))


def test_at_most_one_open_entry_per_subject_and_date(fixed_now):
    ledger = Ledger()
    steps = [
        (clock_in, "Alice", 9),
        (clock_in, "Alice", 9),
        (clock_in, "Bob", 10),
        (clock_out, "Alice", 11),
        (clock_out, "Alice", 12),
        (clock_in, "Alice", 13),
        (clock_out, "Bob", 14),
        (clock_in, "Bob", 15),
    ]
    for op, name, hour in steps:
        try:
            ledger = op(ledger, name, fixed_now.replace(hour=hour)).ledger
        except (AlreadyOpenError, NotOpenError):
            pass
        pairs = _open_pairs(ledger)
        assert len(pairs) == len(set(pairs))

    assert len(ledger) == 4


def test_manual_entry_rejects_end_before_start():
    ledger = Ledger()
    with pytest.raises(InvalidRangeError):
        add_manual_entry(
            ledger,
            "Bob",
            date(2024, 1, 6),
            datetime(2024, 1, 6, 8, 0),
            datetime(2024, 1, 6, 7, 30),
        )
    assert len(ledger) == 0


def test_manual_entry_rejects_equal_times():
    with pytest.raises(InvalidRangeError):
        add_manual_entry(Ledger(), "Bob", date(2024, 1, 6), datetime(2024, 1, 6, 8, 0), datetime(2024, 1, 6, 8, 0))


def test_manual_entry_ignores_live_state_and_sorts_descending(fixed_now):
    ledger = clock_in(Ledger(), "Bob", fixed_now).ledger

    result = add_manual_entry(
        ledger,
        "Bob",
        fixed_now.date(),
        datetime(2024, 1, 5, 6, 0),
        None,
        note="  forgot badge ",
    )

    assert len(result.ledger) == 2
    assert [e.clock_in.hour for e in result.ledger] == [9, 6]
    assert result.entry.note == "forgot badge"
    assert result.entry.is_open


def test_manual_entry_date_can_differ_from_clock_in_date():
    result = add_manual_entry(
        Ledger(),
        "Bob",
        date(2024, 1, 6),
        datetime(2024, 1, 5, 22, 0),
        datetime(2024, 1, 6, 2, 0),
    )
    assert result.entry.logical_date == date(2024, 1, 6)
    assert str(duration(result.entry)) == "4h 0m 0s"


def test_parse_manual_times():
    start, end = parse_manual_times(date(2024, 1, 6), "08:00", "16:45")
    assert start == datetime(2024, 1, 6, 8, 0)
    assert end == datetime(2024, 1, 6, 16, 45)

    start, end = parse_manual_times(date(2024, 1, 6), "08:00", "")
    assert end is None

    with pytest.raises(ValidationError):
        parse_manual_times(date(2024, 1, 6), "8 o'clock")


@pytest.mark.parametrize("clock_in_value, clock_out_value", [(800, None), ("08:00", 1700), (["08:00"], None)])
def test_parse_manual_times_rejects_non_text(clock_in_value, clock_out_value):
    with pytest.raises(ValidationError):
        parse_manual_times(date(2024, 1, 6), clock_in_value, clock_out_value)


def test_manual_entry_rejects_non_text_note():
    with pytest.raises(ValidationError):
        add_manual_entry(Ledger(), "Alice", date(2024, 1, 6), datetime(2024, 1, 6, 8, 0), note=5)


def _entry(entry_id: str, name: str, day: int, hour: int = 9) -> LogEntry:
    start = datetime(2024, 1, day, hour, 0)
    return LogEntry(entry_id, name, start, start.replace(hour=hour + 1), start.date())


def test_clear_entries_for_date_as_owner():
    ledger = Ledger(
        (
            _entry("1", "Alice", 5),
            _entry("2", "Bob", 5),
            _entry("3", "Alice", 4),
            _entry("4", "Carol", 5),
            _entry("5", "Bob", 6),
        )
    )

    result = clear_entries(ledger, ClearScope.for_date(date(2024, 1, 5)))

    assert result.removed == 3
    assert [e.entry_id for e in result.ledger] == ["3", "5"]


def test_clear_own_entries_for_date_as_member():
    ledger = Ledger((_entry("1", "Alice", 5), _entry("2", "Bob", 5), _entry("3", "Alice", 6)))

    result = clear_entries(ledger, ClearScope.own_for_date(date(2024, 1, 5), "Alice"))

    assert result.removed == 1
    assert [e.entry_id for e in result.ledger] == ["2", "3"]


def test_clear_with_nothing_matching_removes_nothing():
    ledger = Ledger((_entry("1", "Alice", 5),))
    result = clear_entries(ledger, ClearScope.for_date(date(2024, 2, 1)))
    assert result.removed == 0
    assert result.ledger == ledger
