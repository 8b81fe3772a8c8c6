from __future__ import annotations

import json
from datetime import date, datetime, timedelta, timezone

import pytest

from timeclock.core.enums import Role
from timeclock.core.exceptions import AlreadyOpenError, NotOpenError, PersistenceError
from timeclock.timelogs.memory_storage import InMemoryLedgerStorage
from timeclock.timelogs.operations import ClearScope
from timeclock.timelogs.service import TimeLogService
from timeclock.timelogs.store import LedgerStore


class FlakyStorage(InMemoryLedgerStorage):
    def __init__(self):
        super().__init__()
        self.fail_save = False

    def save(self, key, payload):
        if self.fail_save:
            raise OSError("write refused")
        super().save(key, payload)


def test_clock_in_persists_immediately(fixed_now):
    storage = InMemoryLedgerStorage()
    svc = TimeLogService(storage)

    svc.clock_in("org1", "Alice", now=fixed_now)

    persisted = LedgerStore(storage).load("org1")
    assert len(persisted) == 1
    assert persisted[0].is_open
    assert svc.is_open("org1", "Alice", today=fixed_now.date())


def test_clock_cycle_example_scenario(fixed_now):
    svc = TimeLogService(InMemoryLedgerStorage())

    svc.clock_in("org1", "Alice", now=fixed_now)
    entry = svc.clock_out("org1", "Alice", now=datetime(2024, 1, 5, 17, 30, 15))

    assert str(svc.duration(entry)) == "8h 30m 15s"
    records = svc.to_export_records([entry])
    assert records[0]["Status"] == "Completed"
    assert not svc.is_open("org1", "Alice", today=fixed_now.date())


def test_state_conflicts(fixed_now):
    svc = TimeLogService(InMemoryLedgerStorage())

    with pytest.raises(NotOpenError):
        svc.clock_out("org1", "Alice", now=fixed_now)

    svc.clock_in("org1", "Alice", now=fixed_now)
    with pytest.raises(AlreadyOpenError):
        svc.clock_in("org1", "Alice", now=fixed_now.replace(hour=10))

    assert len(svc.ledger("org1")) == 1


def test_organizations_are_partitioned(fixed_now):
    storage = InMemoryLedgerStorage()
    svc = TimeLogService(storage)

    svc.clock_in("org1", "Alice", now=fixed_now)
    svc.clock_in("org2", "Alice", now=fixed_now)
    svc.clock_out("org2", "Alice", now=fixed_now.replace(hour=12))

    assert svc.is_open("org1", "Alice", today=fixed_now.date())
    assert not svc.is_open("org2", "Alice", today=fixed_now.date())
    assert set(storage._blobs) == {"timeLogs_org1", "timeLogs_org2"}


def test_persist_failure_keeps_new_state_in_memory(fixed_now):
    storage = FlakyStorage()
    svc = TimeLogService(storage)
    svc.clock_in("org1", "Alice", now=fixed_now)

    storage.fail_save = True
    with pytest.raises(PersistenceError):
        svc.clock_out("org1", "Alice", now=fixed_now.replace(hour=12))

    assert not svc.is_open("org1", "Alice", today=fixed_now.date())
    # storage still has the open entry
    assert LedgerStore(storage).load("org1")[0].is_open


def test_clear_entries_reports_count():
    svc = TimeLogService(InMemoryLedgerStorage())
    for i, name in enumerate(["Alice", "Bob", "Carol"]):
        svc.add_manual_entry("org1", name, date(2024, 1, 5), datetime(2024, 1, 5, 8 + i, 0), datetime(2024, 1, 5, 12, 0))
    svc.add_manual_entry("org1", "Alice", date(2024, 1, 4), datetime(2024, 1, 4, 8, 0), datetime(2024, 1, 4, 12, 0))
    svc.add_manual_entry("org1", "Bob", date(2024, 1, 6), datetime(2024, 1, 6, 8, 0), datetime(2024, 1, 6, 12, 0))

    removed = svc.clear_entries("org1", ClearScope.for_date(date(2024, 1, 5)))

    assert removed == 3
    remaining = svc.ledger("org1")
    assert sorted(e.logical_date for e in remaining) == [date(2024, 1, 4), date(2024, 1, 6)]


def test_export_for_date_member_scope(fixed_now):
    svc = TimeLogService(InMemoryLedgerStorage())
    svc.clock_in("org1", "Alice", now=fixed_now)
    svc.clock_in("org1", "Bob", now=fixed_now.replace(hour=10))

    owner = svc.export_for_date("org1", fixed_now.date(), Role.OWNER)
    member = svc.export_for_date("org1", fixed_now.date(), Role.MEMBER, "Bob")
    nobody = svc.export_for_date("org1", date(2024, 2, 1), Role.OWNER)

    assert [r["Employee Name"] for r in owner.records] == ["Alice", "Bob"]
    assert owner.filename == "TimeLogs_All_Employees_2024-01-05.xlsx"
    assert [r["Employee Name"] for r in member.records] == ["Bob"]
    assert nobody.is_empty


def test_purge_organization(fixed_now):
    storage = InMemoryLedgerStorage()
    svc = TimeLogService(storage)
    svc.clock_in("org1", "Alice", now=fixed_now)

    svc.purge_organization("org1")

    assert storage.load("timeLogs_org1") is None
    assert len(svc.ledger("org1")) == 0


def test_switching_away_and_back_rehydrates_from_storage(fixed_now):
    storage = InMemoryLedgerStorage()
    svc = TimeLogService(storage)
    svc.clock_in("org1", "Alice", now=fixed_now)
    assert len(svc.ledger("org2")) == 0

    # another process clocks Alice out behind our back
    other = LedgerStore(storage)
    other.switch_organization("org1")
    closed = other.ledger[0].close(fixed_now.replace(hour=17))
    other.commit("org1", other.ledger.replaced(0, closed))

    assert not svc.is_open("org1", "Alice", today=fixed_now.date())
    assert svc.ledger("org1")[0].clock_out == fixed_now.replace(hour=17)


def test_idle_organizations_are_not_kept(fixed_now):
    svc = TimeLogService(InMemoryLedgerStorage())
    for i in range(50):
        svc.ledger(f"org{i}")
    svc.clock_in("org1", "Alice", now=fixed_now)

    assert svc._partitions == {}
    assert svc._unsaved == {}


def test_unsaved_state_is_written_by_next_successful_commit(fixed_now):
    storage = FlakyStorage()
    svc = TimeLogService(storage)
    svc.clock_in("org1", "Alice", now=fixed_now)

    storage.fail_save = True
    with pytest.raises(PersistenceError):
        svc.clock_out("org1", "Alice", now=fixed_now.replace(hour=12))

    storage.fail_save = False
    svc.clock_in("org1", "Bob", now=fixed_now.replace(hour=13))

    persisted = LedgerStore(storage).load("org1")
    assert [(e.subject_name, e.is_open) for e in persisted] == [("Alice", False), ("Bob", True)]
    assert svc._unsaved == {}


def test_offset_timestamps_in_storage_sort_with_local_ones():
    started = datetime(2024, 1, 5, 9, 0, tzinfo=timezone.utc).astimezone().replace(tzinfo=None)
    day = started.date()
    storage = InMemoryLedgerStorage(
        {
            "timeLogs_org1": json.dumps(
                [
                    {"id": "a", "name": "Alice", "clockIn": "2024-01-05T09:00:00Z", "clockOut": None, "date": day.isoformat()},
                    {"id": "b", "name": "Bob", "clockIn": f"{day.isoformat()}T10:00:00", "clockOut": None, "date": day.isoformat()},
                ]
            ).encode("utf-8")
        }
    )
    svc = TimeLogService(storage)

    entries = svc.entries_for_date("org1", day, Role.OWNER)
    entry = svc.clock_out("org1", "Alice", now=started + timedelta(minutes=1))

    assert {e.subject_name for e in entries} == {"Alice", "Bob"}
    assert str(svc.duration(entry)) == "0h 1m 0s"
