from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .database.connection import DBConfig, DatabaseConnection
from .organizations.memory_repository import InMemoryOrganizationRepository
from .organizations.mysql_organization_repository import MySQLOrganizationRepository
from .organizations.repository import OrganizationRepository
from .organizations.service import OrganizationService
from .timelogs.memory_storage import InMemoryLedgerStorage
from .timelogs.mysql_ledger_storage import MySQLLedgerStorage
from .timelogs.repository import LedgerStorage
from .timelogs.service import TimeLogService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    ledger_storage: LedgerStorage
    organizations_repo: OrganizationRepository

    time_log_service: TimeLogService
    organization_service: OrganizationService


def build_container(*, backend: str = "memory", db_config: Optional[dict] = None) -> Container:
    conn: Optional[DatabaseConnection] = None

    if backend == "mysql":
        if not db_config:
            raise ValueError("STORAGE_BACKEND=mysql requires DB_CONFIG")
        conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
        ledger_storage: LedgerStorage = MySQLLedgerStorage(conn)
        organizations_repo: OrganizationRepository = MySQLOrganizationRepository(conn)
    elif backend == "memory":
        ledger_storage = InMemoryLedgerStorage()
        organizations_repo = InMemoryOrganizationRepository()
    else:
        raise ValueError(f"Unknown storage backend: {backend!r}")

    return Container(
        conn=conn,
        ledger_storage=ledger_storage,
        organizations_repo=organizations_repo,
        time_log_service=TimeLogService(ledger_storage),
        organization_service=OrganizationService(organizations_repo),
    )
