from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .repository import LedgerStorage


class MySQLLedgerStorage(LedgerStorage):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def load(self, key: str) -> Optional[bytes]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT payload
                FROM time_log_ledgers
                WHERE storage_key=%s
                """,
                (key,),
            )
            r = fetchone(cur)
            if not r:
                return None
            payload = r["payload"]
            return payload.encode("utf-8") if isinstance(payload, str) else bytes(payload)

    def save(self, key: str, payload: bytes) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO time_log_ledgers(storage_key, payload)
                VALUES(%s,%s)
                ON DUPLICATE KEY UPDATE payload=VALUES(payload), updated_at=CURRENT_TIMESTAMP
                """,
                (key, payload),
            )

    def delete(self, key: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM time_log_ledgers WHERE storage_key=%s", (key,))
