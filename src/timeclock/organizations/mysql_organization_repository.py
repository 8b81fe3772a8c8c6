from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Member, Organization
from .repository import OrganizationRepository


class MySQLOrganizationRepository(OrganizationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _member_uids(self, cur, organization_id: str) -> tuple[str, ...]:
        cur.execute(
            "SELECT uid FROM organization_members WHERE organization_id=%s ORDER BY joined_at",
            (organization_id,),
        )
        return tuple(str(r["uid"]) for r in fetchall(cur))

    def _to_org(self, cur, r: dict) -> Organization:
        return Organization(
            organization_id=str(r["organization_id"]),
            name=r["name"],
            owner_uid=str(r["owner_uid"]),
            invite_code=r["invite_code"],
            created_at=r["created_at"],
            member_uids=self._member_uids(cur, str(r["organization_id"])),
        )

    def create(
        self,
        *,
        organization_id: str,
        name: str,
        owner_uid: str,
        invite_code: str,
        created_at: datetime,
    ) -> Organization:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO organizations(organization_id, name, owner_uid, invite_code, created_at)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (organization_id, name, owner_uid, invite_code, created_at),
            )
        return Organization(
            organization_id=organization_id,
            name=name,
            owner_uid=owner_uid,
            invite_code=invite_code,
            created_at=created_at,
        )

    def get_by_id(self, organization_id: str) -> Optional[Organization]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT organization_id, name, owner_uid, invite_code, created_at
                FROM organizations
                WHERE organization_id=%s
                """,
                (organization_id,),
            )
            r = fetchone(cur)
            return self._to_org(cur, r) if r else None

    def get_by_invite_code(self, invite_code: str) -> Optional[Organization]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT organization_id, name, owner_uid, invite_code, created_at
                FROM organizations
                WHERE invite_code=%s
                """,
                (invite_code,),
            )
            r = fetchone(cur)
            return self._to_org(cur, r) if r else None

    def add_member(self, *, organization_id: str, uid: str, display_name: str, role: Role) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT IGNORE INTO organization_members(organization_id, uid, display_name, role)
                VALUES(%s,%s,%s,%s)
                """,
                (organization_id, uid, display_name, Role(role).value),
            )

    def list_members(self, organization_id: str) -> Sequence[Member]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT uid, display_name, role
                FROM organization_members
                WHERE organization_id=%s
                ORDER BY joined_at
                """,
                (organization_id,),
            )
            return [
                Member(uid=str(r["uid"]), display_name=r["display_name"], role=Role(r["role"]))
                for r in fetchall(cur)
            ]

    def list_for_member(self, uid: str) -> Sequence[Organization]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT o.organization_id, o.name, o.owner_uid, o.invite_code, o.created_at
                FROM organizations o
                JOIN organization_members m ON m.organization_id = o.organization_id
                WHERE m.uid=%s
                ORDER BY o.created_at DESC
                """,
                (uid,),
            )
            rows = fetchall(cur)
            return [self._to_org(cur, r) for r in rows]

    def delete(self, organization_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM organizations WHERE organization_id=%s", (organization_id,))
            return cur.rowcount > 0
