from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import Role
from .model import Member, Organization
from .repository import OrganizationRepository


class InMemoryOrganizationRepository(OrganizationRepository):
    def __init__(self):
        self._orgs: dict[str, Organization] = {}
        self._members: dict[str, dict[str, Member]] = {}

    def create(
        self,
        *,
        organization_id: str,
        name: str,
        owner_uid: str,
        invite_code: str,
        created_at: datetime,
    ) -> Organization:
        org = Organization(
            organization_id=organization_id,
            name=name,
            owner_uid=owner_uid,
            invite_code=invite_code,
            created_at=created_at,
        )
        self._orgs[organization_id] = org
        self._members[organization_id] = {}
        return org

    def _with_members(self, org: Organization) -> Organization:
        return replace(org, member_uids=tuple(self._members.get(org.organization_id, {})))

    def get_by_id(self, organization_id: str) -> Optional[Organization]:
        org = self._orgs.get(organization_id)
        return self._with_members(org) if org else None

    def get_by_invite_code(self, invite_code: str) -> Optional[Organization]:
        for org in self._orgs.values():
            if org.invite_code == invite_code:
                return self._with_members(org)
        return None

    def add_member(self, *, organization_id: str, uid: str, display_name: str, role: Role) -> None:
        members = self._members.setdefault(organization_id, {})
        if uid not in members:
            members[uid] = Member(uid=uid, display_name=display_name, role=role)

    def list_members(self, organization_id: str) -> Sequence[Member]:
        return list(self._members.get(organization_id, {}).values())

    def list_for_member(self, uid: str) -> Sequence[Organization]:
        return [self._with_members(o) for o in self._orgs.values() if uid in self._members.get(o.organization_id, {})]

    def delete(self, organization_id: str) -> bool:
        self._members.pop(organization_id, None)
        return self._orgs.pop(organization_id, None) is not None
