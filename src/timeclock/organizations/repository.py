from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import Role
from .model import Member, Organization


class OrganizationRepository(Protocol):
    def create(
        self,
        *,
        organization_id: str,
        name: str,
        owner_uid: str,
        invite_code: str,
        created_at: datetime,
    ) -> Organization:
        raise NotImplementedError

    def get_by_id(self, organization_id: str) -> Optional[Organization]:
        raise NotImplementedError

    def get_by_invite_code(self, invite_code: str) -> Optional[Organization]:
        raise NotImplementedError

    def add_member(self, *, organization_id: str, uid: str, display_name: str, role: Role) -> None:
        raise NotImplementedError

    def list_members(self, organization_id: str) -> Sequence[Member]:
        raise NotImplementedError

    def list_for_member(self, uid: str) -> Sequence[Organization]:
        raise NotImplementedError

    def delete(self, organization_id: str) -> bool:
        raise NotImplementedError
