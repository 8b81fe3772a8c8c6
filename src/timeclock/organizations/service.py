from __future__ import annotations

import io
import logging
import secrets
import uuid
from typing import Callable, Optional, Sequence

import qrcode

from ..common.datetime_utils import now_local
from ..common.validators import require_non_empty
from ..core.constants import INVITE_CODE_ALPHABET, INVITE_CODE_LENGTH, INVITE_CODE_MAX_ATTEMPTS
from ..core.enums import Role
from ..core.exceptions import DomainError, ValidationError
from .model import Member, Organization
from .repository import OrganizationRepository

logger = logging.getLogger(__name__)


def generate_invite_code(length: int = INVITE_CODE_LENGTH) -> str:
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(length))


def render_qr_png(data: str) -> bytes:
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=2,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


class OrganizationService:
    """Use cases: create/join/list/delete organizations."""

    def __init__(
        self,
        organizations: OrganizationRepository,
        *,
        code_generator: Callable[[], str] = generate_invite_code,
    ):
        self._orgs = organizations
        self._code_generator = code_generator

    def _unique_invite_code(self) -> str:
        for _ in range(INVITE_CODE_MAX_ATTEMPTS):
            code = self._code_generator()
            if self._orgs.get_by_invite_code(code) is None:
                return code
        raise DomainError("Could not issue a unique invite code, please retry.")

    def create(self, *, owner_uid: str, owner_name: str, name: str) -> Organization:
        owner_uid = require_non_empty(owner_uid, "User")
        org_name = require_non_empty(name, "Organization name")

        org = self._orgs.create(
            organization_id=uuid.uuid4().hex,
            name=org_name,
            owner_uid=owner_uid,
            invite_code=self._unique_invite_code(),
            created_at=now_local(),
        )
        self._orgs.add_member(
            organization_id=org.organization_id,
            uid=owner_uid,
            display_name=require_non_empty(owner_name, "Name"),
            role=Role.OWNER,
        )
        logger.info("Organization %s created by %s", org.organization_id, owner_uid)
        return self._orgs.get_by_id(org.organization_id) or org

    def join(self, *, uid: str, display_name: str, invite_code: str) -> Optional[Organization]:
        uid = require_non_empty(uid, "User")
        code = require_non_empty(invite_code, "Invite code").upper()

        org = self._orgs.get_by_invite_code(code)
        if org is None:
            logger.info("No organization found for invite code %s", code)
            return None

        self._orgs.add_member(
            organization_id=org.organization_id,
            uid=uid,
            display_name=require_non_empty(display_name, "Name"),
            role=Role.MEMBER,
        )
        logger.info("User %s joined organization %s", uid, org.organization_id)
        return self._orgs.get_by_id(org.organization_id)

    def get(self, organization_id: str) -> Optional[Organization]:
        return self._orgs.get_by_id(organization_id)

    def list_memberships(self, uid: str) -> Sequence[Organization]:
        return self._orgs.list_for_member(require_non_empty(uid, "User"))

    def members(self, organization_id: str) -> Sequence[Member]:
        return self._orgs.list_members(organization_id)

    def role_of(self, organization_id: str, uid: str) -> Optional[Role]:
        for m in self._orgs.list_members(organization_id):
            if m.uid == uid:
                return m.role
        return None

    def member_name(self, organization_id: str, uid: str) -> str:
        """Display name of a member; owners record entries by identity, not free text."""

        for m in self._orgs.list_members(organization_id):
            if m.uid == uid:
                return m.display_name
        raise ValidationError("Member not found in this organization.")

    def delete(self, organization_id: str) -> bool:
        deleted = self._orgs.delete(require_non_empty(organization_id, "Organization"))
        if deleted:
            logger.info("Organization %s deleted", organization_id)
        return deleted

    def invite_qr_png(self, organization_id: str) -> bytes:
        org = self._orgs.get_by_id(organization_id)
        if org is None:
            raise ValidationError("Organization not found.")
        return render_qr_png(org.invite_code)
