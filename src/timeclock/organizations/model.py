from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from ..core.enums import Role


@dataclass(frozen=True)
class Member:
    uid: str
    display_name: str
    role: Role


@dataclass(frozen=True)
class Organization:
    """Partition owner for time logs; the id keys its ledger in storage."""

    organization_id: str
    name: str
    owner_uid: str
    invite_code: str
    created_at: datetime
    member_uids: tuple[str, ...] = field(default_factory=tuple)
