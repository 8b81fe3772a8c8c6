from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Role of the caller inside the active organization."""

    OWNER = "owner"
    MEMBER = "member"


class EntryStatus(str, Enum):
    """Status label shown for a log entry and written to exports."""

    COMPLETED = "Completed"
    IN_PROGRESS = "In Progress"


class DurationState(str, Enum):
    """Non-numeric outcomes of a duration computation."""

    IN_PROGRESS = "In Progress"
    INVALID = "Invalid"
