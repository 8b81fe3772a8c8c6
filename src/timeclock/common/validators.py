from __future__ import annotations

from typing import Any, Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: Any, field_name: str) -> str:
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{field_name} must be text.")
    if not value or not value.strip():
        raise ValidationError(f"{field_name} cannot be empty.")
    return value.strip()


def optional_text(value: Any, field_name: str = "Note") -> Optional[str]:
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{field_name} must be text.")
    if value is None or not value.strip():
        return None
    return value.strip()


def json_object(data: Any) -> dict:
    """Request body as a dict; a missing body reads as empty."""
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object.")
    return data
