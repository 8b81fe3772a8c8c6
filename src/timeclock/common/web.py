"""Shared Flask helpers: asserted identity, role gates, JSON error mapping."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import wraps
from typing import Optional

from flask import jsonify, session

from ..core.enums import Role
from ..core.exceptions import (
    AuthorizationError,
    DomainError,
    PersistenceError,
    StateConflictError,
    ValidationError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """What the identity provider asserted and we keep in the Flask session."""

    uid: str
    display_name: str
    email: Optional[str]
    organization_id: Optional[str]
    role: Optional[Role]


def current_identity() -> Optional[Identity]:
    if "uid" not in session:
        return None
    role = session.get("role")
    return Identity(
        uid=session["uid"],
        display_name=session.get("name", ""),
        email=session.get("email"),
        organization_id=session.get("organization_id"),
        role=Role(role) if role else None,
    )


def set_active_organization(organization_id: Optional[str], role: Optional[Role]) -> None:
    session["organization_id"] = organization_id
    session["role"] = role.value if role else None


def error(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def _status_for(exc: DomainError) -> int:
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, AuthorizationError):
        return 403
    if isinstance(exc, StateConflictError):
        return 409
    if isinstance(exc, PersistenceError):
        return 503
    return 400


def json_api(view):
    """Turn domain errors into JSON responses with a matching status code."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except DomainError as e:
            return error(str(e), _status_for(e))
        except Exception:
            logger.exception("Unhandled error in %s", view.__name__)
            return error("System error, please try again.", 500)

    return wrapper


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if current_identity() is None:
            return error("Please sign in to continue.", 401)
        return view(*args, **kwargs)

    return wrapper


def organization_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        ident = current_identity()
        if ident is None:
            return error("Please sign in to continue.", 401)
        if not ident.organization_id or ident.role is None:
            return error("Create or join an organization first.", 409)
        return view(*args, **kwargs)

    return wrapper


def owner_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        ident = current_identity()
        if ident is None:
            return error("Please sign in to continue.", 401)
        if ident.role != Role.OWNER:
            return error("Only the organization owner can do this.", 403)
        return view(*args, **kwargs)

    return wrapper
