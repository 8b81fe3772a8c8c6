from __future__ import annotations

import io

from flask import Flask, jsonify, request, send_file, session

from ..common.validators import json_object, optional_text, require_non_empty
from ..common.web import (
    current_identity,
    error,
    json_api,
    login_required,
    owner_required,
    set_active_organization,
)
from ..container import Container
from ..core.enums import Role


def _org_json(org, role=None) -> dict:
    data = {
        "id": org.organization_id,
        "name": org.name,
        "ownerUid": org.owner_uid,
        "memberCount": len(org.member_uids),
        "createdAt": org.created_at.isoformat(),
    }
    if role is not None:
        data["role"] = role.value
    # Only owners get to see and share the invite code.
    if role == Role.OWNER:
        data["inviteCode"] = org.invite_code
    return data


def register(app: Flask, container: Container) -> None:
    orgs = container.organization_service

    @app.route("/session", methods=["POST"], endpoint="login")
    @json_api
    def login():
        """Accept the identity asserted by the external identity provider."""
        data = json_object(request.get_json(silent=True))
        uid = require_non_empty(data.get("uid"), "User")
        email = optional_text(data.get("email"), "Email")
        name = optional_text(data.get("displayName"), "Name") or (email.split("@")[0] if email else "")

        session.clear()
        session["uid"] = uid
        session["name"] = require_non_empty(name, "Name")
        session["email"] = email

        memberships = orgs.list_memberships(uid)
        if memberships:
            first = memberships[0]
            set_active_organization(first.organization_id, orgs.role_of(first.organization_id, uid))
        else:
            set_active_organization(None, None)

        return jsonify({"success": True, "organizationId": session.get("organization_id")})

    @app.route("/session", methods=["DELETE"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"success": True})

    @app.route("/session/organization", methods=["POST"], endpoint="switch_organization")
    @login_required
    @json_api
    def switch_organization():
        ident = current_identity()
        data = json_object(request.get_json(silent=True))
        organization_id = require_non_empty(data.get("organizationId"), "Organization")
        role = orgs.role_of(organization_id, ident.uid)
        if role is None:
            return error("You are not a member of this organization.", 403)
        set_active_organization(organization_id, role)
        return jsonify({"success": True, "organizationId": organization_id, "role": role.value})

    @app.route("/api/organizations", methods=["POST"], endpoint="create_organization")
    @login_required
    @json_api
    def create_organization():
        ident = current_identity()
        data = json_object(request.get_json(silent=True))
        org = orgs.create(owner_uid=ident.uid, owner_name=ident.display_name, name=data.get("name", ""))
        set_active_organization(org.organization_id, Role.OWNER)
        return jsonify({"success": True, "organization": _org_json(org, Role.OWNER)}), 201

    @app.route("/api/organizations/join", methods=["POST"], endpoint="join_organization")
    @login_required
    @json_api
    def join_organization():
        ident = current_identity()
        data = json_object(request.get_json(silent=True))
        org = orgs.join(uid=ident.uid, display_name=ident.display_name, invite_code=data.get("inviteCode", ""))
        if org is None:
            return error("Invalid invite code or organization not found.", 404)

        role = orgs.role_of(org.organization_id, ident.uid) or Role.MEMBER
        set_active_organization(org.organization_id, role)
        return jsonify({"success": True, "organization": _org_json(org, role)})

    @app.route("/api/organizations", methods=["GET"], endpoint="list_organizations")
    @login_required
    @json_api
    def list_organizations():
        ident = current_identity()
        items = [_org_json(o, orgs.role_of(o.organization_id, ident.uid)) for o in orgs.list_memberships(ident.uid)]
        return jsonify({"organizations": items, "activeId": ident.organization_id})

    @app.route("/api/organizations/members", methods=["GET"], endpoint="list_members")
    @owner_required
    @json_api
    def list_members():
        ident = current_identity()
        members = orgs.members(ident.organization_id)
        return jsonify({"members": [{"uid": m.uid, "name": m.display_name, "role": m.role.value} for m in members]})

    @app.route("/api/organizations/invite.png", methods=["GET"], endpoint="invite_qr")
    @owner_required
    @json_api
    def invite_qr():
        ident = current_identity()
        png = orgs.invite_qr_png(ident.organization_id)
        return send_file(io.BytesIO(png), mimetype="image/png")

    @app.route("/api/organizations/current", methods=["DELETE"], endpoint="delete_organization")
    @owner_required
    @json_api
    def delete_organization():
        ident = current_identity()
        organization_id = ident.organization_id
        orgs.delete(organization_id)
        container.time_log_service.purge_organization(organization_id)
        set_active_organization(None, None)
        return jsonify({"success": True})
