from __future__ import annotations

import io
from datetime import date
from typing import Optional

from flask import Flask, jsonify, request, send_file

from ..common.datetime_utils import format_date, format_timestamp, now_local, parse_iso_date
from ..common.validators import json_object, optional_text
from ..common.web import Identity, current_identity, error, json_api, organization_required
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import AuthorizationError
from ..export.writers import FORMATS, write_records
from .operations import ClearScope, parse_manual_times
from .projections import entry_status, format_duration


def _entry_json(e) -> dict:
    return {
        "id": e.entry_id,
        "name": e.subject_name,
        "date": format_date(e.logical_date),
        "clockIn": format_timestamp(e.clock_in),
        "clockOut": format_timestamp(e.clock_out) if e.clock_out else None,
        "duration": format_duration(e),
        "status": entry_status(e).value,
        "note": e.note or "",
    }


def register(app: Flask, container: Container) -> None:
    svc = container.time_log_service

    def _identity() -> Identity:
        # organization_required has already checked the session.
        return current_identity()

    def _requested_date() -> date:
        value = request.args.get("date") or json_object(request.get_json(silent=True)).get("date")
        return parse_iso_date(value) if value else now_local().date()

    def _resolve_subject(ident: Identity, member_uid: Optional[str]) -> str:
        # Owners pick a member by uid; the name comes from the directory.
        if not member_uid or member_uid == ident.uid:
            return ident.display_name
        if ident.role != Role.OWNER:
            raise AuthorizationError("Members can only record their own entries.")
        return container.organization_service.member_name(ident.organization_id, member_uid)

    @app.route("/api/status", methods=["GET"], endpoint="clock_status")
    @organization_required
    @json_api
    def clock_status():
        ident = _identity()
        today = now_local().date()
        return jsonify(
            {
                "name": ident.display_name,
                "organizationId": ident.organization_id,
                "role": ident.role.value,
                "date": format_date(today),
                "clockedIn": svc.is_open(ident.organization_id, ident.display_name, today=today),
            }
        )

    @app.route("/api/clock-in", methods=["POST"], endpoint="clock_in")
    @organization_required
    @json_api
    def clock_in():
        ident = _identity()
        entry = svc.clock_in(ident.organization_id, ident.display_name)
        return jsonify({"success": True, "message": "Clocked in.", "entry": _entry_json(entry)}), 201

    @app.route("/api/clock-out", methods=["POST"], endpoint="clock_out")
    @organization_required
    @json_api
    def clock_out():
        ident = _identity()
        entry = svc.clock_out(ident.organization_id, ident.display_name)
        return jsonify({"success": True, "message": "Clocked out.", "entry": _entry_json(entry)})

    @app.route("/api/punch", methods=["POST"], endpoint="punch")
    @organization_required
    @json_api
    def punch():
        """Clock out if a session is open today, clock in otherwise."""
        ident = _identity()
        now = now_local()
        if svc.is_open(ident.organization_id, ident.display_name, today=now.date()):
            entry = svc.clock_out(ident.organization_id, ident.display_name, now=now)
            action = "clock-out"
        else:
            entry = svc.clock_in(ident.organization_id, ident.display_name, now=now)
            action = "clock-in"
        return jsonify({"success": True, "action": action, "entry": _entry_json(entry)})

    @app.route("/api/entries", methods=["POST"], endpoint="add_entry")
    @organization_required
    @json_api
    def add_entry():
        ident = _identity()
        data = json_object(request.get_json(silent=True))

        logical_date = parse_iso_date(data.get("date", ""))
        start, end = parse_manual_times(logical_date, data.get("clockIn", ""), data.get("clockOut"))
        subject = _resolve_subject(ident, optional_text(data.get("memberUid"), "Member"))

        entry = svc.add_manual_entry(ident.organization_id, subject, logical_date, start, end, data.get("note"))
        return jsonify({"success": True, "message": "Entry added.", "entry": _entry_json(entry)}), 201

    @app.route("/api/entries", methods=["GET"], endpoint="list_entries")
    @organization_required
    @json_api
    def list_entries():
        ident = _identity()
        logical_date = _requested_date()
        entries = svc.entries_for_date(ident.organization_id, logical_date, ident.role, ident.display_name)
        return jsonify(
            {
                "date": format_date(logical_date),
                "count": len(entries),
                "entries": [_entry_json(e) for e in entries],
            }
        )

    @app.route("/api/entries", methods=["DELETE"], endpoint="clear_entries")
    @organization_required
    @json_api
    def clear_entries():
        ident = _identity()
        logical_date = _requested_date()
        if ident.role == Role.OWNER:
            scope = ClearScope.for_date(logical_date)
        else:
            scope = ClearScope.own_for_date(logical_date, ident.display_name)
        removed = svc.clear_entries(ident.organization_id, scope)
        return jsonify({"success": True, "removed": removed, "message": f"Cleared {removed} entries."})

    @app.route("/api/subjects", methods=["GET"], endpoint="list_subjects")
    @organization_required
    @json_api
    def list_subjects():
        ident = _identity()
        entries = svc.entries_for_date(ident.organization_id, _requested_date(), ident.role, ident.display_name)
        return jsonify({"subjects": svc.distinct_subjects(entries)})

    @app.route("/api/export", methods=["GET"], endpoint="export_entries")
    @organization_required
    @json_api
    def export_entries():
        ident = _identity()
        fmt = FORMATS.get(request.args.get("format", "xlsx"))
        if fmt is None:
            return error("Unsupported export format.", 400)

        bundle = svc.export_for_date(
            ident.organization_id,
            _requested_date(),
            ident.role,
            ident.display_name,
            subject_name=request.args.get("subject") or None,
            extension=fmt.extension,
        )
        if bundle.is_empty:
            return error("There are no time entries to export.", 404)

        return send_file(
            io.BytesIO(write_records(bundle.records, fmt.extension)),
            mimetype=fmt.mimetype,
            as_attachment=True,
            download_name=bundle.filename,
        )
