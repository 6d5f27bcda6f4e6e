# Overview: Flask API routes for grievances; submission by HOD/staff, review by admins.

from flask import Blueprint, request, jsonify, g

from ..models import Grievance
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_grievance,
)
from ..decorators import require_auth
from ..services import grievance_service


grievances_bp = Blueprint("grievances", __name__, url_prefix="/api/grievances")

GRIEVANCE_SUBMIT_POLICY = ModelValidationPolicy(
    writable_fields={"title", "description", "priority"},
    required_on_create={"title", "description"},
)

GRIEVANCE_REVIEW_POLICY = ModelValidationPolicy(
    writable_fields={"status", "priority", "resolution_notes"},
)


@grievances_bp.get("")
@require_auth
def list_grievances_route():
    """Own grievances for HOD/staff; every grievance for admins."""
    grievances = grievance_service.list_grievances(
        g.caller,
        status=request.args.get("status") or None,
    )
    return jsonify({"grievances": [gr.to_dict() for gr in grievances]}), 200


@grievances_bp.get("/<int:grievance_id>")
@require_auth
def get_grievance_route(grievance_id: int):
    grievance = grievance_service.get_grievance(g.caller, grievance_id)
    return jsonify({"grievance": grievance.to_dict()}), 200


@grievances_bp.post("")
@require_auth
def submit_grievance_route():
    """
    Submit a grievance.

    JSON body, or multipart form with an optional "attachment" file.
    """
    if request.is_json:
        payload = dict(request.get_json(silent=True) or {})
    else:
        payload = {k: v for k, v in request.form.items() if v != ""}

    patch = validate_payload(
        model=Grievance,
        payload=payload,
        policy=GRIEVANCE_SUBMIT_POLICY,
        partial=False,
    )
    enforce_rules_grievance(patch)

    grievance = grievance_service.submit_grievance(
        g.caller,
        patch,
        attachment=request.files.get("attachment"),
    )
    return jsonify({"grievance": grievance.to_dict()}), 201


@grievances_bp.patch("/<int:grievance_id>")
@require_auth
def update_grievance_route(grievance_id: int):
    payload = request.get_json(silent=True) or {}

    patch = validate_payload(
        model=Grievance,
        payload=payload,
        policy=GRIEVANCE_REVIEW_POLICY,
        partial=True,
    )
    enforce_rules_grievance(patch)

    if not patch:
        return jsonify({"error": "No fields to update"}), 400

    grievance = grievance_service.update_grievance(g.caller, grievance_id, patch)
    return jsonify({"grievance": grievance.to_dict()}), 200
