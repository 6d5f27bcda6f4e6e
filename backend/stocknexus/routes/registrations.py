# Overview: Flask API routes for registration requests; public sign-up and admin review.

from flask import Blueprint, request, jsonify, g

from ..models import RegistrationRequest
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_registration,
)
from ..decorators import require_auth
from ..services import registration_service


registrations_bp = Blueprint("registrations", __name__, url_prefix="/api/registrations")

REGISTRATION_POLICY = ModelValidationPolicy(
    writable_fields={"email", "full_name", "department", "requested_role"},
    required_on_create={"email", "full_name", "department", "requested_role"},
)


@registrations_bp.post("")
def submit_registration_route():
    """
    Public sign-up. No authentication.

    409 when the email already has an account or a request.
    """
    payload = request.get_json(silent=True) or {}

    patch = validate_payload(
        model=RegistrationRequest,
        payload=payload,
        policy=REGISTRATION_POLICY,
        partial=False,
    )
    enforce_rules_registration(patch)

    request_row = registration_service.submit_request(patch)
    return jsonify({
        "request": request_row.to_dict(),
        "message": "Registration submitted; an administrator will review it",
    }), 201


@registrations_bp.get("")
@require_auth
def list_registrations_route():
    requests = registration_service.list_requests(
        g.caller,
        status=request.args.get("status") or None,
    )
    return jsonify({"requests": [r.to_dict() for r in requests]}), 200


@registrations_bp.get("/<int:request_id>")
@require_auth
def get_registration_route(request_id: int):
    request_row = registration_service.get_request(g.caller, request_id)
    return jsonify({"request": request_row.to_dict()}), 200


@registrations_bp.post("/<int:request_id>/approve")
@require_auth
def approve_registration_route(request_id: int):
    """
    Approve: creates the account and emails a temporary password.

    When the email cannot be sent the approval still stands and the
    response carries the temporary password for the admin to relay.
    """
    result = registration_service.approve_request(g.caller, request_id)
    return jsonify(result.to_dict()), 200


@registrations_bp.post("/<int:request_id>/reject")
@require_auth
def reject_registration_route(request_id: int):
    request_row = registration_service.reject_request(g.caller, request_id)
    return jsonify({"request": request_row.to_dict()}), 200


@registrations_bp.delete("/<int:request_id>")
@require_auth
def delete_registration_route(request_id: int):
    """Only rejected requests can be deleted."""
    registration_service.delete_request(g.caller, request_id)
    return jsonify({"deleted": True, "id": request_id}), 200
