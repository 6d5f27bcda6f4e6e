# Overview: Flask API routes for service (maintenance) records; JSON or multipart with a bill photo.

from flask import Blueprint, request, jsonify, g

from ..models import Service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_service,
)
from ..decorators import require_auth
from ..services import service_record_service


services_bp = Blueprint("services", __name__, url_prefix="/api/services")

SERVICE_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={
        "equipment_id",
        "department",
        "service_type",
        "nature_of_service",
        "service_date",
        "status",
        "technician_vendor_name",
        "cost",
        "remarks",
    },
    required_on_create={"service_type", "nature_of_service", "service_date", "technician_vendor_name"},
)

SERVICE_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={
        "service_type",
        "nature_of_service",
        "service_date",
        "status",
        "technician_vendor_name",
        "cost",
        "remarks",
    },
)

# Form fields that steer creation but are not Service columns
NON_COLUMN_FIELDS = ("service_scope", "category")


def _read_payload() -> dict:
    """JSON body, or form fields for multipart uploads (blank fields dropped)."""
    if request.is_json:
        return dict(request.get_json(silent=True) or {})
    return {k: v for k, v in request.form.items() if v != ""}


@services_bp.get("")
@require_auth
def list_services_route():
    records = service_record_service.list_services(
        g.caller,
        department=request.args.get("department") or None,
        equipment_id=request.args.get("equipment_id", type=int),
        status=request.args.get("status") or None,
    )
    return jsonify({"services": [r.to_dict() for r in records]}), 200


@services_bp.get("/<int:service_id>")
@require_auth
def get_service_route(service_id: int):
    record = service_record_service.get_service(g.caller, service_id)
    return jsonify({"service": record.to_dict()}), 200


@services_bp.post("")
@require_auth
def create_service_route():
    """
    Log a service.

    service_scope=single (default) needs equipment_id; service_scope=bulk
    needs category (and department for admins). Optional multipart file
    "bill_photo" is stored in the service-bills bucket.
    """
    payload = _read_payload()
    scope = payload.pop("service_scope", service_record_service.SCOPE_SINGLE)
    category = payload.pop("category", None)

    patch = validate_payload(
        model=Service,
        payload=payload,
        policy=SERVICE_CREATE_POLICY,
        partial=False,
    )
    enforce_rules_service(patch)

    record = service_record_service.create_service(
        g.caller,
        patch,
        scope=scope,
        category=category,
        bill=request.files.get("bill_photo"),
    )
    return jsonify({"service": record.to_dict()}), 201


@services_bp.route("/<int:service_id>", methods=["PATCH", "PUT"])
@require_auth
def update_service_route(service_id: int):
    payload = _read_payload()
    for key in NON_COLUMN_FIELDS:
        payload.pop(key, None)

    patch = validate_payload(
        model=Service,
        payload=payload,
        policy=SERVICE_UPDATE_POLICY,
        partial=True,
    )
    enforce_rules_service(patch)

    bill = request.files.get("bill_photo")
    if not patch and bill is None:
        return jsonify({"error": "No fields to update"}), 400

    record = service_record_service.update_service(g.caller, service_id, patch, bill=bill)
    return jsonify({"service": record.to_dict()}), 200


@services_bp.delete("/<int:service_id>")
@require_auth
def delete_service_route(service_id: int):
    service_record_service.delete_service(g.caller, service_id)
    return jsonify({"deleted": True, "id": service_id}), 200
