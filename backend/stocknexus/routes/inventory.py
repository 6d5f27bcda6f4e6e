# backend/stocknexus/routes/inventory.py
"""
Inventory item routes.

SECURITY: All routes require authentication. Row-level rules come from the
predicate set:
- any caller with a role can list/read items
- admins write everywhere; HODs only inside their own department
- a row the caller may not write is reported as 404, never 403

Every create/update/delete reconciles stock alerts for the affected
(name, department) group in the same transaction.
"""
from flask import Blueprint, request, jsonify, g

from ..models import InventoryItem
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_inventory_item,
)
from ..decorators import require_auth, require_role
from ..constants import Role
from ..services import inventory_service, import_service


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")

ITEM_FIELDS = {
    "name",
    "category",
    "model",
    "serial_number",
    "quantity",
    "low_stock_threshold",
    "department",
    "location",
    "cabin_number",
    "specifications",
    "status",
}

ITEM_CREATE_POLICY = ModelValidationPolicy(
    writable_fields=ITEM_FIELDS,
    required_on_create={"name", "department", "quantity"},
)

ITEM_UPDATE_POLICY = ModelValidationPolicy(writable_fields=ITEM_FIELDS)


@inventory_bp.get("")
@require_auth
def list_items_route():
    """
    List items.

    Query params: department, search (name/category/model/serial), category, status.
    """
    items = inventory_service.list_items(
        g.caller,
        department=request.args.get("department") or None,
        search=request.args.get("search"),
        category=request.args.get("category") or None,
        status=request.args.get("status") or None,
    )
    return jsonify({"items": [item.to_dict() for item in items]}), 200


@inventory_bp.get("/summary")
@require_auth
def summary_route():
    """Items grouped by (name, department) with totals and stock status."""
    groups = inventory_service.summarize_by_name(
        g.caller,
        department=request.args.get("department") or None,
    )
    return jsonify({"groups": groups}), 200


@inventory_bp.post("")
@require_auth
def create_item_route():
    payload = request.get_json(silent=True) or {}

    patch = validate_payload(
        model=InventoryItem,
        payload=payload,
        policy=ITEM_CREATE_POLICY,
        partial=False,
    )
    enforce_rules_inventory_item(patch)

    item = inventory_service.create_item(g.caller, patch)
    return jsonify({"item": item.to_dict()}), 201


@inventory_bp.post("/import")
@require_auth
@require_role(Role.ADMIN, Role.HOD)
def import_items_route():
    """
    Bulk import from a CSV or Excel upload (multipart field "file").

    All rows are created or none are.
    """
    if "file" not in request.files:
        return jsonify({"error": "file is required"}), 400

    upload = request.files["file"]
    result = import_service.import_items(g.caller, upload.filename or "", upload.stream)
    return jsonify(result), 201


@inventory_bp.get("/<int:item_id>")
@require_auth
def get_item_route(item_id: int):
    item = inventory_service.get_item(g.caller, item_id)
    return jsonify({"item": item.to_dict()}), 200


@inventory_bp.route("/<int:item_id>", methods=["PATCH", "PUT"])
@require_auth
def update_item_route(item_id: int):
    payload = request.get_json(silent=True) or {}

    patch = validate_payload(
        model=InventoryItem,
        payload=payload,
        policy=ITEM_UPDATE_POLICY,
        partial=True,
    )
    enforce_rules_inventory_item(patch)

    if not patch:
        return jsonify({"error": "No fields to update"}), 400

    item = inventory_service.update_item(g.caller, item_id, patch)
    return jsonify({"item": item.to_dict()}), 200


@inventory_bp.delete("/<int:item_id>")
@require_auth
def delete_item_route(item_id: int):
    inventory_service.delete_item(g.caller, item_id)
    return jsonify({"deleted": True, "id": item_id}), 200
