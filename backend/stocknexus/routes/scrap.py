# Overview: Flask API routes for scrap records; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g

from ..decorators import require_auth
from ..services import scrap_service


scrap_bp = Blueprint("scrap", __name__, url_prefix="/api/scrap")


@scrap_bp.get("")
@require_auth
def list_scrap_route():
    records = scrap_service.list_scrap_items(
        g.caller,
        department=request.args.get("department") or None,
    )
    return jsonify({"scrap_items": [r.to_dict() for r in records]}), 200


@scrap_bp.get("/<int:scrap_id>")
@require_auth
def get_scrap_route(scrap_id: int):
    record = scrap_service.get_scrap_item(g.caller, scrap_id)
    return jsonify({"scrap_item": record.to_dict()}), 200


@scrap_bp.post("")
@require_auth
def scrap_item_route():
    """
    Scrap units of an inventory item.

    Body: {"item_id": 1, "quantity": 2, "reason": "...", "notes": "..."}
    The item row is deleted when its quantity reaches zero.
    """
    data = request.get_json(silent=True) or {}
    item_id = data.get("item_id")
    if not isinstance(item_id, int) or isinstance(item_id, bool):
        return jsonify({"error": "item_id must be an integer"}), 400

    record = scrap_service.scrap_item(
        g.caller,
        item_id,
        quantity=data.get("quantity", 1),
        reason=data.get("reason"),
        notes=data.get("notes"),
    )
    return jsonify({"scrap_item": record.to_dict()}), 201
