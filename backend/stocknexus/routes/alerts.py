# Overview: Flask API routes for stock alerts; read-only for users, rebuilt by reconciliation.

from flask import Blueprint, request, jsonify, g

from ..constants import Role
from ..decorators import require_auth, require_role
from ..services import alert_service


alerts_bp = Blueprint("alerts", __name__, url_prefix="/api/alerts")


@alerts_bp.get("")
@require_auth
def list_alerts_route():
    """
    Alerts visible to the caller (admins: all, others: own department).

    Query params: include_resolved (default false), department.
    """
    include_resolved = request.args.get("include_resolved", "false").lower() == "true"
    alerts = alert_service.list_alerts(
        g.caller,
        include_resolved=include_resolved,
        department=request.args.get("department") or None,
    )
    return jsonify({"alerts": [a.to_dict() for a in alerts]}), 200


@alerts_bp.post("/reconcile")
@require_auth
@require_role(Role.ADMIN)
def reconcile_alerts_route():
    """Recompute alert state for every (name, department) group."""
    results = alert_service.reconcile_all()
    changed = [r for r in results if r.action != alert_service.ACTION_NONE]
    return jsonify({
        "groups": len(results),
        "changed": [r.to_dict() for r in changed],
    }), 200
