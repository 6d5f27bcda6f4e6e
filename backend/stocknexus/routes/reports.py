# Overview: Flask API routes for reports; dashboard counts and CSV exports scoped by department.

from flask import Blueprint, Response, jsonify, request, g

from ..constants import Role
from ..decorators import require_auth, require_role
from ..services import reporting_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content,
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@reports_bp.get("/dashboard")
@require_auth
def dashboard_report():
    return jsonify(reporting_service.dashboard_stats(g.caller)), 200


@reports_bp.get("/departments")
@require_auth
def department_overview_report():
    return jsonify({"departments": reporting_service.department_overview(g.caller)}), 200


@reports_bp.get("/inventory")
@require_auth
@require_role(Role.ADMIN, Role.HOD)
def inventory_report():
    """
    Inventory report.

    Query params: report_type (all | low-stock), department (admins only;
    HODs always get their own), format (json | csv).
    """
    report_type = request.args.get("report_type", reporting_service.REPORT_ALL)
    department = request.args.get("department")
    fmt = request.args.get("format", "json").lower()

    items = reporting_service.inventory_report(g.caller, report_type=report_type, department=department)

    if fmt == "csv":
        scope = reporting_service.report_department(g.caller, department)
        return _csv_response(
            reporting_service.inventory_report_csv(items),
            reporting_service.report_filename("inventory", scope),
        )
    if fmt != "json":
        return jsonify({"error": "format must be json or csv"}), 400

    return jsonify({
        "report_type": report_type,
        "count": len(items),
        "items": [item.to_dict() for item in items],
    }), 200


@reports_bp.get("/alerts")
@require_auth
@require_role(Role.ADMIN, Role.HOD)
def alerts_report():
    department = request.args.get("department")
    include_resolved = request.args.get("include_resolved", "true").lower() == "true"
    fmt = request.args.get("format", "json").lower()

    alerts = reporting_service.alerts_report(g.caller, department=department, include_resolved=include_resolved)

    if fmt == "csv":
        scope = reporting_service.report_department(g.caller, department)
        return _csv_response(
            reporting_service.alerts_report_csv(alerts),
            reporting_service.report_filename("alerts", scope),
        )
    if fmt != "json":
        return jsonify({"error": "format must be json or csv"}), 400

    return jsonify({"count": len(alerts), "alerts": [a.to_dict() for a in alerts]}), 200
