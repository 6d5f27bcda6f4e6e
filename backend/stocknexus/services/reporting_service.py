# Overview: Service-layer operations for reporting; dashboard counts, department overview, CSV exports.

from __future__ import annotations

import csv
import io

from sqlalchemy import func

from ..constants import DEFAULT_LOW_STOCK_THRESHOLD, Department, RegistrationStatus
from ..extensions import db
from ..models import Alert, InventoryItem, RegistrationRequest, User
from ..policies import CallerContext
from ..time_utils import to_utc_z, today_iso
from .policy_service import scoped_query


REPORT_ALL = "all"
REPORT_LOW_STOCK = "low-stock"
REPORT_TYPES = (REPORT_ALL, REPORT_LOW_STOCK)

INVENTORY_CSV_HEADERS = ["Name", "Category", "Model", "Serial Number", "Quantity", "Location", "Department", "Status"]
ALERT_CSV_HEADERS = ["Alert Type", "Message", "Severity", "Item", "Department", "Status", "Created At"]


class ReportError(Exception):
    """Raised when report generation fails."""
    pass


# Per-item threshold, NOT the fixed alerting threshold
LOW_STOCK_CONDITION = InventoryItem.quantity <= func.coalesce(
    InventoryItem.low_stock_threshold, DEFAULT_LOW_STOCK_THRESHOLD
)


def report_department(caller: CallerContext, requested: str | None) -> str | None:
    """
    Department a report is restricted to.

    Admins may pick any department (None = all). Everyone else is pinned to
    their own department regardless of what they asked for.
    """
    if caller.is_admin:
        if requested in (None, "", REPORT_ALL):
            return None
        if requested not in Department.ALL:
            raise ReportError(f"department must be one of: {', '.join(Department.ALL)}")
        return requested
    return caller.department


def dashboard_stats(caller: CallerContext) -> dict:
    department = None if caller.is_admin else caller.department

    items = scoped_query(InventoryItem, caller)
    alerts = scoped_query(Alert, caller).filter(Alert.is_resolved.is_(False))
    if department:
        items = items.filter(InventoryItem.department == department)

    total_quantity = items.with_entities(func.coalesce(func.sum(InventoryItem.quantity), 0)).scalar()

    stats = {
        "department": department,
        "total_items": items.count(),
        "total_quantity": int(total_quantity or 0),
        "low_stock_items": items.filter(LOW_STOCK_CONDITION).count(),
        "active_alerts": alerts.count(),
    }

    if caller.is_admin:
        stats["pending_registrations"] = db.session.query(RegistrationRequest).filter(
            RegistrationRequest.status == RegistrationStatus.PENDING
        ).count()
        stats["total_users"] = db.session.query(User).filter(User.is_active.is_(True)).count()

    return stats


def department_overview(caller: CallerContext) -> list[dict]:
    """Per-department totals; admins see every department, others their own."""
    departments = list(Department.ALL) if caller.is_admin else [caller.department]
    overview = {
        dept: {"department": dept, "total_items": 0, "total_quantity": 0, "low_stock_count": 0, "active_alerts": 0}
        for dept in departments
        if dept
    }

    rows = scoped_query(InventoryItem, caller).with_entities(
        InventoryItem.department,
        func.count(InventoryItem.id),
        func.coalesce(func.sum(InventoryItem.quantity), 0),
    ).group_by(InventoryItem.department).all()
    for dept, count, quantity in rows:
        if dept in overview:
            overview[dept]["total_items"] = int(count)
            overview[dept]["total_quantity"] = int(quantity or 0)

    low_rows = scoped_query(InventoryItem, caller).filter(LOW_STOCK_CONDITION).with_entities(
        InventoryItem.department, func.count(InventoryItem.id)
    ).group_by(InventoryItem.department).all()
    for dept, count in low_rows:
        if dept in overview:
            overview[dept]["low_stock_count"] = int(count)

    alert_rows = scoped_query(Alert, caller).filter(Alert.is_resolved.is_(False)).with_entities(
        Alert.department, func.count(Alert.id)
    ).group_by(Alert.department).all()
    for dept, count in alert_rows:
        if dept in overview:
            overview[dept]["active_alerts"] = int(count)

    return [overview[dept] for dept in departments if dept in overview]


def inventory_report(caller: CallerContext, *, report_type: str = REPORT_ALL, department: str | None = None) -> list[InventoryItem]:
    if report_type not in REPORT_TYPES:
        raise ReportError(f"report_type must be one of: {', '.join(REPORT_TYPES)}")

    query = scoped_query(InventoryItem, caller)
    scope = report_department(caller, department)
    if scope:
        query = query.filter(InventoryItem.department == scope)
    if report_type == REPORT_LOW_STOCK:
        query = query.filter(LOW_STOCK_CONDITION)

    return query.order_by(InventoryItem.department.asc(), InventoryItem.name.asc(), InventoryItem.id.asc()).all()


def alerts_report(caller: CallerContext, *, department: str | None = None, include_resolved: bool = True) -> list[Alert]:
    query = scoped_query(Alert, caller)
    scope = report_department(caller, department)
    if scope:
        query = query.filter(Alert.department == scope)
    if not include_resolved:
        query = query.filter(Alert.is_resolved.is_(False))
    return query.order_by(Alert.created_at.desc(), Alert.id.desc()).all()


def _write_csv(headers: list[str], rows) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(headers)
    writer.writerows(rows)
    return buffer.getvalue()


def inventory_report_csv(items: list[InventoryItem]) -> str:
    return _write_csv(INVENTORY_CSV_HEADERS, (
        [
            item.name,
            item.category or "",
            item.model or "",
            item.serial_number or "",
            item.quantity,
            item.location or "",
            item.department,
            item.status,
        ]
        for item in items
    ))


def alerts_report_csv(alerts: list[Alert]) -> str:
    return _write_csv(ALERT_CSV_HEADERS, (
        [
            alert.alert_type,
            alert.message,
            alert.severity,
            alert.item_name,
            alert.department,
            "Resolved" if alert.is_resolved else "Active",
            to_utc_z(alert.created_at),
        ]
        for alert in alerts
    ))


def report_filename(kind: str, department: str | None) -> str:
    return f"{kind}-report-{department or REPORT_ALL}-{today_iso()}.csv"
