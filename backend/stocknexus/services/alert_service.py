# Overview: Service-layer operations for alerts; reconciles low-stock alerts against aggregate stock.

"""
Alert Reconciliation Engine

Stock alerts are derived state. After any write that changes stock for a
(name, department) group, the group's aggregate quantity is recomputed and
the unresolved alerts for that group are brought in line with it.

Decision table (fixed threshold, ALERT_THRESHOLD):
- total > 10                        -> resolve every unresolved alert
- total == 0, no unresolved alert   -> create out_of_stock / high
  (only while the group still has rows)
- 0 < total <= 10, no unresolved    -> create low_stock / medium
- unresolved alert, 0 <= total <= 10 -> nothing

The per-item low_stock_threshold is NOT consulted here; it only feeds
dashboard and report counts (reporting_service.py).

Transaction semantics:
- reconcile_stock_alerts() never commits. It runs inside the inventory
  write's transaction, so the stock change and its alert side effects
  commit together or roll back together.
- The group's rows are locked before the sum so concurrent writers to the
  same group serialize (no-op on SQLite).

INVARIANT: at most one unresolved alert per (item_name, department,
alert_type). Because "create" only happens when NO unresolved alert exists,
there is in fact at most one unresolved alert per group.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from flask import current_app
from sqlalchemy import func

from ..constants import AlertSeverity, AlertType
from ..extensions import db
from ..models import Alert, InventoryItem
from ..policies import CallerContext
from ..time_utils import utcnow
from .concurrency import lock_for_update, run_with_retry
from .policy_service import scoped_query


ALERT_THRESHOLD = 10

ACTION_CREATED = "created"
ACTION_RESOLVED = "resolved"
ACTION_NONE = "none"


@dataclass
class ReconciliationResult:
    item_name: str
    department: str
    total: int
    action: str
    alerts: list[Alert] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "item_name": self.item_name,
            "department": self.department,
            "total": self.total,
            "action": self.action,
            "alerts": [a.to_dict() for a in self.alerts],
        }


def out_of_stock_message(name: str, department: str) -> str:
    return f'Item "{name}" in {department} is out of stock (Total: 0)'


def low_stock_message(name: str, department: str, total: int) -> str:
    return f'Item "{name}" in {department} is running low (Total: {total})'


def compute_total_quantity(name: str, department: str, *, lock: bool = True) -> int:
    """
    SUM(quantity) over every row with exactly this name and department.

    No rows -> 0. Pending session changes are flushed first (autoflush), so
    the sum includes the write being reconciled.
    """
    if lock:
        lock_for_update(
            db.session.query(InventoryItem.id).filter(
                InventoryItem.name == name,
                InventoryItem.department == department,
            )
        ).all()

    total = db.session.query(
        func.coalesce(func.sum(InventoryItem.quantity), 0)
    ).filter(
        InventoryItem.name == name,
        InventoryItem.department == department,
    ).scalar()

    return int(total or 0)


def find_unresolved_alerts(name: str, department: str) -> list[Alert]:
    return db.session.query(Alert).filter(
        Alert.item_name == name,
        Alert.department == department,
        Alert.alert_type.in_(AlertType.ALL),
        Alert.is_resolved.is_(False),
    ).order_by(Alert.id.asc()).all()


def _surviving_item_id(name: str, department: str) -> int | None:
    row = db.session.query(InventoryItem.id).filter(
        InventoryItem.name == name,
        InventoryItem.department == department,
    ).order_by(InventoryItem.id.asc()).first()
    return row[0] if row else None


def reconcile_stock_alerts(name: str, department: str, item_id: int | None = None) -> ReconciliationResult:
    """
    Bring the unresolved alerts of one (name, department) group in line with
    its aggregate quantity.

    item_id is the row whose write triggered reconciliation; new alerts point
    at it. When it is None (the row was deleted) a surviving row of the group
    is used. A group left with no rows gets no new alert; alerts it already
    holds stay as they are.

    The triggering row itself is never modified. Does not commit.
    """
    total = compute_total_quantity(name, department)
    unresolved = find_unresolved_alerts(name, department)

    if total > ALERT_THRESHOLD:
        if not unresolved:
            return ReconciliationResult(name, department, total, ACTION_NONE)

        now = utcnow()
        for alert in unresolved:
            alert.is_resolved = True
            alert.resolved_at = now
        db.session.flush()

        current_app.logger.info(
            "Resolved %d stock alert(s) for %r in %s (total=%d)",
            len(unresolved), name, department, total,
        )
        return ReconciliationResult(name, department, total, ACTION_RESOLVED, unresolved)

    if unresolved:
        return ReconciliationResult(name, department, total, ACTION_NONE)

    if item_id is None:
        item_id = _surviving_item_id(name, department)
        if item_id is None:
            # Group emptied by a delete; nothing left to alert on.
            return ReconciliationResult(name, department, total, ACTION_NONE)

    if total == 0:
        alert = Alert(
            item_id=item_id,
            item_name=name,
            department=department,
            alert_type=AlertType.OUT_OF_STOCK,
            message=out_of_stock_message(name, department),
            severity=AlertSeverity.HIGH,
            is_resolved=False,
        )
    else:
        alert = Alert(
            item_id=item_id,
            item_name=name,
            department=department,
            alert_type=AlertType.LOW_STOCK,
            message=low_stock_message(name, department, total),
            severity=AlertSeverity.MEDIUM,
            is_resolved=False,
        )

    db.session.add(alert)
    db.session.flush()

    current_app.logger.info(
        "Created %s alert for %r in %s (total=%d)",
        alert.alert_type, name, department, total,
    )
    return ReconciliationResult(name, department, total, ACTION_CREATED, [alert])


def reconcile_for_item(item: InventoryItem) -> ReconciliationResult:
    return reconcile_stock_alerts(item.name, item.department, item.id)


def reconcile_all() -> list[ReconciliationResult]:
    """
    Reconcile every known group and commit.

    Groups come from current inventory rows plus groups that still hold
    unresolved alerts after their last row was deleted.
    """
    def _op():
        groups = set(
            db.session.query(InventoryItem.name, InventoryItem.department).distinct().all()
        )
        groups.update(
            db.session.query(Alert.item_name, Alert.department)
            .filter(Alert.is_resolved.is_(False))
            .distinct()
            .all()
        )

        results = [
            reconcile_stock_alerts(name, department)
            for name, department in sorted(groups)
        ]
        db.session.commit()
        return results

    return run_with_retry(_op)


def list_alerts(
    caller: CallerContext,
    *,
    include_resolved: bool = False,
    department: str | None = None,
    limit: int = 200,
) -> list[Alert]:
    """Alerts visible to the caller, newest first."""
    query = scoped_query(Alert, caller)
    if not include_resolved:
        query = query.filter(Alert.is_resolved.is_(False))
    if department:
        query = query.filter(Alert.department == department)
    return query.order_by(Alert.created_at.desc(), Alert.id.desc()).limit(limit).all()
