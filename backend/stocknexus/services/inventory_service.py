# Overview: Service-layer operations for inventory; encapsulates business logic and database work.

"""
Inventory Item Invariants (authoritative)

Stock model:
- quantity is stored per row and is authoritative for that batch/serial.
- Several rows may share (name, department); the group's SUM(quantity) is
  what alerting works from.

Write path (create / update / delete / bulk create):
1. Authorization: insert predicate on the incoming values; update/delete
   predicates on the stored row. Updates are also checked against the
   post-image so a row cannot be moved into a department the caller does
   not own.
2. The row change is flushed.
3. reconcile_stock_alerts() runs for the row's group (and for the group it
   left, when name or department changed).
4. One commit. Any failure rolls the whole unit back.

Callers pass already-validated patches (validate_payload +
enforce_rules_inventory_item).
"""

from __future__ import annotations

from sqlalchemy import or_

from ..extensions import db
from ..models import InventoryItem
from ..policies import CallerContext, Operation
from ..validation import ValidationError
from .alert_service import reconcile_for_item, reconcile_stock_alerts
from .concurrency import lock_for_update, run_in_transaction
from .policy_service import get_readable, require_insert, require_row, require_values, scoped_query


TABLE = InventoryItem.__tablename__
NOT_FOUND = "Item not found"

STOCK_OUT = "out_of_stock"
STOCK_LOW = "low_stock"
STOCK_OK = "in_stock"


def _load_for_write(caller: CallerContext, item_id: int, operation: str) -> InventoryItem:
    item = lock_for_update(db.session.query(InventoryItem).filter_by(id=item_id)).first()
    return require_row(TABLE, operation, caller, item, not_found_message=NOT_FOUND)


def create_item(caller: CallerContext, patch: dict) -> InventoryItem:
    """Insert one item and reconcile its group."""
    require_insert(TABLE, caller, patch)

    def _op():
        item = InventoryItem(**patch, created_by=caller.user_id)
        db.session.add(item)
        db.session.flush()

        reconcile_for_item(item)

        db.session.commit()
        return item

    return run_in_transaction(_op)


def bulk_create_items(caller: CallerContext, rows: list[dict]) -> list[InventoryItem]:
    """
    Insert many items in one transaction (all-or-nothing).

    Every row is authorized before anything is written. Reconciliation runs
    after each row, in order, exactly as if the rows were inserted one by one.
    """
    if not rows:
        raise ValidationError("No items to create")

    for row in rows:
        require_insert(TABLE, caller, row)

    def _op():
        created = []
        for row in rows:
            item = InventoryItem(**row, created_by=caller.user_id)
            db.session.add(item)
            db.session.flush()
            reconcile_for_item(item)
            created.append(item)

        db.session.commit()
        return created

    return run_in_transaction(_op)


def update_item(caller: CallerContext, item_id: int, patch: dict) -> InventoryItem:
    """
    Apply a partial update and reconcile affected groups.

    The triggering row is the only inventory row written.
    """
    def _op():
        item = _load_for_write(caller, item_id, Operation.UPDATE)

        post_image = {
            "department": patch.get("department", item.department),
            "name": patch.get("name", item.name),
        }
        require_values(TABLE, Operation.UPDATE, caller, post_image)

        previous_group = (item.name, item.department)

        for key, value in patch.items():
            setattr(item, key, value)
        db.session.flush()

        reconcile_for_item(item)
        if (item.name, item.department) != previous_group:
            reconcile_stock_alerts(*previous_group)

        db.session.commit()
        return item

    return run_in_transaction(_op)


def delete_item(caller: CallerContext, item_id: int) -> None:
    """
    Delete one item and reconcile the group it belonged to.

    Alerts, scrap records and service records referencing the row keep
    existing with their reference set to NULL.
    """
    def _op():
        item = _load_for_write(caller, item_id, Operation.DELETE)
        group = (item.name, item.department)

        db.session.delete(item)
        db.session.flush()

        reconcile_stock_alerts(*group)

        db.session.commit()

    run_in_transaction(_op)


def get_item(caller: CallerContext, item_id: int) -> InventoryItem:
    return get_readable(InventoryItem, item_id, caller, not_found_message=NOT_FOUND)


def list_items(
    caller: CallerContext,
    *,
    department: str | None = None,
    search: str | None = None,
    category: str | None = None,
    status: str | None = None,
) -> list[InventoryItem]:
    """
    Items visible to the caller.

    search matches name, category, model or serial number (case-insensitive).
    """
    query = scoped_query(InventoryItem, caller)

    if department:
        query = query.filter(InventoryItem.department == department)
    if category:
        query = query.filter(InventoryItem.category == category)
    if status:
        query = query.filter(InventoryItem.status == status)

    term = (search or "").strip()
    if term:
        pattern = f"%{term.lower()}%"
        query = query.filter(or_(
            db.func.lower(InventoryItem.name).like(pattern),
            db.func.lower(InventoryItem.category).like(pattern),
            db.func.lower(InventoryItem.model).like(pattern),
            db.func.lower(InventoryItem.serial_number).like(pattern),
        ))

    return query.order_by(InventoryItem.name.asc(), InventoryItem.id.asc()).all()


def stock_status(total: int, threshold: int) -> str:
    if total == 0:
        return STOCK_OUT
    if total <= threshold:
        return STOCK_LOW
    return STOCK_OK


def summarize_by_name(caller: CallerContext, *, department: str | None = None) -> list[dict]:
    """
    Group visible rows by (name, department).

    The group's threshold is the per-item threshold of its oldest row.
    """
    groups: dict[tuple[str, str], dict] = {}

    for item in sorted(list_items(caller, department=department), key=lambda i: i.id):
        key = (item.name, item.department)
        group = groups.get(key)
        if group is None:
            group = {
                "name": item.name,
                "department": item.department,
                "category": item.category,
                "total_quantity": 0,
                "row_count": 0,
                "low_stock_threshold": item.effective_low_stock_threshold,
                "item_ids": [],
            }
            groups[key] = group
        group["total_quantity"] += item.quantity
        group["row_count"] += 1
        group["item_ids"].append(item.id)

    summary = []
    for key in sorted(groups):
        group = groups[key]
        group["stock_status"] = stock_status(group["total_quantity"], group["low_stock_threshold"])
        summary.append(group)
    return summary
