# Overview: Service-layer operations for scrap; disposes stock and keeps a snapshot of what was disposed.

"""
Scrap Flow

scrap_item() does three things in ONE transaction:
1. Insert a ScrapItem snapshot (name, model, serial, department copied)
2. Decrement the item's quantity, or delete the row when it reaches zero
3. Reconcile the group's stock alerts

Authorization: the caller must be allowed to insert the scrap record AND to
update (or delete) the inventory row. A row the caller cannot touch is
reported as not found.
"""

from __future__ import annotations

from ..extensions import db
from ..models import InventoryItem, ScrapItem
from ..policies import CallerContext, Operation
from ..validation import MAX_QUANTITY, ValidationError
from ..time_utils import utcnow
from .alert_service import reconcile_for_item, reconcile_stock_alerts
from .concurrency import lock_for_update, run_in_transaction
from .policy_service import get_readable, require_insert, require_row, scoped_query


ITEM_NOT_FOUND = "Item not found"


def _parse_quantity(value) -> int:
    if isinstance(value, bool):
        raise ValidationError("quantity must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise ValidationError("quantity must be an integer")


def scrap_item(
    caller: CallerContext,
    item_id: int,
    *,
    quantity=1,
    reason: str | None = None,
    notes: str | None = None,
) -> ScrapItem:
    """
    Scrap `quantity` units of an inventory row.

    Raises ValidationError when quantity is outside 1..item.quantity or the
    reason is blank.
    """
    qty = _parse_quantity(quantity)
    reason = (reason or "").strip()
    notes = (notes or "").strip() or None

    if not reason:
        raise ValidationError("reason is required")
    if qty < 1 or qty > MAX_QUANTITY:
        raise ValidationError("quantity must be at least 1")

    def _op():
        item = lock_for_update(db.session.query(InventoryItem).filter_by(id=item_id)).first()
        item = require_row(
            InventoryItem.__tablename__, Operation.UPDATE, caller, item,
            not_found_message=ITEM_NOT_FOUND,
        )

        if qty > item.quantity:
            raise ValidationError(f"Cannot scrap {qty}; only {item.quantity} in stock")

        snapshot = {
            "item_id": item.id,
            "item_name": item.name,
            "item_model": item.model,
            "item_serial_number": item.serial_number,
            "department": item.department,
            "quantity": qty,
            "reason": reason,
            "notes": notes,
            "scrapped_by": caller.user_id,
        }
        require_insert(ScrapItem.__tablename__, caller, snapshot)

        remaining = item.quantity - qty
        if remaining == 0:
            require_row(
                InventoryItem.__tablename__, Operation.DELETE, caller, item,
                not_found_message=ITEM_NOT_FOUND,
            )

        record = ScrapItem(**snapshot, scrapped_at=utcnow())
        db.session.add(record)

        if remaining == 0:
            group = (item.name, item.department)
            db.session.delete(item)
            db.session.flush()
            reconcile_stock_alerts(*group)
        else:
            item.quantity = remaining
            db.session.flush()
            reconcile_for_item(item)

        db.session.commit()
        return record

    return run_in_transaction(_op)


def list_scrap_items(caller: CallerContext, *, department: str | None = None) -> list[ScrapItem]:
    """Scrap records visible to the caller, most recent first."""
    query = scoped_query(ScrapItem, caller)
    if department:
        query = query.filter(ScrapItem.department == department)
    return query.order_by(ScrapItem.scrapped_at.desc(), ScrapItem.id.desc()).all()


def get_scrap_item(caller: CallerContext, scrap_id: int) -> ScrapItem:
    return get_readable(ScrapItem, scrap_id, caller, not_found_message="Scrap record not found")
