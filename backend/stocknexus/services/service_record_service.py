# Overview: Service-layer operations for maintenance/service records.

"""
Service Records

A service record logs maintenance, repair, calibration or installation work
on a piece of equipment.

Scopes:
- single: equipment_id names the serviced InventoryItem; the record takes
  that item's department.
- bulk: a whole category in a department was serviced. The first item of
  that category (lowest id) becomes the equipment and remarks are prefixed
  with "[BULK SERVICE - <category>]".

Bill photos go to the service-bills bucket. If the database write fails the
stored file is removed again.
"""

from __future__ import annotations

from ..constants import Bucket
from ..extensions import db
from ..models import InventoryItem, Service
from ..policies import CallerContext, Operation
from ..validation import ValidationError
from .concurrency import run_in_transaction
from .policy_service import get_readable, require_insert, require_row, scoped_query
from .storage_service import remove_object, upload_object


TABLE = Service.__tablename__
NOT_FOUND = "Service record not found"

SCOPE_SINGLE = "single"
SCOPE_BULK = "bulk"
SCOPES = (SCOPE_SINGLE, SCOPE_BULK)


def bulk_remarks(category: str, remarks: str | None) -> str:
    prefix = f"[BULK SERVICE - {category}]"
    remarks = (remarks or "").strip()
    return f"{prefix} {remarks}" if remarks else prefix


def _first_item_of_category(caller: CallerContext, department: str, category: str) -> InventoryItem:
    item = scoped_query(InventoryItem, caller).filter(
        InventoryItem.department == department,
        InventoryItem.category == category,
    ).order_by(InventoryItem.id.asc()).first()
    if item is None:
        raise ValidationError(f"No items found in category {category} for {department}")
    return item


def _store_bill(caller: CallerContext, bill) -> str | None:
    if bill is None or not getattr(bill, "filename", None):
        return None
    return upload_object(caller, Bucket.SERVICE_BILLS, bill)


def create_service(
    caller: CallerContext,
    patch: dict,
    *,
    scope: str = SCOPE_SINGLE,
    category: str | None = None,
    bill=None,
) -> Service:
    """
    Create a service record.

    patch is a validated Service payload. For scope=single it must carry
    equipment_id; for scope=bulk, department plus the category argument.
    """
    if scope not in SCOPES:
        raise ValidationError(f"service_scope must be one of: {', '.join(SCOPES)}")

    values = dict(patch)

    if scope == SCOPE_BULK:
        category = (category or "").strip()
        if not category:
            raise ValidationError("category is required for bulk services")
        department = values.get("department") or caller.department
        if not department:
            raise ValidationError("department is required for bulk services")
        item = _first_item_of_category(caller, department, category)
        values["department"] = department
        values["equipment_id"] = item.id
        values["remarks"] = bulk_remarks(category, values.get("remarks"))
    else:
        equipment_id = values.get("equipment_id")
        if equipment_id is None:
            raise ValidationError("equipment_id is required")
        item = get_readable(InventoryItem, equipment_id, caller, not_found_message="Equipment not found")
        values["department"] = item.department

    values["created_by"] = caller.user_id
    require_insert(TABLE, caller, values)

    bill_path = _store_bill(caller, bill)
    if bill_path:
        values["bill_photo_url"] = bill_path

    def _op():
        record = Service(**values)
        db.session.add(record)
        db.session.commit()
        return record

    try:
        return run_in_transaction(_op)
    except Exception:
        remove_object(Bucket.SERVICE_BILLS, bill_path)
        raise


def update_service(caller: CallerContext, service_id: int, patch: dict, *, bill=None) -> Service:
    record = db.session.get(Service, service_id)
    require_row(TABLE, Operation.UPDATE, caller, record, not_found_message=NOT_FOUND)

    bill_path = _store_bill(caller, bill)
    previous_bill = record.bill_photo_url

    def _op():
        for key, value in patch.items():
            setattr(record, key, value)
        if bill_path:
            record.bill_photo_url = bill_path
        db.session.commit()
        return record

    try:
        updated = run_in_transaction(_op)
    except Exception:
        remove_object(Bucket.SERVICE_BILLS, bill_path)
        raise

    # The replaced bill is unreachable once the new path is committed
    if bill_path and previous_bill != bill_path:
        remove_object(Bucket.SERVICE_BILLS, previous_bill)
    return updated


def delete_service(caller: CallerContext, service_id: int) -> None:
    record = db.session.get(Service, service_id)
    require_row(TABLE, Operation.DELETE, caller, record, not_found_message=NOT_FOUND)

    def _op():
        db.session.delete(record)
        db.session.commit()

    run_in_transaction(_op)


def get_service(caller: CallerContext, service_id: int) -> Service:
    return get_readable(Service, service_id, caller, not_found_message=NOT_FOUND)


def list_services(
    caller: CallerContext,
    *,
    department: str | None = None,
    equipment_id: int | None = None,
    status: str | None = None,
) -> list[Service]:
    query = scoped_query(Service, caller)
    if department:
        query = query.filter(Service.department == department)
    if equipment_id is not None:
        query = query.filter(Service.equipment_id == equipment_id)
    if status:
        query = query.filter(Service.status == status)
    return query.order_by(Service.service_date.desc(), Service.id.desc()).all()
