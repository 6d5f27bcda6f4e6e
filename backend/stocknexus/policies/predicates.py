# Overview: Row-level authorization predicates, one per (table, operation).
#
# Each predicate is a pure function (caller, row) -> bool. "row" is either a
# model instance (existing row) or a dict of incoming values (insert). None of
# them touch the database.

from __future__ import annotations

from typing import Any

from ..constants import Bucket, RegistrationStatus, Role
from .caller import CallerContext


def field(row: Any, name: str) -> Any:
    """Read a column value from a model instance or a plain dict."""
    if row is None:
        return None
    if isinstance(row, dict):
        return row.get(name)
    return getattr(row, name, None)


def _admin_or_department_hod(caller: CallerContext | None, row: Any) -> bool:
    if caller is None:
        return False
    if caller.is_admin:
        return True
    return caller.is_hod and caller.in_department(field(row, "department"))


def _admin_or_same_department(caller: CallerContext | None, row: Any) -> bool:
    if caller is None:
        return False
    if caller.is_admin:
        return True
    return caller.in_department(field(row, "department"))


def deny(caller: CallerContext | None, row: Any) -> bool:
    return False


# -- INVENTORY --

def can_read_inventory(caller: CallerContext | None, row: Any) -> bool:
    return caller is not None and caller.has_role


def can_insert_inventory(caller: CallerContext | None, row: Any) -> bool:
    return _admin_or_department_hod(caller, row)


def can_update_inventory(caller: CallerContext | None, row: Any) -> bool:
    return _admin_or_department_hod(caller, row)


def can_delete_inventory(caller: CallerContext | None, row: Any) -> bool:
    return _admin_or_department_hod(caller, row)


# -- SCRAP --

can_read_scrap = _admin_or_department_hod
can_insert_scrap = _admin_or_department_hod
can_update_scrap = _admin_or_department_hod
can_delete_scrap = _admin_or_department_hod


# -- ALERTS --

def can_read_alert(caller: CallerContext | None, row: Any) -> bool:
    return _admin_or_same_department(caller, row)


# -- GRIEVANCES --

def can_insert_grievance(caller: CallerContext | None, row: Any) -> bool:
    if caller is None or not caller.has_role:
        return False
    if field(row, "created_by") != caller.user_id:
        return False
    return caller.role in (Role.HOD, Role.STAFF)


def can_read_grievance(caller: CallerContext | None, row: Any) -> bool:
    if caller is None or not caller.has_role:
        return False
    return caller.is_admin or field(row, "created_by") == caller.user_id


def can_update_grievance(caller: CallerContext | None, row: Any) -> bool:
    return caller is not None and caller.is_admin


# -- REGISTRATION REQUESTS --

def can_insert_registration_request(caller: CallerContext | None, row: Any) -> bool:
    # Public sign-up form; no account exists yet
    return True


def can_read_registration_request(caller: CallerContext | None, row: Any) -> bool:
    return caller is not None and caller.is_admin


def can_update_registration_request(caller: CallerContext | None, row: Any) -> bool:
    return caller is not None and caller.is_admin


def can_delete_registration_request(caller: CallerContext | None, row: Any) -> bool:
    if caller is None or not caller.is_admin:
        return False
    return field(row, "status") == RegistrationStatus.REJECTED


# -- SERVICES --

can_read_service = _admin_or_same_department
can_insert_service = _admin_or_department_hod
can_update_service = _admin_or_department_hod
can_delete_service = _admin_or_department_hod


# -- ATTACHMENT STORAGE --

def path_owner(path: str | None) -> str | None:
    """First folder of an object path, e.g. "17/1700000000.pdf" -> "17"."""
    if not path:
        return None
    parts = path.strip("/").split("/")
    if len(parts) < 2 or any(part in ("", ".", "..") for part in parts):
        return None
    return parts[0]


def can_upload_object(caller: CallerContext | None, row: Any) -> bool:
    if caller is None or not caller.has_role:
        return False
    bucket = field(row, "bucket")
    if bucket == Bucket.GRIEVANCE_ATTACHMENTS:
        return caller.role in (Role.HOD, Role.STAFF)
    if bucket == Bucket.SERVICE_BILLS:
        return caller.role in (Role.ADMIN, Role.HOD)
    return False


def can_read_object(caller: CallerContext | None, row: Any) -> bool:
    if caller is None or not caller.has_role:
        return False
    if field(row, "bucket") not in Bucket.ALL:
        return False
    if caller.is_admin:
        return True
    return path_owner(field(row, "path")) == str(caller.user_id)
