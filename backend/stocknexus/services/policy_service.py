# Overview: Service-layer operations for authorization; resolves callers, evaluates predicates, audits denials.

"""
Row-Level Authorization and Security Event Logging

WHY: Every read and write of a protected table goes through the predicate set
in stocknexus.policies. This module is the only place that turns a user id
into a CallerContext and the only place that turns a denial into an error.

DESIGN PRINCIPLES:
- Fail closed: a user without a UserRole row is denied by every
  role-dependent predicate
- No leakage: a denied read/update/delete of an existing row raises the SAME
  NotFoundError as a missing row; only inserts (no row yet) surface as
  AccessDeniedError
- Lists never materialize denied rows: read predicates have SQL twins in
  READ_FILTERS that are applied in the query itself
- Non-recursive: the caller's role is read straight from user_roles, which
  is not itself a protected table
- Log denials only: grants are not logged

Denials are committed to security_events immediately, so callers must check
before they mutate the session.
"""

from flask import has_request_context, request
from sqlalchemy import false, true

from ..extensions import db
from ..models import Alert, Grievance, InventoryItem, RegistrationRequest, ScrapItem, SecurityEvent, Service, UserRole
from ..policies import ANONYMOUS, CallerContext, Operation, evaluate
from ..validation import NotFoundError
from ..time_utils import utcnow


class AccessDeniedError(Exception):
    """Raised when a caller may not insert a row."""
    pass


def _client_context() -> tuple[str | None, str | None]:
    if not has_request_context():
        return None, None
    return request.remote_addr, request.headers.get("User-Agent")


def log_security_event(
    user_id: int | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
    department: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> SecurityEvent:
    """
    Log security event to audit trail.

    event_type examples:
    - ACCESS_DENIED
    - LOGIN_FAILED
    - LOGOUT
    - PASSWORD_CHANGED
    - REGISTRATION_APPROVED
    """
    if ip_address is None and user_agent is None:
        ip_address, user_agent = _client_context()

    event = SecurityEvent(
        user_id=user_id,
        department=department,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        ip_address=ip_address,
        user_agent=user_agent,
        occurred_at=utcnow()
    )

    db.session.add(event)
    db.session.commit()

    return event


def resolve_caller(user_id: int | None) -> CallerContext:
    """
    Build the CallerContext for a user id.

    Plain read of user_roles; never evaluated through the predicate set.
    Users without a role row get a context whose role is None (deny-all).
    """
    if user_id is None:
        return ANONYMOUS

    assignment = db.session.query(UserRole).filter_by(user_id=user_id).first()
    if assignment is None:
        return CallerContext(user_id=user_id)

    return CallerContext(
        user_id=user_id,
        role=assignment.role,
        department=assignment.department,
    )


def check(table: str, operation: str, caller: CallerContext | None, row=None) -> bool:
    """Evaluate a predicate without side effects."""
    return evaluate(table, operation, caller, row)


def _log_denial(table: str, operation: str, caller: CallerContext | None, row_id=None) -> None:
    resource = table if row_id is None else f"{table}:{row_id}"
    log_security_event(
        user_id=caller.user_id if caller else None,
        event_type="ACCESS_DENIED",
        success=False,
        resource=resource,
        action=operation,
        reason=f"Predicate denied {operation} on {table}",
        department=caller.department if caller else None,
    )


def require_values(table: str, operation: str, caller: CallerContext | None, values: dict) -> None:
    """
    Require the predicate to hold for incoming values rather than a stored row.

    Used for inserts and for the post-image of an update. Raises
    AccessDeniedError (and logs) when denied.
    """
    if not evaluate(table, operation, caller, values):
        _log_denial(table, operation, caller)
        raise AccessDeniedError(f"Permission denied: cannot {operation.lower()} {table.replace('_', ' ')}")


def require_insert(table: str, caller: CallerContext | None, row: dict) -> None:
    require_values(table, Operation.INSERT, caller, row)


def require_row(
    table: str,
    operation: str,
    caller: CallerContext | None,
    row,
    *,
    not_found_message: str,
):
    """
    Require the predicate for an existing row.

    Missing rows and denied rows raise the same NotFoundError so the caller
    cannot tell them apart.
    """
    if row is None:
        raise NotFoundError(not_found_message)
    if not evaluate(table, operation, caller, row):
        _log_denial(table, operation, caller, getattr(row, "id", None))
        raise NotFoundError(not_found_message)
    return row


# SQL twins of the read predicates. Must stay equivalent to
# policies.predicates.can_read_* for the same caller.

def _inventory_filter(caller: CallerContext):
    return true() if caller.has_role else false()


def _scrap_filter(caller: CallerContext):
    if caller.is_admin:
        return true()
    if caller.is_hod:
        return ScrapItem.department == caller.department
    return false()


def _alert_filter(caller: CallerContext):
    if caller.is_admin:
        return true()
    if caller.has_role:
        return Alert.department == caller.department
    return false()


def _grievance_filter(caller: CallerContext):
    if caller.is_admin:
        return true()
    if caller.has_role:
        return Grievance.created_by == caller.user_id
    return false()


def _registration_filter(caller: CallerContext):
    return true() if caller.is_admin else false()


def _service_filter(caller: CallerContext):
    if caller.is_admin:
        return true()
    if caller.has_role:
        return Service.department == caller.department
    return false()


READ_FILTERS = {
    InventoryItem.__tablename__: _inventory_filter,
    ScrapItem.__tablename__: _scrap_filter,
    Alert.__tablename__: _alert_filter,
    Grievance.__tablename__: _grievance_filter,
    RegistrationRequest.__tablename__: _registration_filter,
    Service.__tablename__: _service_filter,
}


def read_filter(model, caller: CallerContext | None):
    """SQL criterion selecting exactly the rows of model the caller may read."""
    if caller is None:
        return false()
    build = READ_FILTERS.get(model.__tablename__)
    if build is None:
        return false()
    return build(caller)


def scoped_query(model, caller: CallerContext | None):
    """Query over model restricted to readable rows."""
    return db.session.query(model).filter(read_filter(model, caller))


def get_readable(model, row_id: int, caller: CallerContext | None, *, not_found_message: str):
    """Fetch one row by id, enforcing the read predicate."""
    row = db.session.get(model, row_id)
    return require_row(
        model.__tablename__,
        Operation.READ,
        caller,
        row,
        not_found_message=not_found_message,
    )
