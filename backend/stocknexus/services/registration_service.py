# Overview: Service-layer operations for registration requests; the only path to a new non-admin account.

"""
Registration Requests

State machine:
    pending -> approved | rejected
    rejected -> deleted (admin only)
    approved is terminal

Every transition is admin-only and stamps reviewed_by / reviewed_at.

Approval creates the account (temporary password, must_change_password),
assigns the requested role and department, and marks the request approved
in one transaction. The approval email is sent afterwards; its failure never
undoes the approval.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError

from ..constants import RegistrationStatus
from ..extensions import db
from ..models import RegistrationRequest, User
from ..policies import ANONYMOUS, CallerContext, Operation
from ..validation import ConflictError
from ..time_utils import utcnow
from .auth_service import assign_role, create_user, generate_temporary_password
from .concurrency import run_in_transaction
from .notification_service import EmailResult, send_approval_email
from .policy_service import get_readable, log_security_event, require_insert, require_row, scoped_query


TABLE = RegistrationRequest.__tablename__
NOT_FOUND = "Registration request not found"


@dataclass
class ApprovalResult:
    request: RegistrationRequest
    user: User
    email: EmailResult
    temporary_password: str

    def to_dict(self) -> dict:
        data = {
            "request": self.request.to_dict(),
            "user": self.user.to_dict(),
            "email_sent": self.email.sent,
            "email_message": self.email.message,
        }
        # Admin relays the password by hand when delivery failed
        if not self.email.sent:
            data["temporary_password"] = self.temporary_password
        return data


def submit_request(patch: dict) -> RegistrationRequest:
    """
    Public sign-up. patch is validated (enforce_rules_registration lowercases
    the email).

    Raises ConflictError when the email belongs to an existing account or to
    any earlier request.
    """
    require_insert(TABLE, ANONYMOUS, patch)

    email = patch["email"]
    if db.session.query(User.id).filter(User.email == email).first():
        raise ConflictError("An account with this email already exists")
    if db.session.query(RegistrationRequest.id).filter(RegistrationRequest.email == email).first():
        raise ConflictError("A registration request with this email already exists")

    def _op():
        request_row = RegistrationRequest(**patch, status=RegistrationStatus.PENDING)
        db.session.add(request_row)
        db.session.commit()
        return request_row

    try:
        return run_in_transaction(_op)
    except IntegrityError:
        # A concurrent sign-up with the same email won the unique constraint
        raise ConflictError("A registration request with this email already exists")


def list_requests(caller: CallerContext, *, status: str | None = None) -> list[RegistrationRequest]:
    query = scoped_query(RegistrationRequest, caller)
    if status:
        query = query.filter(RegistrationRequest.status == status)
    return query.order_by(RegistrationRequest.created_at.desc(), RegistrationRequest.id.desc()).all()


def get_request(caller: CallerContext, request_id: int) -> RegistrationRequest:
    return get_readable(RegistrationRequest, request_id, caller, not_found_message=NOT_FOUND)


def _load_pending(caller: CallerContext, request_id: int) -> RegistrationRequest:
    request_row = db.session.get(RegistrationRequest, request_id)
    require_row(TABLE, Operation.UPDATE, caller, request_row, not_found_message=NOT_FOUND)
    if request_row.status != RegistrationStatus.PENDING:
        raise ConflictError(f"Request has already been {request_row.status}")
    return request_row


def approve_request(caller: CallerContext, request_id: int) -> ApprovalResult:
    request_row = _load_pending(caller, request_id)

    temporary_password = generate_temporary_password()

    def _op():
        user = create_user(
            request_row.email,
            request_row.full_name,
            temporary_password,
            must_change_password=True,
            commit=False,
        )
        assign_role(user.id, request_row.requested_role, request_row.department, commit=False)

        request_row.status = RegistrationStatus.APPROVED
        request_row.reviewed_by = caller.user_id
        request_row.reviewed_at = utcnow()

        db.session.commit()
        return user

    user = run_in_transaction(_op)

    log_security_event(
        user_id=caller.user_id,
        event_type="REGISTRATION_APPROVED",
        success=True,
        resource=f"{TABLE}:{request_row.id}",
        action=Operation.UPDATE,
        department=request_row.department,
    )

    email = send_approval_email(
        email=user.email,
        full_name=user.full_name,
        temporary_password=temporary_password,
        role=request_row.requested_role,
        department=request_row.department,
    )

    return ApprovalResult(request=request_row, user=user, email=email, temporary_password=temporary_password)


def reject_request(caller: CallerContext, request_id: int) -> RegistrationRequest:
    request_row = _load_pending(caller, request_id)

    def _op():
        request_row.status = RegistrationStatus.REJECTED
        request_row.reviewed_by = caller.user_id
        request_row.reviewed_at = utcnow()
        db.session.commit()
        return request_row

    return run_in_transaction(_op)


def delete_request(caller: CallerContext, request_id: int) -> None:
    """Admins delete rejected requests; anything else is not found."""
    request_row = db.session.get(RegistrationRequest, request_id)
    require_row(TABLE, Operation.DELETE, caller, request_row, not_found_message=NOT_FOUND)

    def _op():
        db.session.delete(request_row)
        db.session.commit()

    run_in_transaction(_op)
