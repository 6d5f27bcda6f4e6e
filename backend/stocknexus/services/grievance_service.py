# Overview: Service-layer operations for grievances.

"""
Grievances

HODs and staff submit grievances (optionally with an attachment); only the
author and admins can see one; only admins update them. Grievances are never
deleted.

Closing a grievance (resolved / rejected) stamps resolved_by and
resolved_at; reopening clears them.
"""

from __future__ import annotations

from ..constants import Bucket, GrievanceStatus
from ..extensions import db
from ..models import Grievance
from ..policies import CallerContext, Operation
from ..time_utils import utcnow
from .concurrency import run_in_transaction
from .policy_service import get_readable, require_insert, require_row, scoped_query
from .storage_service import remove_object, upload_object


TABLE = Grievance.__tablename__
NOT_FOUND = "Grievance not found"


def submit_grievance(caller: CallerContext, patch: dict, *, attachment=None) -> Grievance:
    values = dict(patch)
    values["created_by"] = caller.user_id
    values.setdefault("status", GrievanceStatus.PENDING)
    require_insert(TABLE, caller, values)

    path = None
    if attachment is not None and getattr(attachment, "filename", None):
        path = upload_object(caller, Bucket.GRIEVANCE_ATTACHMENTS, attachment)
        values["attachment_url"] = path

    def _op():
        grievance = Grievance(**values)
        db.session.add(grievance)
        db.session.commit()
        return grievance

    try:
        return run_in_transaction(_op)
    except Exception:
        remove_object(Bucket.GRIEVANCE_ATTACHMENTS, path)
        raise


def list_grievances(caller: CallerContext, *, status: str | None = None) -> list[Grievance]:
    query = scoped_query(Grievance, caller)
    if status:
        query = query.filter(Grievance.status == status)
    return query.order_by(Grievance.created_at.desc(), Grievance.id.desc()).all()


def get_grievance(caller: CallerContext, grievance_id: int) -> Grievance:
    return get_readable(Grievance, grievance_id, caller, not_found_message=NOT_FOUND)


def update_grievance(caller: CallerContext, grievance_id: int, patch: dict) -> Grievance:
    grievance = db.session.get(Grievance, grievance_id)
    require_row(TABLE, Operation.UPDATE, caller, grievance, not_found_message=NOT_FOUND)

    def _op():
        previous_status = grievance.status
        for key, value in patch.items():
            setattr(grievance, key, value)

        if grievance.status != previous_status:
            if grievance.status in GrievanceStatus.CLOSED:
                grievance.resolved_by = caller.user_id
                grievance.resolved_at = utcnow()
            else:
                grievance.resolved_by = None
                grievance.resolved_at = None

        db.session.commit()
        return grievance

    return run_in_transaction(_op)
