# Overview: Flask API routes for admin operations; parses input and returns JSON responses.

# backend/stocknexus/routes/admin.py
"""
Admin routes for accounts, role assignment and audit.

Provides endpoints for:
- User management (list, role assignment, deactivate, reactivate)
- Policy introspection (which predicate guards which table/operation)
- Security event review

All endpoints require an authenticated admin.
"""

from flask import Blueprint, request, jsonify, g

from ..constants import Role
from ..extensions import db
from ..models import SecurityEvent, User
from ..policies import describe_policy, get_policies_for_table, get_protected_tables
from ..services import auth_service, session_service, policy_service
from ..decorators import require_auth, require_role

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


# -- USER MANAGEMENT --

@admin_bp.get("/users")
@require_auth
@require_role(Role.ADMIN)
def list_users():
    """
    List users with their role and department.

    Query params:
    - include_inactive: bool (default false)
    - department: str
    """
    include_inactive = request.args.get("include_inactive", "false").lower() == "true"
    department = request.args.get("department")

    query = db.session.query(User)
    if not include_inactive:
        query = query.filter(User.is_active.is_(True))

    users = [u.to_dict() for u in query.order_by(User.email).all()]
    if department:
        users = [u for u in users if u["department"] == department]

    return jsonify({"users": users, "count": len(users)})


@admin_bp.put("/users/<int:user_id>/role")
@require_auth
@require_role(Role.ADMIN)
def assign_user_role(user_id: int):
    """
    Replace a user's role/department assignment.

    Body: {"role": "hod", "department": "Physics"}
    """
    data = request.get_json(silent=True) or {}
    role = data.get("role")
    department = data.get("department")

    if not role or not department:
        return jsonify({"error": "role and department are required"}), 400

    if user_id == g.current_user.id and role != Role.ADMIN:
        return jsonify({"error": "Cannot remove your own admin role"}), 400

    assignment = auth_service.assign_role(user_id, role, department)

    policy_service.log_security_event(
        user_id=g.current_user.id,
        event_type="ROLE_ASSIGNED",
        success=True,
        resource=f"users:{user_id}",
        action="update",
        reason=f"{role} / {department}",
        department=department,
    )

    return jsonify({"assignment": assignment.to_dict()})


@admin_bp.post("/users/<int:user_id>/deactivate")
@require_auth
@require_role(Role.ADMIN)
def deactivate_user(user_id: int):
    """
    Deactivate a user account and revoke all of its sessions.
    """
    user = db.session.get(User, user_id)

    if not user:
        return jsonify({"error": "User not found"}), 404

    if not user.is_active:
        return jsonify({"error": "User is already deactivated"}), 400

    if user.id == g.current_user.id:
        return jsonify({"error": "Cannot deactivate your own account"}), 400

    user.is_active = False

    revoked_count = session_service.revoke_all_user_sessions(
        user_id=user.id,
        reason="Account deactivated by admin"
    )

    policy_service.log_security_event(
        user_id=g.current_user.id,
        event_type="USER_DEACTIVATED",
        success=True,
        resource=f"users:{user_id}",
        action="update",
        reason=f"Revoked {revoked_count} sessions",
    )

    return jsonify({
        "message": f"User {user.email} deactivated",
        "sessions_revoked": revoked_count
    })


@admin_bp.post("/users/<int:user_id>/reactivate")
@require_auth
@require_role(Role.ADMIN)
def reactivate_user(user_id: int):
    user = db.session.get(User, user_id)

    if not user:
        return jsonify({"error": "User not found"}), 404

    if user.is_active:
        return jsonify({"error": "User is already active"}), 400

    user.is_active = True
    db.session.commit()

    return jsonify({"message": f"User {user.email} reactivated", "user": user.to_dict()})


# -- POLICIES & AUDIT --

@admin_bp.get("/policies")
@require_auth
@require_role(Role.ADMIN)
def list_policies():
    """Every protected table with the predicate guarding each operation."""
    tables = []
    for table in get_protected_tables():
        tables.append({
            "table": table,
            "policies": [
                describe_policy(table, policy[1])
                for policy in get_policies_for_table(table)
            ],
        })
    return jsonify({"tables": tables})


@admin_bp.get("/security-events")
@require_auth
@require_role(Role.ADMIN)
def list_security_events():
    """
    Recent security events, newest first.

    Query params: event_type, user_id, limit (default 100, max 500)
    """
    limit = min(request.args.get("limit", 100, type=int) or 100, 500)
    query = db.session.query(SecurityEvent)

    event_type = request.args.get("event_type")
    if event_type:
        query = query.filter(SecurityEvent.event_type == event_type)
    user_id = request.args.get("user_id", type=int)
    if user_id is not None:
        query = query.filter(SecurityEvent.user_id == user_id)

    events = query.order_by(SecurityEvent.occurred_at.desc(), SecurityEvent.id.desc()).limit(limit).all()
    return jsonify({"events": [e.to_dict() for e in events]})
