# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/stocknexus/routes/auth.py
"""
Authentication API routes

- No self-registration: accounts come from approved registration requests
  (see routes/registrations.py) or the create-admin CLI command
- Session management with bearer tokens
- Password change revokes every other session of the user
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service
from ..services import session_service
from ..services import policy_service
from ..services.auth_service import PasswordValidationError
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1]


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be included in Authorization header for protected routes.
    must_change_password tells the client to force a password change.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "email and password required"}), 400

        user_agent = request.headers.get("User-Agent")
        ip_address = request.remote_addr

        user = auth_service.authenticate(email, password)

        if not user:
            policy_service.log_security_event(
                user_id=None,
                event_type="LOGIN_FAILED",
                success=False,
                resource=auth_service.normalize_email(email),
                action="login",
                reason="Invalid credentials",
                ip_address=ip_address,
                user_agent=user_agent,
            )
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=user_agent,
            ip_address=ip_address
        )
        caller = policy_service.resolve_caller(user.id)

        return jsonify({
            "user": user.to_dict(),
            "role": caller.role,
            "department": caller.department,
            "token": token,
            "session": session.to_dict(),
            "must_change_password": user.must_change_password,
            "message": "Login successful"
        }), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    """Revoke the presented session token."""
    try:
        token = _bearer_token()
        if not token:
            return jsonify({"error": "Authorization header required"}), 401

        revoked = session_service.revoke_session(token, reason="User logout")

        if not revoked:
            return jsonify({"error": "Invalid or expired token"}), 401

        return jsonify({"message": "Logout successful"}), 200

    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    """Current user plus the role/department the predicates will see."""
    return jsonify({
        "user": g.current_user.to_dict(),
        "caller": g.caller.to_dict(),
    }), 200


@auth_bp.post("/change-password")
@require_auth
def change_password_route():
    """
    Change the current user's password.

    Body: {"current_password": "...", "new_password": "..."}
    Every other session of the user is revoked; the calling session stays.
    """
    data = request.get_json(silent=True) or {}
    current_password = data.get("current_password")
    new_password = data.get("new_password")

    if not current_password or not new_password:
        return jsonify({"error": "current_password and new_password required"}), 400

    try:
        user = auth_service.change_password(g.current_user, current_password, new_password)
    except PasswordValidationError as e:
        return jsonify({"error": str(e)}), 400

    revoked = session_service.revoke_all_user_sessions(
        user.id,
        reason="Password changed",
        keep_session_id=g.session_context.session.id,
    )

    policy_service.log_security_event(
        user_id=user.id,
        event_type="PASSWORD_CHANGED",
        success=True,
        resource="users",
        action="update",
        department=g.caller.department,
    )

    return jsonify({
        "message": "Password changed",
        "revoked_sessions": revoked,
        "user": user.to_dict(),
    }), 200
