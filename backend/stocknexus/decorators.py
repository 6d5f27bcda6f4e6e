# Overview: Request and role decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .services import session_service, policy_service


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user') and hasattr(g, 'caller')


def require_auth(f):
    """
    Require a valid bearer session and establish the caller context.

    Sets the following Flask g attributes:
    - g.current_user: The authenticated User object
    - g.caller: CallerContext (user id, role, department) for predicates
    - g.session_context: The full SessionContext object

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, expired, idle or revoked token
    - User account deactivated

    A user without a role assignment is still authenticated; every
    role-dependent predicate denies them.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1]

        context = session_service.validate_session(token)

        if not context:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.current_user = context.user
        g.caller = policy_service.resolve_caller(context.user.id)
        g.session_context = context
        g.session_token = token

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """
    Require the caller to hold one of the given roles.

    Coarse gate for whole endpoints (e.g. admin consoles); row-level
    decisions are still made by the predicate set.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            caller = g.caller
            if caller.role not in roles:
                policy_service.log_security_event(
                    user_id=caller.user_id,
                    event_type="ROLE_DENIED",
                    success=False,
                    resource=request.path,
                    action=request.method,
                    reason=f"Requires role: {', '.join(roles)}",
                    department=caller.department,
                )
                return jsonify({
                    "error": "Permission denied",
                    "required_roles": list(roles),
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
