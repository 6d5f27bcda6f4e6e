# backend/stocknexus/routes/system.py
"""
System health and version endpoints.

Health reports database reachability plus a few counts useful when checking
a fresh deployment (no admin yet, sessions piling up).
"""

import os
import sys
import time
from flask import Blueprint, current_app
from ..extensions import db
from ..models import InventoryItem, User, UserRole
from ..services import session_service
from ..constants import Role
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """Check database connectivity with a few cheap counts."""
    start_time = time.time()
    try:
        user_count = db.session.query(User).count()
        item_count = db.session.query(InventoryItem).count()
        admin_count = db.session.query(UserRole).filter_by(role=Role.ADMIN).count()

        elapsed_ms = (time.time() - start_time) * 1000

        result = {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "users": user_count,
                "inventory_items": item_count,
                "admins": admin_count,
            }
        }
        if admin_count == 0:
            result["status"] = "degraded"
            result["warning"] = "No admin account; run: flask users create-admin"
        return result
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }


def check_session_service_health() -> dict:
    start_time = time.time()
    try:
        active_sessions = session_service.count_active_sessions()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"active_sessions": active_sessions},
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Session service health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Session service error"
        }


def check_storage_health() -> dict:
    """Attachment buckets need a writable UPLOAD_FOLDER."""
    folder = os.path.abspath(current_app.config["UPLOAD_FOLDER"])
    if os.path.isdir(folder) and os.access(folder, os.W_OK):
        return {"status": "healthy", "details": {"upload_folder": folder}}
    return {"status": "unhealthy", "error": "Upload folder is missing or not writable"}


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: healthy or degraded (still operational)
    - 503: a dependency is unhealthy
    """
    start_time = time.time()

    checks = {
        "database": check_database_health(),
        "session_service": check_session_service_health(),
        "storage": check_storage_health(),
    }

    statuses = [check["status"] for check in checks.values()]
    if "unhealthy" in statuses:
        overall_status, http_status = "unhealthy", 503
    elif "degraded" in statuses:
        overall_status, http_status = "degraded", 200
    else:
        overall_status, http_status = "healthy", 200

    return {
        "status": overall_status,
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
        "checks": checks,
    }, http_status


@system_bp.get("/version")
def version():
    """Non-sensitive deployment information."""
    return {
        "api_version": "1.0.0",
        "environment": "development" if current_app.debug else "production",
        "python_version": sys.version.split()[0],
        "server_time": to_utc_z(utcnow()),
    }
