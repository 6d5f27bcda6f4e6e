# Overview: Service-layer operations for maintenance; retention cleanup of audit and session tables.

from __future__ import annotations

from ..extensions import db
from ..models import SecurityEvent
from ..time_utils import days_ago
from .session_service import cleanup_expired_sessions


def cleanup_security_events(*, retention_days: int = 90) -> int:
    """
    Delete security events older than retention_days.

    Alerts, scrap and service records are history and are never purged here.
    """
    if retention_days < 1:
        raise ValueError("retention_days must be at least 1")

    cutoff = days_ago(retention_days)
    deleted = db.session.query(SecurityEvent).filter(
        SecurityEvent.occurred_at < cutoff
    ).delete(synchronize_session=False)
    db.session.commit()
    return deleted


def cleanup_sessions() -> int:
    return cleanup_expired_sessions()
