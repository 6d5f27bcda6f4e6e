# Overview: Service-layer operations for bearer sessions; issue, validate, revoke and purge tokens.

"""
Bearer Sessions

A login issues a random token. Only its SHA-256 digest is stored, so a leaked
database cannot be replayed against the API.

Lifetimes come from app config:
- SESSION_ABSOLUTE_HOURS: hard expiry counted from login
- SESSION_IDLE_MINUTES: a token unused this long is revoked on next use
- SESSION_RETENTION_DAYS: dead tokens are kept this long for audit, then purged

A token also dies when its user is deactivated, when the user logs out, and
(for every other token of the user) on a password change.
"""

import hashlib
import secrets
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from ..time_utils import days_ago, utcnow


TOKEN_BYTES = 32


@dataclass
class SessionContext:
    """A validated token and the account behind it."""
    user: User
    session: SessionToken


def _absolute_lifetime() -> timedelta:
    return timedelta(hours=current_app.config["SESSION_ABSOLUTE_HOURS"])


def _idle_limit() -> timedelta:
    return timedelta(minutes=current_app.config["SESSION_IDLE_MINUTES"])


def generate_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


def hash_token(token: str) -> str:
    # Tokens carry full entropy already; a fast digest is enough
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _live_session(token: str) -> SessionToken | None:
    return db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False,
    ).first()


def create_session(
    user_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> tuple[SessionToken, str]:
    """
    Issue a token for an active user.

    Returns (row, plaintext). The plaintext goes to the client once and is
    never stored.
    """
    user = db.session.get(User, user_id)
    if user is None:
        raise ValueError("User not found")
    if not user.is_active:
        raise ValueError("User account is deactivated")

    token = generate_token()
    issued_at = utcnow()

    session = SessionToken(
        user_id=user.id,
        token_hash=hash_token(token),
        created_at=issued_at,
        last_used_at=issued_at,
        expires_at=issued_at + _absolute_lifetime(),
        user_agent=(user_agent or "")[:512] or None,
        ip_address=ip_address,
        is_revoked=False,
    )
    db.session.add(session)
    db.session.commit()

    return session, token


def _revoke(session: SessionToken, reason: str, when) -> None:
    session.is_revoked = True
    session.revoked_at = when
    session.revoked_reason = reason


def validate_session(token: str) -> SessionContext | None:
    """
    Resolve a bearer token to its session, or None.

    Idle tokens and tokens of deactivated users are revoked on the spot so
    they stay dead even if the idle limit is later raised or the user is
    reactivated. A successful check slides last_used_at forward.
    """
    if not token:
        return None

    session = _live_session(token)
    if session is None:
        return None

    now = utcnow()
    if session.expires_at < now:
        return None

    user = session.user
    if now - session.last_used_at > _idle_limit():
        _revoke(session, "Idle timeout", now)
    elif user is None or not user.is_active:
        _revoke(session, "User account deactivated", now)
    else:
        session.last_used_at = now
        db.session.commit()
        return SessionContext(user=user, session=session)

    db.session.commit()
    return None


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """False when the token is unknown or already dead."""
    session = _live_session(token)
    if session is None:
        return False

    _revoke(session, reason, utcnow())
    db.session.commit()
    return True


def revoke_all_user_sessions(
    user_id: int,
    reason: str = "Revoke all sessions",
    keep_session_id: int | None = None,
) -> int:
    """Revoke every live token of a user except keep_session_id; returns the count."""
    query = db.session.query(SessionToken).filter_by(user_id=user_id, is_revoked=False)
    if keep_session_id is not None:
        query = query.filter(SessionToken.id != keep_session_id)

    now = utcnow()
    sessions = query.all()
    for session in sessions:
        _revoke(session, reason, now)

    db.session.commit()
    return len(sessions)


def count_active_sessions() -> int:
    return db.session.query(SessionToken).filter(
        SessionToken.is_revoked.is_(False),
        SessionToken.expires_at >= utcnow(),
    ).count()


def cleanup_expired_sessions() -> int:
    """Purge dead tokens issued before the retention window; returns the count."""
    cutoff = days_ago(current_app.config["SESSION_RETENTION_DAYS"])

    deleted = db.session.query(SessionToken).filter(
        db.or_(
            SessionToken.expires_at < utcnow(),
            SessionToken.is_revoked.is_(True),
        ),
        SessionToken.created_at < cutoff,
    ).delete(synchronize_session=False)

    db.session.commit()
    return deleted
