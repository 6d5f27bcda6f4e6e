from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class RegistrationRequest(db.Model):
    """
    Pending account request submitted from the public sign-up form.

    LIFECYCLE:
    - pending -> approved (account created) | rejected
    - rejected -> deleted (admin only)
    - approved is terminal
    Every transition stamps reviewed_by / reviewed_at.
    """
    __tablename__ = "registration_requests"
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_registration_requests_email"),
        db.Index("ix_registration_requests_status", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    email = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(255), nullable=False)
    department = db.Column(db.String(32), nullable=False)
    requested_role = db.Column(db.String(16), nullable=False)

    status = db.Column(db.String(16), nullable=False, default="pending")

    reviewed_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    reviewer = db.relationship("User", foreign_keys=[reviewed_by])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "department": self.department,
            "requested_role": self.requested_role,
            "status": self.status,
            "reviewed_by": self.reviewed_by,
            "reviewed_at": to_utc_z(self.reviewed_at) if self.reviewed_at else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
