from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class Grievance(db.Model):
    """
    Complaint raised by an HOD or staff member.

    Visible to its author and to admins only. Only admins change status;
    closing it (resolved/rejected) stamps resolved_by and resolved_at.
    """
    __tablename__ = "grievances"
    __table_args__ = (
        db.Index("ix_grievances_created_by", "created_by"),
        db.Index("ix_grievances_status", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(16), nullable=False, default="pending")
    priority = db.Column(db.String(16), nullable=False, default="medium")

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    # Storage path inside the grievance-attachments bucket ("<user_id>/<ts>.<ext>")
    attachment_url = db.Column(db.String(512), nullable=True)

    resolution_notes = db.Column(db.Text, nullable=True)
    resolved_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    resolved_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    author = db.relationship("User", foreign_keys=[created_by])
    resolver = db.relationship("User", foreign_keys=[resolved_by])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "status": self.status,
            "priority": self.priority,
            "created_by": self.created_by,
            "created_by_name": self.author.full_name if self.author else None,
            "attachment_url": self.attachment_url,
            "resolution_notes": self.resolution_notes,
            "resolved_by": self.resolved_by,
            "resolved_at": to_utc_z(self.resolved_at) if self.resolved_at else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
