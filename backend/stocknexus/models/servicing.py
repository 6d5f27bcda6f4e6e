from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, to_iso_date


class Service(db.Model):
    """
    Maintenance / repair record for a piece of equipment.

    equipment_id points at the InventoryItem that was serviced. For bulk
    services it is a representative item of the serviced category. It is
    nulled if that row is later scrapped away; department keeps the record
    scoped for authorization.
    """
    __tablename__ = "services"
    __table_args__ = (
        db.CheckConstraint("cost IS NULL OR cost >= 0", name="ck_services_cost_non_negative"),
        db.Index("ix_services_department_date", "department", "service_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    equipment_id = db.Column(db.Integer, db.ForeignKey("inventory_items.id", ondelete="SET NULL"), nullable=True, index=True)
    department = db.Column(db.String(32), nullable=False)

    service_type = db.Column(db.String(16), nullable=False)  # internal, external
    nature_of_service = db.Column(db.String(32), nullable=False)
    service_date = db.Column(db.Date, nullable=False)
    status = db.Column(db.String(16), nullable=False, default="pending")

    technician_vendor_name = db.Column(db.String(255), nullable=False)
    cost = db.Column(db.Numeric(12, 2), nullable=True)
    remarks = db.Column(db.Text, nullable=True)

    # Storage path inside the service-bills bucket
    bill_photo_url = db.Column(db.String(512), nullable=True)

    created_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    equipment = db.relationship("InventoryItem", backref=db.backref("services", lazy=True, passive_deletes=True))

    def to_dict(self) -> dict:
        equipment = self.equipment
        return {
            "id": self.id,
            "equipment_id": self.equipment_id,
            "equipment_name": equipment.name if equipment else None,
            "equipment_category": equipment.category if equipment else None,
            "department": self.department,
            "service_type": self.service_type,
            "nature_of_service": self.nature_of_service,
            "service_date": to_iso_date(self.service_date),
            "status": self.status,
            "technician_vendor_name": self.technician_vendor_name,
            "cost": str(self.cost) if self.cost is not None else None,
            "remarks": self.remarks,
            "bill_photo_url": self.bill_photo_url,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
