from __future__ import annotations

from ..extensions import db
from ..constants import DEFAULT_LOW_STOCK_THRESHOLD
from ..time_utils import to_utc_z


class InventoryItem(db.Model):
    """
    One physical batch (or serial-numbered unit) of an item in a department.

    STOCK MODEL:
    - quantity is authoritative for THIS row only
    - several rows may share (name, department); their SUM is the aggregate
      availability that low-stock alerting works from
    - the aggregate is never stored; it is recomputed on every write

    low_stock_threshold is per-row and feeds dashboard/report low-stock
    counts. Alert reconciliation uses a fixed threshold instead (see
    services/alert_service.py).
    """
    __tablename__ = "inventory_items"
    __table_args__ = (
        db.CheckConstraint("quantity >= 0", name="ck_inventory_items_quantity_non_negative"),
        db.Index("ix_inventory_items_name_department", "name", "department"),
        db.Index("ix_inventory_items_department", "department"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(64), nullable=True)
    model = db.Column(db.String(128), nullable=True)
    serial_number = db.Column(db.String(128), nullable=True)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    low_stock_threshold = db.Column(db.Integer, nullable=True, default=DEFAULT_LOW_STOCK_THRESHOLD)

    department = db.Column(db.String(32), nullable=False)
    location = db.Column(db.String(255), nullable=True)
    cabin_number = db.Column(db.String(64), nullable=True)

    # Free-form key/value map, no schema assumed
    specifications = db.Column(db.JSON, nullable=False, default=dict)

    status = db.Column(db.String(32), nullable=False, default="available")

    created_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    creator = db.relationship("User", foreign_keys=[created_by])
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def effective_low_stock_threshold(self) -> int:
        if self.low_stock_threshold is None:
            return DEFAULT_LOW_STOCK_THRESHOLD
        return self.low_stock_threshold

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.effective_low_stock_threshold

    def __repr__(self) -> str:
        return (
            f"<InventoryItem id={self.id} name={self.name!r} "
            f"department={self.department!r} quantity={self.quantity}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "model": self.model,
            "serial_number": self.serial_number,
            "quantity": self.quantity,
            "low_stock_threshold": self.effective_low_stock_threshold,
            "department": self.department,
            "location": self.location,
            "cabin_number": self.cabin_number,
            "specifications": dict(self.specifications or {}),
            "status": self.status,
            "created_by": self.created_by,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Alert(db.Model):
    """
    Low-stock / out-of-stock alert for a (name, department) group.

    Written only by the reconciliation engine. item_name/department snapshot
    the group so the alert still identifies it after the referenced row is
    deleted (item_id becomes NULL).

    INVARIANT: at most one unresolved alert per (item_name, department,
    alert_type). Enforced by the reconciliation logic, not by a constraint.
    """
    __tablename__ = "alerts"
    __table_args__ = (
        db.Index("ix_alerts_group_unresolved", "item_name", "department", "is_resolved"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.Integer, db.ForeignKey("inventory_items.id", ondelete="SET NULL"), nullable=True, index=True)

    item_name = db.Column(db.String(255), nullable=False)
    department = db.Column(db.String(32), nullable=False)

    alert_type = db.Column(db.String(32), nullable=False)  # low_stock, out_of_stock
    message = db.Column(db.Text, nullable=False)
    severity = db.Column(db.String(16), nullable=False)  # medium, high

    is_resolved = db.Column(db.Boolean, nullable=False, default=False)
    resolved_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    item = db.relationship("InventoryItem", backref=db.backref("alerts", lazy=True, passive_deletes=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "department": self.department,
            "alert_type": self.alert_type,
            "message": self.message,
            "severity": self.severity,
            "is_resolved": self.is_resolved,
            "resolved_at": to_utc_z(self.resolved_at) if self.resolved_at else None,
            "created_at": to_utc_z(self.created_at),
        }


class ScrapItem(db.Model):
    """
    Snapshot of disposed stock.

    Item fields are copied at scrap time so the record survives the deletion
    of the InventoryItem when its quantity reaches zero.
    """
    __tablename__ = "scrap_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_scrap_items_quantity_positive"),
        db.Index("ix_scrap_items_department", "department"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.Integer, db.ForeignKey("inventory_items.id", ondelete="SET NULL"), nullable=True, index=True)

    item_name = db.Column(db.String(255), nullable=False)
    item_model = db.Column(db.String(128), nullable=True)
    item_serial_number = db.Column(db.String(128), nullable=True)
    department = db.Column(db.String(32), nullable=False)

    quantity = db.Column(db.Integer, nullable=False, default=1)
    reason = db.Column(db.Text, nullable=False)
    notes = db.Column(db.Text, nullable=True)

    scrapped_by = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    scrapped_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    item = db.relationship("InventoryItem", backref=db.backref("scrap_records", lazy=True, passive_deletes=True))
    scrapper = db.relationship("User", foreign_keys=[scrapped_by])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "item_model": self.item_model,
            "item_serial_number": self.item_serial_number,
            "department": self.department,
            "quantity": self.quantity,
            "reason": self.reason,
            "notes": self.notes,
            "scrapped_by": self.scrapped_by,
            "scrapped_by_name": self.scrapper.full_name if self.scrapper else None,
            "scrapped_at": to_utc_z(self.scrapped_at),
            "created_at": to_utc_z(self.created_at),
        }
