from __future__ import annotations

from ..extensions import db
from authentiks.time_utils import to_utc_z, utcnow


# Order status values (display strings are part of the API contract)
STATUS_PENDING_AUTHORIZATION = "Pending Authorization"
STATUS_AUTHORIZED = "Authorized"
STATUS_ORDER_PROCESSING = "Order Processing"
STATUS_DISPATCHING = "Dispatching"
STATUS_DISPATCHED = "Dispatched"
STATUS_RECEIVED = "Received"
STATUS_REJECTED = "Rejected"

ORDER_STATUSES = (
    STATUS_PENDING_AUTHORIZATION,
    STATUS_AUTHORIZED,
    STATUS_ORDER_PROCESSING,
    STATUS_DISPATCHING,
    STATUS_DISPATCHED,
    STATUS_RECEIVED,
    STATUS_REJECTED,
)


class Order(db.Model):
    """
    A brand's request for a batch of QR-coded product units.

    WHY: QR codes are never minted ad hoc for a brand; they are ordered,
    paid for in credits, produced and shipped. The order row is the
    document that moves through that lifecycle (see order_service).

    INVARIANTS:
    - status only moves along the lifecycle table in order_service
    - every transition appends exactly one OrderHistory row
    - qr_codes_generated never reverts to False
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_brand_status_created", "brand_id", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable order number (e.g., "ORD-1718000000000-7")
    order_number = db.Column(db.String(64), nullable=False, unique=True, index=True)

    status = db.Column(db.String(32), nullable=False, default=STATUS_PENDING_AUTHORIZATION, index=True)

    product_name = db.Column(db.String(255), nullable=False)
    brand = db.Column(db.String(255), nullable=False)
    batch_no = db.Column(db.String(128), nullable=True)
    manufacture_date = db.Column(db.String(32), nullable=True)
    expiry_date = db.Column(db.String(32), nullable=True)
    quantity = db.Column(db.Integer, nullable=False)
    description = db.Column(db.Text, nullable=True)

    brand_id = db.Column(db.Integer, db.ForeignKey("brands.id"), nullable=False, index=True)
    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    qr_codes_generated = db.Column(db.Boolean, nullable=False, default=False)
    qr_generated_count = db.Column(db.Integer, nullable=False, default=0)

    # Dispatch details (set on Dispatched)
    tracking_number = db.Column(db.String(128), nullable=True)
    courier_name = db.Column(db.String(128), nullable=True)
    dispatch_notes = db.Column(db.Text, nullable=True)
    dispatched_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    brand_ref = db.relationship("Brand", foreign_keys=[brand_id])
    created_by = db.relationship("User", foreign_keys=[created_by_user_id])
    history = db.relationship(
        "OrderHistory",
        backref="order",
        lazy=True,
        order_by="OrderHistory.id",
        cascade="all, delete-orphan",
    )
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self, include_history: bool = True) -> dict:
        data = {
            "id": self.id,
            "orderId": self.order_number,
            "status": self.status,
            "productName": self.product_name,
            "brand": self.brand,
            "batchNo": self.batch_no,
            "manufactureDate": self.manufacture_date,
            "expiryDate": self.expiry_date,
            "quantity": self.quantity,
            "description": self.description,
            "brandId": self.brand_id,
            "brandName": self.brand_ref.brand_name if self.brand_ref else None,
            "createdBy": {
                "id": self.created_by.id,
                "name": self.created_by.name,
                "email": self.created_by.email,
                "role": self.created_by.role,
            } if self.created_by else None,
            "qrCodesGenerated": self.qr_codes_generated,
            "qrGeneratedCount": self.qr_generated_count,
            "dispatchDetails": {
                "trackingNumber": self.tracking_number,
                "courierName": self.courier_name,
                "notes": self.dispatch_notes,
                "dispatchedDate": to_utc_z(self.dispatched_at),
            } if self.dispatched_at else None,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
        if include_history:
            data["history"] = [entry.to_dict() for entry in self.history]
        return data


class OrderHistory(db.Model):
    """
    Append-only audit trail of order transitions.

    Rows are never updated or deleted (except with the order itself).
    """
    __tablename__ = "order_history"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    status = db.Column(db.String(32), nullable=False)
    changed_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    role = db.Column(db.String(32), nullable=True)
    comment = db.Column(db.Text, nullable=True)
    timestamp = db.Column(db.DateTime, nullable=False, default=utcnow)

    changed_by = db.relationship("User", foreign_keys=[changed_by_user_id])

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "timestamp": to_utc_z(self.timestamp),
            "changedBy": {
                "id": self.changed_by.id,
                "name": self.changed_by.name,
                "email": self.changed_by.email,
            } if self.changed_by else None,
            "role": self.role,
            "comment": self.comment,
        }
