from __future__ import annotations

from ..extensions import db
from authentiks.time_utils import to_utc_z, utcnow


class QrCode(db.Model):
    """
    One printed QR code, i.e. one physical product unit.

    LIFECYCLE:
    - Order-generated codes are created inactive and activated when the
      order is received. Activation is never undone.
    - The first ORIGINAL scan sets first_scan_id/used_at. They are never
      cleared; every later scan of the code is a repeat scan.
    """
    __tablename__ = "qr_codes"
    __table_args__ = (
        db.Index("ix_qr_codes_brand_sequence", "brand", "sequence"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(255), nullable=False, unique=True, index=True)

    product_name = db.Column(db.String(255), nullable=False)
    brand = db.Column(db.String(255), nullable=False)
    brand_id = db.Column(db.Integer, db.ForeignKey("brands.id"), nullable=True, index=True)
    batch_no = db.Column(db.String(128), nullable=True)
    manufacture_date = db.Column(db.String(32), nullable=True)
    expiry_date = db.Column(db.String(32), nullable=True)

    # Per-brand running number
    sequence = db.Column(db.Integer, nullable=False, default=0)

    # Null for admin-created codes
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=True, index=True)

    is_active = db.Column(db.Boolean, nullable=False, default=False)

    # First ORIGINAL scan (plain column: scans reference qr_codes too)
    first_scan_id = db.Column(db.Integer, nullable=True)
    used_at = db.Column(db.DateTime, nullable=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    order = db.relationship("Order", backref=db.backref("qr_codes", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_used(self) -> bool:
        return self.first_scan_id is not None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "qrCode": self.code,
            "productName": self.product_name,
            "brand": self.brand,
            "brandId": self.brand_id,
            "batchNo": self.batch_no,
            "manufactureDate": self.manufacture_date,
            "expiryDate": self.expiry_date,
            "sequence": self.sequence,
            "orderId": self.order_id,
            "isActive": self.is_active,
            "isUsed": self.is_used,
            "usedAt": to_utc_z(self.used_at),
            "createdAt": to_utc_z(self.created_at),
        }
