from __future__ import annotations

from ..extensions import db
from authentiks.time_utils import to_utc_z, utcnow


SCAN_ORIGINAL = "ORIGINAL"
SCAN_FAKE = "FAKE"
SCAN_ALREADY_USED = "ALREADY_USED"
SCAN_INACTIVE = "INACTIVE"

SCAN_STATUSES = (SCAN_ORIGINAL, SCAN_FAKE, SCAN_ALREADY_USED, SCAN_INACTIVE)

REPORT_TYPES = ("COUNTERFEIT", "FAKE")

REPORT_PENDING = "Pending"
REPORT_INVESTIGATING = "Investigating"
REPORT_RESOLVED = "Resolved"
REPORT_STATUSES = (REPORT_PENDING, REPORT_INVESTIGATING, REPORT_RESOLVED)


class Scan(db.Model):
    """
    Immutable record of one scan attempt.

    Every attempt is stored, FAKE included. Rows are never updated.
    """
    __tablename__ = "scans"
    __table_args__ = (
        db.Index("ix_scans_user_created", "user_id", "created_at"),
        db.Index("ix_scans_brand_status", "brand_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    qr_code = db.Column(db.String(255), nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False)

    qr_code_id = db.Column(db.Integer, db.ForeignKey("qr_codes.id"), nullable=True, index=True)
    product_name = db.Column(db.String(255), nullable=True)
    brand = db.Column(db.String(255), nullable=True)
    brand_id = db.Column(db.Integer, db.ForeignKey("brands.id"), nullable=True)
    expiry_date = db.Column(db.String(32), nullable=True)

    # Anonymous scans carry no user
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)

    place = db.Column(db.String(255), nullable=True)
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)

    # Set on ALREADY_USED: the scan that first consumed the code
    original_scan_id = db.Column(db.Integer, db.ForeignKey("scans.id"), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship("User", foreign_keys=[user_id])
    qr = db.relationship("QrCode", foreign_keys=[qr_code_id])
    original_scan = db.relationship("Scan", remote_side=[id])

    def original_scan_summary(self) -> dict | None:
        original = self.original_scan
        if original is None:
            return None
        scanned_by = "Unknown"
        if original.user is not None:
            scanned_by = original.user.mobile or original.user.name or original.user.email or "Unknown"
        return {
            "scannedBy": scanned_by,
            "scannedByUserId": original.user_id,
            "scannedAt": to_utc_z(original.created_at),
            "place": original.place,
        }

    def to_dict(self, include_user: bool = False) -> dict:
        data = {
            "id": self.id,
            "qrCode": self.qr_code,
            "status": self.status,
            "productId": self.qr_code_id,
            "productName": self.product_name,
            "brand": self.brand,
            "brandId": self.brand_id,
            "expiryDate": self.expiry_date,
            "userId": self.user_id,
            "place": self.place,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "createdAt": to_utc_z(self.created_at),
        }
        if self.status == SCAN_ALREADY_USED:
            data["originalScan"] = self.original_scan_summary()
        if include_user:
            data["user"] = {
                "id": self.user.id,
                "name": self.user.name,
                "mobile": self.user.mobile,
                "email": self.user.email,
            } if self.user else None
        return data


class Report(db.Model):
    """
    Consumer report of a counterfeit or duplicate product.

    Reports stand alone: they never touch orders or QR state.
    """
    __tablename__ = "reports"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    product_name = db.Column(db.String(255), nullable=False)
    brand = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    report_type = db.Column(db.String(16), nullable=False, default="COUNTERFEIT")

    # Image URLs hosted by the client's upload provider
    images = db.Column(db.JSON, nullable=False, default=list)

    qr_code = db.Column(db.String(255), nullable=True)
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)
    place = db.Column(db.String(255), nullable=False, default="Unknown location")

    status = db.Column(db.String(16), nullable=False, default=REPORT_PENDING, index=True)
    is_counterfeit = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", foreign_keys=[user_id])

    def to_dict(self, include_user: bool = False) -> dict:
        data = {
            "id": self.id,
            "userId": self.user_id,
            "productName": self.product_name,
            "brand": self.brand,
            "description": self.description,
            "reportType": self.report_type,
            "images": list(self.images or []),
            "qrCode": self.qr_code,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "place": self.place,
            "status": self.status,
            "isCounterfeit": self.is_counterfeit,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
        if include_user:
            data["user"] = {
                "id": self.user.id,
                "name": self.user.name,
                "mobile": self.user.mobile,
            } if self.user else None
        return data
