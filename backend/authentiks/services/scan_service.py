# Overview: Service-layer operations for QR scans; classification, recording and scan analytics.

"""
QR Scan Classifier

PRECEDENCE (first match wins):
1. unknown code                      -> FAKE
2. known, not active                 -> INACTIVE (fake family)
3. known, active, never used         -> ORIGINAL (code becomes used)
4. known, active, already used       -> ALREADY_USED (points at the first scan)

Every attempt is recorded, FAKE included. The QR row is locked while the
outcome is decided so two simultaneous first scans cannot both be ORIGINAL.
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import QrCode, Scan, User, Brand
from ..models.scans import (
    SCAN_ORIGINAL,
    SCAN_FAKE,
    SCAN_ALREADY_USED,
    SCAN_INACTIVE,
)
from ..permissions import is_platform_role
from ..validation import ValidationError, AccessDeniedError
from authentiks.time_utils import to_utc_z, utcnow
from . import geocoding_service
from .concurrency import lock_for_update, run_with_retry
from .user_service import find_brand_by_name


class ScanError(ValueError):
    """Raised for invalid scan requests."""
    pass


class ScanAccessError(ScanError, AccessDeniedError):
    pass


def classify(qr: QrCode | None) -> str:
    """Scan status for the current server-held state of a code."""
    if qr is None:
        return SCAN_FAKE
    if not qr.is_active:
        return SCAN_INACTIVE
    if not qr.is_used:
        return SCAN_ORIGINAL
    return SCAN_ALREADY_USED


def _clean_code(qr_code) -> str:
    code = str(qr_code or "").strip()
    if not code:
        raise ScanError("qrCode is required")
    return code


def guess_brand(code: str) -> Brand | None:
    """Brand named by the code prefix before the first '-'."""
    if "-" not in code:
        return None
    return find_brand_by_name(code.split("-", 1)[0])


def check_code(qr_code) -> dict:
    """Cheap existence/activity pre-check. Records nothing."""
    code = _clean_code(qr_code)
    qr = db.session.query(QrCode).filter_by(code=code).first()
    if qr is None:
        return {"status": "FAKE", "isActive": False, "product": None}
    if not qr.is_active:
        return {"status": "INACTIVE", "isActive": False, "message": "This QR code is inactive."}
    return {
        "status": "FOUND",
        "isActive": True,
        "product": {
            "productId": qr.id,
            "productName": qr.product_name,
            "brand": qr.brand,
            "batchNo": qr.batch_no,
        },
    }


def _result_data(scan: Scan, qr: QrCode | None) -> dict:
    data = {
        "qrCode": scan.qr_code,
        "productId": scan.qr_code_id,
        "productName": scan.product_name,
        "brand": scan.brand,
        "expiryDate": scan.expiry_date,
        "place": scan.place,
        "latitude": scan.latitude,
        "longitude": scan.longitude,
        "scannedAt": to_utc_z(scan.created_at),
    }
    if qr is not None and scan.status in (SCAN_ORIGINAL, SCAN_ALREADY_USED):
        data["batchNo"] = qr.batch_no
        data["manufactureDate"] = qr.manufacture_date
    if scan.status == SCAN_ALREADY_USED:
        data["originalScan"] = scan.original_scan_summary()
    return data


def record_scan(user: User | None, data: dict) -> tuple[str, dict, Scan]:
    """
    Classify a scan, record it and return (status, response data, scan).

    `place` is taken from the request when given; otherwise it is
    reverse-geocoded from latitude/longitude before the QR row is locked.
    """
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    code = _clean_code(data.get("qrCode"))
    latitude, longitude = geocoding_service.parse_coordinates(data.get("latitude"), data.get("longitude"))
    place = str(data.get("place") or "").strip() or geocoding_service.reverse_geocode(latitude, longitude)
    user_id = user.id if user is not None else None

    def _op():
        qr = lock_for_update(db.session.query(QrCode).filter_by(code=code)).first()
        status = classify(qr)

        scan = Scan(
            qr_code=code,
            status=status,
            user_id=user_id,
            place=place,
            latitude=latitude,
            longitude=longitude,
            created_at=utcnow(),
        )
        if qr is None:
            brand = guess_brand(code)
            scan.brand = brand.brand_name if brand else None
            scan.brand_id = brand.id if brand else None
        else:
            scan.qr_code_id = qr.id
            scan.product_name = qr.product_name
            scan.brand = qr.brand
            scan.brand_id = qr.brand_id
            if scan.brand_id is None:
                brand = guess_brand(code)
                scan.brand_id = brand.id if brand else None
            if status != SCAN_INACTIVE:
                scan.expiry_date = qr.expiry_date
            if status == SCAN_ALREADY_USED:
                scan.original_scan_id = qr.first_scan_id

        db.session.add(scan)
        db.session.flush()

        if status == SCAN_ORIGINAL:
            qr.first_scan_id = scan.id
            qr.used_at = scan.created_at

        db.session.commit()
        return status, _result_data(scan, qr), scan

    status, result, scan = run_with_retry(_op)
    current_app.logger.info("Scan of %s by user %s: %s", code, user_id, status)
    return status, result, scan


# =============================================================================
# HISTORY & ANALYTICS
# =============================================================================

def scan_history(user: User) -> list[Scan]:
    return db.session.query(Scan).filter_by(user_id=user.id).order_by(
        Scan.created_at.desc(), Scan.id.desc()
    ).all()


def scan_stats(user: User) -> dict:
    rows = db.session.query(Scan.status, db.func.count(Scan.id)).filter(
        Scan.user_id == user.id
    ).group_by(Scan.status).all()
    counts = dict(rows)
    return {
        "totalScans": sum(counts.values()),
        "authentiks": counts.get(SCAN_ORIGINAL, 0),
        "counterfeit": counts.get(SCAN_FAKE, 0) + counts.get(SCAN_INACTIVE, 0),
        "alert": counts.get(SCAN_ALREADY_USED, 0),
    }


def brand_scans(user: User, brand_id=None) -> list[Scan]:
    """Scans of the caller's brand; admins see all, optionally filtered by brand."""
    query = db.session.query(Scan)
    if is_platform_role(user.role):
        if brand_id:
            query = query.filter(Scan.brand_id == brand_id)
    else:
        if not user.brand_id:
            raise ScanAccessError("No brand associated with this user")
        query = query.filter(Scan.brand_id == user.brand_id)
    return query.order_by(Scan.created_at.desc(), Scan.id.desc()).all()
