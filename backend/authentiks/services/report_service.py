# Overview: Service-layer operations for consumer counterfeit reports.

"""
Counterfeit Reports

Submission rules:
- the reporter's profile has a name and a mobile number
- at most MAX_REPORTS_PER_USER reports per user
- reportType is COUNTERFEIT or FAKE
- REPORT_MIN_IMAGES..REPORT_MAX_IMAGES image URLs (inclusive)

Reports never touch orders, QR codes or credits.
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Report, User, Brand
from ..models.scans import REPORT_TYPES, REPORT_STATUSES, REPORT_PENDING
from ..permissions import is_platform_role
from ..validation import ValidationError, NotFoundError, AccessDeniedError, require_fields
from . import geocoding_service


class ReportError(ValueError):
    """Raised when a report cannot be submitted or updated."""
    pass


class ReportNotFoundError(ReportError, NotFoundError):
    pass


class ReportAccessError(ReportError, AccessDeniedError):
    pass


def image_bounds() -> tuple[int, int]:
    config = current_app.config
    return int(config.get("REPORT_MIN_IMAGES", 3)), int(config.get("REPORT_MAX_IMAGES", 6))


def validate_images(images) -> list[str]:
    low, high = image_bounds()
    if not isinstance(images, list):
        raise ReportError(f"Minimum {low} images required")
    cleaned = [str(url).strip() for url in images if isinstance(url, str) and url.strip()]
    if len(cleaned) != len(images):
        raise ReportError("Images must be non-empty URLs")
    if len(cleaned) < low:
        raise ReportError(f"Minimum {low} images required")
    if len(cleaned) > high:
        raise ReportError(f"Maximum {high} images allowed")
    return cleaned


def submit_report(user: User, data: dict) -> Report:
    if not user.name or not user.mobile:
        raise ReportError(
            "Profile incomplete. Please update your name and contact details in your profile before reporting."
        )

    limit = int(current_app.config.get("MAX_REPORTS_PER_USER", 5))
    if db.session.query(Report).filter_by(user_id=user.id).count() >= limit:
        raise ReportError(f"Limit exceeded. You can only submit a maximum of {limit} reports.")

    require_fields(data, ("productName", "brand"))
    report_type = str(data.get("reportType") or "COUNTERFEIT").strip().upper()
    if report_type not in REPORT_TYPES:
        raise ValidationError("reportType must be COUNTERFEIT or FAKE")
    images = validate_images(data.get("images"))

    latitude, longitude = geocoding_service.parse_coordinates(data.get("latitude"), data.get("longitude"))
    place = geocoding_service.reverse_geocode(latitude, longitude)

    report = Report(
        user_id=user.id,
        product_name=str(data["productName"]).strip(),
        brand=str(data["brand"]).strip(),
        description=data.get("description"),
        report_type=report_type,
        images=images,
        qr_code=str(data.get("qrCode") or "").strip() or None,
        latitude=latitude,
        longitude=longitude,
        place=place,
        status=REPORT_PENDING,
    )
    db.session.add(report)
    db.session.commit()
    current_app.logger.info("Report %s submitted by user %s for brand %s", report.id, user.id, report.brand)
    return report


def my_reports(user: User) -> list[Report]:
    return db.session.query(Report).filter_by(user_id=user.id).order_by(
        Report.created_at.desc(), Report.id.desc()
    ).all()


def all_reports(user: User) -> list[Report]:
    """Admins see every report; brand users see reports naming their brand."""
    query = db.session.query(Report)
    if not is_platform_role(user.role):
        brand = db.session.get(Brand, user.brand_id) if user.brand_id else None
        if brand is None:
            raise ReportAccessError("No brand associated with this user")
        query = query.filter(db.func.lower(Report.brand) == brand.brand_name.strip().lower())
    return query.order_by(Report.created_at.desc(), Report.id.desc()).all()


def _get(report_id: int) -> Report:
    report = db.session.get(Report, report_id)
    if report is None:
        raise ReportNotFoundError("Report not found")
    return report


def set_status(report_id: int, status) -> Report:
    if status not in REPORT_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(REPORT_STATUSES)}")
    report = _get(report_id)
    previous = report.status
    report.status = status
    db.session.commit()
    current_app.logger.info("Report %s status %s -> %s", report.id, previous, status)
    return report


def toggle_counterfeit(report_id: int) -> Report:
    report = _get(report_id)
    report.is_counterfeit = not report.is_counterfeit
    db.session.commit()
    current_app.logger.info("Report %s counterfeit flag set to %s", report.id, report.is_counterfeit)
    return report
