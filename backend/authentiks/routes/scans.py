# Overview: Flask API routes for QR scans and counterfeit reports.

# backend/authentiks/routes/scans.py
"""
Scan & Report API routes

- POST /api/scan/check   pre-check, no auth, records nothing
- POST /api/scan         classify + record; anonymous scans allowed
- reports: consumers submit, admins triage, brand users read their brand's
"""

from flask import Blueprint, jsonify, current_app, g

from ..result_themes import theme_for
from ..services import scan_service, report_service
from ..decorators import require_auth, optional_auth, require_capability
from .common import json_body, domain_error, query_int


scans_bp = Blueprint("scans", __name__, url_prefix="/api/scan")


@scans_bp.post("/check")
def check_route():
    """Request body: {"qrCode": "..."} -> {status: FOUND|FAKE|INACTIVE, isActive, product?}"""
    try:
        return jsonify(scan_service.check_code(json_body().get("qrCode"))), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("QR pre-check failed")
        return jsonify({"error": "Check failed"}), 500


@scans_bp.post("")
@scans_bp.post("/")
@optional_auth
def scan_route():
    """
    Scan a code.

    Request body: {"qrCode", "place"?, "latitude"?, "longitude"?}

    Returns: {"status": ORIGINAL|FAKE|ALREADY_USED|INACTIVE, "data": {...}, "theme": {...}}
    """
    try:
        status, data, _ = scan_service.record_scan(g.current_user, json_body())
        payload = {"status": status, "data": data, "theme": theme_for(status).to_dict()}
        if status == "INACTIVE":
            payload["message"] = "This QR code is inactive."
        return jsonify(payload), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Scan failed to save")
        return jsonify({"error": "Scan failed to save"}), 500


@scans_bp.get("/history")
@require_auth
@require_capability("SCAN_QR")
def history_route():
    try:
        scans = scan_service.scan_history(g.current_user)
        return jsonify([scan.to_dict() for scan in scans]), 200
    except Exception:
        current_app.logger.exception("Failed to fetch scan history")
        return jsonify({"error": "Failed to fetch scan history"}), 500


@scans_bp.get("/stats")
@require_auth
@require_capability("SCAN_QR")
def stats_route():
    try:
        return jsonify(scan_service.scan_stats(g.current_user)), 200
    except Exception:
        current_app.logger.exception("Failed to fetch scan stats")
        return jsonify({"error": "Failed to fetch scan stats"}), 500


@scans_bp.get("/company/all")
@require_auth
@require_capability("VIEW_BRAND_SCANS")
def company_scans_route():
    """Query params: brandId (admins only)"""
    try:
        scans = scan_service.brand_scans(g.current_user, query_int("brandId"))
        return jsonify([scan.to_dict(include_user=True) for scan in scans]), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to fetch company scans")
        return jsonify({"error": "Failed to fetch scans"}), 500


# =============================================================================
# REPORTS
# =============================================================================

@scans_bp.post("/report")
@require_auth
@require_capability("SUBMIT_REPORT")
def submit_report_route():
    """
    Request body:
    {
        "productName", "brand", "description", "reportType": "COUNTERFEIT|FAKE",
        "images": [3..6 URLs], "latitude", "longitude", "qrCode"
    }
    """
    try:
        report = report_service.submit_report(g.current_user, json_body())
        return jsonify({
            "success": True,
            "message": "Report submitted successfully. Our team will investigate this.",
            "report": report.to_dict(),
        }), 201

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Report submission failed")
        return jsonify({"error": "Failed to submit report"}), 500


@scans_bp.get("/reports/my")
@require_auth
@require_capability("SUBMIT_REPORT")
def my_reports_route():
    try:
        reports = report_service.my_reports(g.current_user)
        return jsonify([report.to_dict() for report in reports]), 200
    except Exception:
        current_app.logger.exception("Failed to fetch reports")
        return jsonify({"error": "Failed to fetch reports"}), 500


@scans_bp.get("/reports/all")
@require_auth
@require_capability("VIEW_REPORTS")
def all_reports_route():
    try:
        reports = report_service.all_reports(g.current_user)
        return jsonify([report.to_dict(include_user=True) for report in reports]), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to fetch all reports")
        return jsonify({"error": "Failed to fetch reports"}), 500


@scans_bp.put("/reports/<int:report_id>/status")
@require_auth
@require_capability("MANAGE_REPORTS")
def report_status_route(report_id: int):
    """Request body: {"status": "Pending|Investigating|Resolved"}"""
    try:
        report = report_service.set_status(report_id, json_body().get("status"))
        return jsonify({"report": report.to_dict(include_user=True)}), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to update report status")
        return jsonify({"error": "Internal server error"}), 500


@scans_bp.put("/reports/<int:report_id>/counterfeit")
@require_auth
@require_capability("MANAGE_REPORTS")
def report_counterfeit_route(report_id: int):
    try:
        report = report_service.toggle_counterfeit(report_id)
        return jsonify({"report": report.to_dict(include_user=True)}), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to toggle counterfeit flag")
        return jsonify({"error": "Internal server error"}), 500
