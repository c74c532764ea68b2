# Overview: Flask API routes for price plans, billing settings, coupons and the price calculator.

# backend/authentiks/routes/plans.py
"""
Pricing API routes

Public:
- GET  /api/plans                    plan catalogue
- GET  /api/plans/settings           GST + additional charges
- POST /api/plans/calculate-price    full breakdown for a base amount
- POST /api/plans/coupons/validate   check a coupon code

Everything else requires MANAGE_BILLING.
"""

from flask import Blueprint, jsonify, current_app, g

from ..services import pricing_service
from ..decorators import require_auth, require_capability
from .common import json_body, domain_error


plans_bp = Blueprint("plans", __name__, url_prefix="/api/plans")


# =============================================================================
# PUBLIC
# =============================================================================

@plans_bp.get("")
def list_plans_route():
    try:
        return jsonify([plan.to_dict() for plan in pricing_service.list_plans()]), 200
    except Exception:
        current_app.logger.exception("Failed to list plans")
        return jsonify({"error": "Internal server error"}), 500


@plans_bp.get("/settings")
def get_settings_route():
    try:
        return jsonify(pricing_service.get_settings().to_dict()), 200
    except Exception:
        current_app.logger.exception("Failed to load billing settings")
        return jsonify({"error": "Internal server error"}), 500


@plans_bp.post("/calculate-price")
def calculate_price_route():
    """
    Request body: {"baseAmount": 500, "couponCode": "WELCOME10" (optional)}

    Returns:
    {
        "baseAmount", "gstPercentage", "gstAmount",
        "additionalCharges": [{"name", "type", "value", "amount"}],
        "chargesTotal", "couponDiscount", "couponInfo", "subtotal", "finalAmount"
    }
    """
    try:
        breakdown = pricing_service.calculate_price(json_body())
        return jsonify(breakdown.to_dict()), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to calculate price")
        return jsonify({"error": "Internal server error"}), 500


@plans_bp.post("/coupons/validate")
def validate_coupon_route():
    """
    Request body: {"code": "WELCOME10", "baseAmount": 500}

    Returns:
        200: {valid: true, couponId, code, discountType, discountValue, discount, description}
        400: coupon inactive, expired, exhausted or below minimum amount
        404: unknown code
    """
    try:
        data = json_body()
        return jsonify(pricing_service.validate_coupon(data.get("code"), data.get("baseAmount"))), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to validate coupon")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# PLANS (admin)
# =============================================================================

@plans_bp.post("")
@require_auth
@require_capability("MANAGE_BILLING")
def create_plan_route():
    """Request body: {name, pricePerQr, qrCredits, minQrPerOrder, validity, isPopular, isTrial, saveText, features}"""
    try:
        plan = pricing_service.create_plan(json_body())
        current_app.logger.info("User %s created plan %s", g.current_user.id, plan.name)
        return jsonify({"plan": plan.to_dict()}), 201

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to create plan")
        return jsonify({"error": "Internal server error"}), 500


@plans_bp.put("/<int:plan_id>")
@require_auth
@require_capability("MANAGE_BILLING")
def update_plan_route(plan_id: int):
    try:
        plan = pricing_service.update_plan(plan_id, json_body())
        return jsonify({"plan": plan.to_dict()}), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to update plan")
        return jsonify({"error": "Internal server error"}), 500


@plans_bp.delete("/<int:plan_id>")
@require_auth
@require_capability("MANAGE_BILLING")
def delete_plan_route(plan_id: int):
    try:
        pricing_service.delete_plan(plan_id)
        return jsonify({"message": "Plan deleted"}), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to delete plan")
        return jsonify({"error": "Internal server error"}), 500


@plans_bp.put("/settings")
@require_auth
@require_capability("MANAGE_BILLING")
def update_settings_route():
    """Request body: {"gstPercentage": 18, "additionalCharges": [...]} (each key optional)"""
    try:
        settings = pricing_service.update_settings(json_body())
        return jsonify(settings.to_dict()), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to update billing settings")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# COUPONS (admin)
# =============================================================================

@plans_bp.get("/coupons")
@require_auth
@require_capability("MANAGE_BILLING")
def list_coupons_route():
    try:
        return jsonify([coupon.to_dict() for coupon in pricing_service.list_coupons()]), 200
    except Exception:
        current_app.logger.exception("Failed to list coupons")
        return jsonify({"error": "Internal server error"}), 500


@plans_bp.post("/coupons")
@require_auth
@require_capability("MANAGE_BILLING")
def create_coupon_route():
    """
    Request body:
    {
        "code": "WELCOME10", "discountType": "percentage|flat", "discountValue": 10,
        "minAmount": 0, "maxDiscount": 0, "expiryDate": null, "usageLimit": 0,
        "description": "", "isActive": true
    }
    """
    try:
        coupon = pricing_service.create_coupon(g.current_user, json_body())
        return jsonify({"coupon": coupon.to_dict()}), 201

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to create coupon")
        return jsonify({"error": "Internal server error"}), 500


@plans_bp.put("/coupons/<int:coupon_id>")
@require_auth
@require_capability("MANAGE_BILLING")
def update_coupon_route(coupon_id: int):
    try:
        coupon = pricing_service.update_coupon(coupon_id, json_body())
        return jsonify({"coupon": coupon.to_dict()}), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to update coupon")
        return jsonify({"error": "Internal server error"}), 500


@plans_bp.delete("/coupons/<int:coupon_id>")
@require_auth
@require_capability("MANAGE_BILLING")
def delete_coupon_route(coupon_id: int):
    try:
        pricing_service.delete_coupon(coupon_id)
        return jsonify({"message": "Coupon deleted"}), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to delete coupon")
        return jsonify({"error": "Internal server error"}), 500
