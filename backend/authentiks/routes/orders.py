# Overview: Flask API routes for QR orders; creation, lifecycle transitions and QR sheet download.

# backend/authentiks/routes/orders.py
"""
Order API routes

Lifecycle (see order_service):
    Pending Authorization -> Authorized -> Order Processing -> Dispatching
        -> Dispatched -> Received, or -> Rejected

SECURITY:
- Each route checks one capability from the role table
- Brand users are further limited to their own brand's orders (service layer)
- A refused authorization (insufficient credits) returns the structured
  shortfall so the client can offer a top-up
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import order_service, document_service
from ..services.credit_service import InsufficientCreditsError
from ..decorators import require_auth, require_capability
from .common import json_body, domain_error


orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.post("")
@require_auth
@require_capability("CREATE_ORDER")
def create_order_route():
    """
    Create an order (status Pending Authorization).

    Request body:
    {
        "productName": "Face Serum",
        "quantity": 100,
        "brand": "ACME",            (optional, defaults to the caller's brand)
        "batchNo": "B-12",          (optional)
        "manufactureDate": "2025-01-01",
        "expiryDate": "2026-01-01",
        "description": "..."
    }
    """
    try:
        order = order_service.create_order(g.current_user, json_body())
        return jsonify({"order": order.to_dict(), "message": "Order created successfully"}), 201

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to create order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("")
@require_auth
@require_capability("VIEW_ORDERS")
def list_orders_route():
    """Query params: status (optional)"""
    try:
        orders = order_service.list_orders(g.current_user, request.args.get("status"))
        return jsonify({"orders": [order.to_dict() for order in orders]}), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to list orders")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/stats/summary")
@require_auth
@require_capability("VIEW_ORDERS")
def order_stats_route():
    try:
        return jsonify(order_service.order_stats(g.current_user)), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to compute order stats")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/<int:order_id>")
@require_auth
@require_capability("VIEW_ORDERS")
def get_order_route(order_id: int):
    try:
        order = order_service.get_order(order_id, g.current_user)
        return jsonify({"order": order.to_dict()}), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to load order")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# TRANSITIONS
# =============================================================================

@orders_bp.put("/<int:order_id>/authorize")
@require_auth
@require_capability("AUTHORIZE_ORDER")
def authorize_order_route(order_id: int):
    """
    Authorize a pending order; spends `quantity` QR credits.

    Returns:
        200: order authorized
        400: wrong state, or insufficient credits:
             {"error", "insufficientCredits": true, "required", "available",
              "shortfall", "topupCostPerQr", "topupTotalCost", "companyId", "companyName"}
        403: another brand's order
        404: order not found
    """
    try:
        order = order_service.authorize_order(order_id, g.current_user)
        return jsonify({
            "order": order.to_dict(),
            "message": f"Order authorized. {order.quantity} QR credits used.",
        }), 200

    except InsufficientCreditsError as e:
        return jsonify(e.to_dict()), 400
    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to authorize order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.put("/<int:order_id>/process")
@require_auth
@require_capability("PROCESS_ORDER")
def process_order_route(order_id: int):
    """Accept an authorized order and generate its (inactive) QR codes."""
    try:
        order, count = order_service.process_order(order_id, g.current_user)
        return jsonify({
            "order": order.to_dict(),
            "qrCodesGenerated": count,
            "message": f"Order accepted. {count} QR codes generated.",
        }), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to process order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.put("/<int:order_id>/dispatching")
@require_auth
@require_capability("DISPATCH_ORDER")
def dispatching_order_route(order_id: int):
    try:
        order = order_service.mark_dispatching(order_id, g.current_user)
        return jsonify({"order": order.to_dict(), "message": "Order is being prepared for dispatch"}), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to mark order dispatching")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.put("/<int:order_id>/dispatch")
@require_auth
@require_capability("DISPATCH_ORDER")
def dispatch_order_route(order_id: int):
    """Request body: {"trackingNumber", "courierName", "notes" (optional)}"""
    try:
        order = order_service.dispatch_order(order_id, g.current_user, json_body())
        return jsonify({"order": order.to_dict(), "message": "Order dispatched"}), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to dispatch order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.put("/<int:order_id>/received")
@require_auth
@require_capability("RECEIVE_ORDER")
def received_order_route(order_id: int):
    """Confirm delivery; every QR code of the order becomes active."""
    try:
        order, activated = order_service.mark_received(order_id, g.current_user)
        return jsonify({
            "order": order.to_dict(),
            "qrCodesActivated": activated,
            "message": f"Order received. {activated} QR codes activated.",
        }), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to mark order received")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.put("/<int:order_id>/reject")
@require_auth
@require_capability("REJECT_ORDER")
def reject_order_route(order_id: int):
    """Request body: {"reason": "..."} (optional)"""
    try:
        data = json_body()
        order = order_service.reject_order(order_id, g.current_user, data.get("reason") or data.get("comment"))
        return jsonify({"order": order.to_dict(), "message": "Order rejected"}), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to reject order")
        return jsonify({"error": "Internal server error"}), 500


@orders_bp.get("/<int:order_id>/download")
@require_auth
@require_capability("DOWNLOAD_ORDER_QRS")
def download_order_route(order_id: int):
    """Returns {"pdfBase64", "fileName"} for the order's QR sheet."""
    try:
        order = order_service.get_order(order_id, g.current_user)
        pdf = document_service.order_sheet_base64(order)
        return jsonify({"pdfBase64": pdf, "fileName": f"{order.order_number}.pdf"}), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to build order QR sheet")
        return jsonify({"error": "Internal server error"}), 500
