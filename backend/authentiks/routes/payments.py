# Overview: Flask API routes for credit purchases; initiate, gateway callbacks, status, history, invoices.

# backend/authentiks/routes/payments.py
"""
Payment API routes

FLOW:
1. POST /initiate  -> {redirectUrl} (gateway) or completed immediately
2. gateway -> POST /callback or /webhook
3. client  -> GET /status/<merchantOrderId> until completed/failed

Callbacks are unauthenticated; only a pending payment can change state,
so duplicates are harmless.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import payment_service, document_service
from ..services.gateway_service import PaymentGatewayError
from ..decorators import require_auth, require_capability, require_any_capability
from .common import json_body, domain_error, query_int


payments_bp = Blueprint("payments", __name__, url_prefix="/api/payments")


@payments_bp.post("/initiate")
@require_auth
@require_capability("MANAGE_CREDITS")
def initiate_route():
    """
    Request body:
        {"type": "plan", "planId": 2, "couponCode": "..."}
        {"type": "topup", "quantity": 150, "couponCode": "..."}

    Returns:
        200: {paymentId, merchantOrderId, finalAmount, actualPaymentAmount,
              isTestAccount, breakdown, redirectUrl, autoCompleted?, creditsAdded?}
        400: invalid type / quantity, or caller has no company
        404: plan not found
        502: gateway refused the checkout (payment recorded as failed)
    """
    try:
        return jsonify(payment_service.initiate_payment(g.current_user, json_body())), 200

    except PaymentGatewayError as e:
        return jsonify({"error": "Payment gateway error", "detail": str(e)}), 502
    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to initiate payment")
        return jsonify({"error": "Failed to initiate payment"}), 500


@payments_bp.post("/callback")
def callback_route():
    """
    Gateway redirect/server callback.

    Request body: {"response": "<base64 JSON>"} or {merchantOrderId, transactionId, state}
    """
    try:
        return jsonify(payment_service.handle_callback(json_body())), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to process payment callback")
        return jsonify({"error": "Callback processing failed"}), 500


@payments_bp.post("/webhook")
def webhook_route():
    """Same payload as /callback; always acknowledged with 200 so the gateway stops retrying."""
    try:
        result = payment_service.handle_callback(json_body())
        return jsonify({"success": True, **result}), 200

    except ValueError as e:
        current_app.logger.warning("Ignored payment webhook: %s", e)
        return jsonify({"success": False, "message": str(e)}), 200
    except Exception:
        current_app.logger.exception("Failed to process payment webhook")
        return jsonify({"success": False, "message": "Webhook processing failed"}), 200


@payments_bp.get("/status/<merchant_order_id>")
@require_auth
@require_any_capability("MANAGE_CREDITS", "MANAGE_BILLING")
def status_route(merchant_order_id: str):
    try:
        payment = payment_service.get_status(merchant_order_id, g.current_user)
        return jsonify({"payment": payment.to_dict(), "status": payment.status}), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to fetch payment status")
        return jsonify({"error": "Internal server error"}), 500


@payments_bp.get("/history")
@require_auth
@require_any_capability("MANAGE_CREDITS", "MANAGE_BILLING")
def history_route():
    """Query params: limit (default 100), companyId (admins only)"""
    try:
        payments = payment_service.payment_history(
            g.current_user,
            limit=request.args.get("limit", 100),
            company_id=query_int("companyId"),
        )
        return jsonify({"payments": [payment.to_dict() for payment in payments]}), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to fetch payment history")
        return jsonify({"error": "Internal server error"}), 500


@payments_bp.get("/<int:payment_id>/invoice")
@require_auth
@require_any_capability("MANAGE_CREDITS", "MANAGE_BILLING")
def invoice_route(payment_id: int):
    """Returns {"pdfBase64", "fileName"} for a completed payment."""
    try:
        payment = payment_service.get_payment(payment_id, g.current_user)
        pdf = document_service.to_base64(document_service.invoice_pdf(payment))
        return jsonify({"pdfBase64": pdf, "fileName": f"invoice-{payment.merchant_order_id}.pdf"}), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to build invoice")
        return jsonify({"error": "Internal server error"}), 500


@payments_bp.get("/test-account")
@require_auth
def test_account_route():
    """Returns {isTestAccount, testAmount} for the caller's company."""
    try:
        return jsonify(payment_service.is_test_account(g.current_user)), 200
    except Exception:
        current_app.logger.exception("Failed to check test account")
        return jsonify({"error": "Internal server error"}), 500
