# Overview: Flask API routes for the QR credit balance, ledger, gate dry-run and admin grants.

# backend/authentiks/routes/credits.py
"""
QR credit API routes

Company users read their own balance and ledger. Platform admins grant
credits outside the payment flow; every grant is a ledger row.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import credit_service
from ..decorators import require_auth, require_capability, require_any_capability
from .common import json_body, domain_error


credits_bp = Blueprint("credits", __name__, url_prefix="/api/admin/credits")


@credits_bp.get("/balance")
@require_auth
@require_capability("MANAGE_CREDITS")
def balance_route():
    """Returns: {companyId, companyName, qrCredits}"""
    try:
        return jsonify(credit_service.get_balance(g.current_user)), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to fetch credit balance")
        return jsonify({"error": "Internal server error"}), 500


@credits_bp.get("/transactions")
@require_auth
@require_capability("MANAGE_CREDITS")
def transactions_route():
    """Query params: page (default 1), limit (default 20, max 100)"""
    try:
        result = credit_service.list_transactions(
            g.current_user,
            page=request.args.get("page", 1),
            limit=request.args.get("limit", 20),
        )
        return jsonify(result), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to list credit transactions")
        return jsonify({"error": "Internal server error"}), 500


@credits_bp.get("/check/<int:order_id>")
@require_auth
@require_any_capability("MANAGE_CREDITS", "GRANT_CREDITS")
def check_order_route(order_id: int):
    """
    Dry-run the credit gate for an order.

    Returns: {required, available, sufficient, shortfall, topupCostPerQr, topupTotalCost}
    """
    try:
        return jsonify(credit_service.check_order(order_id, g.current_user)), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to check credits for order")
        return jsonify({"error": "Internal server error"}), 500


@credits_bp.post("/grant")
@require_auth
@require_capability("GRANT_CREDITS")
def grant_route():
    """Request body: {"companyId": 3, "amount": 500, "note": "..."}"""
    try:
        data = json_body()
        if not data.get("companyId"):
            return jsonify({"error": "companyId is required"}), 400

        txn = credit_service.grant_credits(data["companyId"], data.get("amount"), g.current_user, data.get("note"))
        current_app.logger.info(
            "User %s granted %d QR credits to company %s", g.current_user.id, txn.amount, txn.company_id
        )
        return jsonify({
            "transaction": txn.to_dict(),
            "qrCredits": txn.balance_after,
            "message": f"{txn.amount} QR credits granted",
        }), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to grant credits")
        return jsonify({"error": "Internal server error"}), 500
