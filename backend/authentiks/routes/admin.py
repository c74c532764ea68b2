# Overview: Flask API routes for the admin dashboard; staff login, accounts, QR administration, form config.

# backend/authentiks/routes/admin.py
"""
Admin API routes

SECURITY:
- Staff log in with email + password (bcrypt)
- Every other route requires a session and one capability from the role table
- Company users manage only their own brand's authorizer/creator logins
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import (
    auth_service,
    user_service,
    qr_service,
    document_service,
    form_config_service,
    payment_service,
)
from ..services.auth_service import AuthError
from ..decorators import require_auth, require_capability
from .auth import login_response
from .common import json_body, domain_error, query_int


admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


# =============================================================================
# LOGIN
# =============================================================================

@admin_bp.post("/login")
def admin_login_route():
    """
    Staff login.

    Request body: {"email": "...", "password": "..."}

    Returns:
        200: {token, role, user}
        400: missing fields
        401: invalid credentials
    """
    try:
        data = json_body()
        email = data.get("email")
        password = data.get("password")
        if not email or not password:
            return jsonify({"error": "email and password required"}), 400

        user = auth_service.authenticate(email, password)
        return jsonify(login_response(user)), 200

    except AuthError as e:
        return jsonify({"error": str(e)}), 401
    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to login staff user")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.get("/me")
@require_auth
def admin_me_route():
    return jsonify({"user": g.current_user.to_dict(), "role": g.role}), 200


# =============================================================================
# PLATFORM STAFF
# =============================================================================

@admin_bp.get("/users")
@require_auth
@require_capability("MANAGE_STAFF")
def list_staff_route():
    try:
        users = user_service.list_staff_users(g.current_user)
        return jsonify({"users": [user.to_dict() for user in users]}), 200
    except Exception:
        current_app.logger.exception("Failed to list staff users")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.post("/create-user")
@require_auth
@require_capability("MANAGE_STAFF")
def create_staff_route():
    """
    Create an admin or manager.

    Request body: {"email", "password", "role": "admin|manager", "name"}

    superadmin may create admin and manager; admin may create manager.
    """
    try:
        user = user_service.create_staff_user(g.current_user, json_body())
        return jsonify({"user": user.to_dict(), "message": "User created"}), 201

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to create staff user")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# COMPANIES & BRANDS
# =============================================================================

@admin_bp.get("/companies")
@require_auth
@require_capability("MANAGE_COMPANIES")
def list_companies_route():
    try:
        companies = user_service.list_companies()
        payload = []
        for company in companies:
            item = company.to_dict()
            item["brands"] = [brand.to_dict() for brand in company.brands]
            payload.append(item)
        return jsonify({"companies": payload}), 200
    except Exception:
        current_app.logger.exception("Failed to list companies")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.post("/companies")
@require_auth
@require_capability("MANAGE_COMPANIES")
def create_company_route():
    """
    Create a company, its brand(s) and its company login.

    Request body:
    {
        "companyName": "Acme Pvt Ltd", "legalEntity": "...", ...,
        "brandName": "ACME" | "brands": [{"brandName", "brandLogo"}],
        "loginEmail": "owner@acme.in", "loginPassword": "..."
    }
    """
    try:
        company, brands, login = user_service.create_company(g.current_user, json_body())
        return jsonify({
            "company": company.to_dict(),
            "brands": [brand.to_dict() for brand in brands],
            "user": login.to_dict() if login else None,
            "message": "Company created",
        }), 201

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to create company")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.get("/brands")
@require_auth
@require_capability("MANAGE_COMPANIES")
def list_brands_route():
    try:
        brands = user_service.list_brands(query_int("companyId"))
        return jsonify({"brands": [brand.to_dict() for brand in brands]}), 200
    except Exception:
        current_app.logger.exception("Failed to list brands")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.post("/brands")
@require_auth
@require_capability("MANAGE_COMPANIES")
def create_brand_route():
    """Request body: {"brandName", "companyId", "brandLogo"}"""
    try:
        brand = user_service.create_brand(g.current_user, json_body())
        return jsonify({"brand": brand.to_dict()}), 201

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to create brand")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# BRAND STAFF (company users)
# =============================================================================

@admin_bp.get("/users/staff")
@require_auth
@require_capability("MANAGE_COMPANY_STAFF")
def list_brand_staff_route():
    try:
        users = user_service.list_brand_staff(g.current_user)
        return jsonify({"users": [user.to_dict() for user in users]}), 200
    except Exception:
        current_app.logger.exception("Failed to list brand staff")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.post("/users/staff")
@require_auth
@require_capability("MANAGE_COMPANY_STAFF")
def create_brand_staff_route():
    """Request body: {"email", "password", "role": "authorizer|creator", "name"}"""
    try:
        user = user_service.create_brand_staff(g.current_user, json_body())
        return jsonify({"user": user.to_dict(), "message": "User created"}), 201

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to create brand staff")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# QR CODES
# =============================================================================

@admin_bp.get("/qrs")
@require_auth
@require_capability("VIEW_QRS")
def list_qrs_route():
    """Query params: page, limit, orderId"""
    try:
        result = qr_service.list_codes(
            g.current_user,
            page=request.args.get("page", 1),
            limit=request.args.get("limit", 50),
            order_id=query_int("orderId"),
        )
        return jsonify(result), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to list QR codes")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.post("/create-qr")
@require_auth
@require_capability("CREATE_QRS")
def create_qr_route():
    """
    Create active QR codes directly.

    Request body: {productName, brand, batchNo, manufactureDate, expiryDate, quantity}

    Returns: {products, count, pdfBase64}
    """
    try:
        data = json_body()
        codes = qr_service.create_codes(g.current_user, data)
        pdf = document_service.codes_sheet_base64(codes, f"{data.get('brand')} - {data.get('productName')}")
        return jsonify({
            "products": [qr.to_dict() for qr in codes],
            "count": len(codes),
            "pdfBase64": pdf,
        }), 201

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to create QR codes")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.post("/bulk-upload-qrs")
@require_auth
@require_capability("CREATE_QRS")
def bulk_upload_qrs_route():
    """
    Create one active code per uploaded row.

    Request body: [{productName, brand, batchNo, manufactureDate, expiryDate}, ...]
    """
    try:
        codes = qr_service.bulk_create(g.current_user, json_body(default=[]))
        return jsonify({
            "message": f"{len(codes)} QR codes created",
            "count": len(codes),
            "pdfBase64": document_service.codes_sheet_base64(codes, "Bulk upload"),
        }), 201

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to bulk-create QR codes")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# FORM CONFIG
# =============================================================================

@admin_bp.get("/form-config")
@require_auth
@require_capability("VIEW_QRS")
def get_form_config_route():
    try:
        return jsonify(form_config_service.get_active_config().to_dict()), 200
    except Exception:
        current_app.logger.exception("Failed to load form config")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.post("/form-config")
@require_auth
@require_capability("MANAGE_FORM_CONFIG")
def save_form_config_route():
    """Request body: {formName, description, customFields[], staticFields, variants[]}"""
    try:
        config = form_config_service.save_config(g.current_user, json_body())
        return jsonify({"config": config.to_dict(), "message": "Form configuration saved"}), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to save form config")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# TEST ACCOUNTS
# =============================================================================

@admin_bp.get("/test-accounts")
@require_auth
@require_capability("MANAGE_BILLING")
def list_test_accounts_route():
    try:
        accounts = payment_service.list_test_accounts()
        return jsonify({"testAccounts": [account.to_dict() for account in accounts]}), 200
    except Exception:
        current_app.logger.exception("Failed to list test accounts")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.post("/test-accounts")
@require_auth
@require_capability("MANAGE_BILLING")
def create_test_account_route():
    """Request body: {"companyId", "testAmount", "isActive", "description"}"""
    try:
        account = payment_service.create_test_account(g.current_user, json_body())
        return jsonify({"testAccount": account.to_dict()}), 201

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to create test account")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.put("/test-accounts/<int:account_id>")
@require_auth
@require_capability("MANAGE_BILLING")
def update_test_account_route(account_id: int):
    try:
        account = payment_service.update_test_account(account_id, json_body())
        return jsonify({"testAccount": account.to_dict()}), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to update test account")
        return jsonify({"error": "Internal server error"}), 500


@admin_bp.delete("/test-accounts/<int:account_id>")
@require_auth
@require_capability("MANAGE_BILLING")
def delete_test_account_route(account_id: int):
    try:
        payment_service.delete_test_account(account_id)
        return jsonify({"message": "Test account deleted"}), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to delete test account")
        return jsonify({"error": "Internal server error"}), 500
