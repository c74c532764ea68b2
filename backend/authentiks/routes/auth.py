# Overview: Flask API routes for consumer authentication (mobile OTP), sessions and profile.

# backend/authentiks/routes/auth.py
"""
Authentication API routes

Consumers sign in with a mobile OTP; the account is created on first
successful verification. Staff sign in through POST /api/admin/login.

SECURITY:
- OTP codes are bcrypt-hashed, expire, and allow a limited number of tries
- Session tokens are stored hashed and revoked on logout
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..permissions import (
    ALL_CATEGORIES,
    get_permission_definition,
    get_permissions_by_category,
    get_role_permissions,
)
from ..services import otp_service, session_service, user_service
from ..services.otp_service import OtpError
from ..decorators import require_auth
from .common import json_body, domain_error


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def login_response(user):
    """Issue a session for `user` and build the login payload."""
    _, token = session_service.create_session(user)
    return {
        "token": token,
        "role": user.role,
        "user": user.to_dict(),
        "permissions": sorted(get_role_permissions(user.role)),
        "message": "Login successful",
    }


@auth_bp.post("/otp/request")
def request_otp_route():
    """
    Send a one-time code to a mobile number.

    Request body: {"mobile": "+919876543210"}
    """
    try:
        data = json_body()
        challenge = otp_service.request_otp(data.get("mobile"))
        return jsonify({
            "message": "OTP sent",
            "mobile": challenge.mobile,
            "expiresIn": current_app.config.get("OTP_TTL_MINUTES", 5) * 60,
        }), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to send OTP")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/otp/verify")
def verify_otp_route():
    """
    Verify a code and sign the consumer in.

    Request body: {"mobile": "...", "otp": "123456"}

    Returns:
        200: {token, role, user}
        400: invalid input
        401: wrong, expired or exhausted code
    """
    try:
        data = json_body()
        user = otp_service.verify_otp(data.get("mobile"), data.get("otp"))
        return jsonify(login_response(user)), 200

    except OtpError as e:
        return jsonify({"error": str(e)}), 401
    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to verify OTP")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    """
    Revoke session token (logout).

    Expects Authorization header: Bearer <token>
    """
    try:
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authorization header required"}), 401

        token = auth_header.split(" ", 1)[1]
        if not session_service.revoke_session(token):
            return jsonify({"error": "Invalid or expired token"}), 401

        return jsonify({"message": "Logout successful"}), 200

    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({
        "user": g.current_user.to_dict(),
        "role": g.role,
        "permissions": sorted(get_role_permissions(g.role)),
    }), 200


@auth_bp.get("/permissions")
@require_auth
def permissions_route():
    """Capabilities of the caller's role with names and descriptions, grouped by category."""
    granted = get_role_permissions(g.role)
    categories = {}
    for category in ALL_CATEGORIES:
        codes = [perm[0] for perm in get_permissions_by_category(category) if perm[0] in granted]
        if codes:
            categories[category] = [get_permission_definition(code) for code in codes]
    return jsonify({"role": g.role, "categories": categories}), 200


@auth_bp.put("/profile")
@require_auth
def update_profile_route():
    """
    Update the caller's profile.

    Request body (all optional): {name, dob, gender, country, state, city}
    """
    try:
        user = user_service.update_profile(g.current_user, json_body())
        return jsonify({"user": user.to_dict(), "message": "Profile updated"}), 200

    except ValueError as e:
        return domain_error(e)
    except Exception:
        current_app.logger.exception("Failed to update profile")
        return jsonify({"error": "Internal server error"}), 500
