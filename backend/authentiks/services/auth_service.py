# Overview: Service-layer operations for staff authentication; password hashing and login.

"""
Staff Authentication Service

WHY: Every back-office action (authorizing an order, dispatching a batch,
granting credits) must be attributable to one named login. Staff sign in
with email + password; consumers use mobile OTP (see otp_service).

SECURITY NOTES:
- Passwords hashed with bcrypt (cost from BCRYPT_ROUNDS, default 12)
- Minimum 8 characters required
- Inactive accounts cannot log in
- Session tokens managed separately (see session_service.py)
"""

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import User
from authentiks.time_utils import utcnow


MIN_PASSWORD_LENGTH = 8


class AuthError(Exception):
    """Raised when credentials are rejected."""
    pass


class PasswordValidationError(ValueError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 12))
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str | None) -> bool:
    """
    Verify password against bcrypt hash.

    WHY timing-safe: bcrypt.checkpw() prevents timing attacks automatically.
    Consumers have no password hash and can never pass this check.
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash in the database
        return False


def authenticate(email: str, password: str) -> User:
    """
    Authenticate a staff user by email and password.

    Updates last_login_at on success.

    Raises AuthError with a generic message on any failure so callers
    cannot learn which emails exist.
    """
    normalized = (email or "").strip().lower()
    user = db.session.query(User).filter(
        User.email == normalized,
        User.is_active.is_(True),
    ).first()

    if not user or not verify_password(password, user.password_hash):
        current_app.logger.info("Failed staff login for %s", normalized or "<blank>")
        raise AuthError("Invalid email or password")

    user.last_login_at = utcnow()
    db.session.commit()
    return user
