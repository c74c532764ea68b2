# Overview: Service-layer operations for consumer mobile OTP login.

"""
Mobile OTP Login

Consumers sign in with a 6-digit code sent to their mobile number. The
code is bcrypt hashed like a password, expires after OTP_TTL_MINUTES and
tolerates OTP_MAX_ATTEMPTS wrong guesses. A successful verification finds
or creates the consumer account (role "user").

OTP_TEST_MOBILE always receives OTP_TEST_CODE (app-store review logins).
"""

import re
import secrets
from datetime import timedelta

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import OtpChallenge, User
from ..permissions import ROLE_USER
from ..validation import ValidationError
from authentiks.time_utils import utcnow


OTP_LENGTH = 6
MOBILE_PATTERN = re.compile(r"^\+?\d{10,15}$")


class OtpError(Exception):
    """Raised when an OTP cannot be verified."""
    pass


def normalize_mobile(mobile) -> str:
    cleaned = re.sub(r"[\s\-()]", "", str(mobile or ""))
    if not MOBILE_PATTERN.match(cleaned):
        raise ValidationError("A valid mobile number is required")
    return cleaned


def send_sms(mobile: str, message: str) -> None:
    """
    Deliver an SMS.

    No SMS provider is wired in; the message is logged so it can be read
    from the server log during development.
    """
    current_app.logger.info("SMS to %s: %s", mobile, message)


def _generate_code() -> str:
    return "".join(secrets.choice("0123456789") for _ in range(OTP_LENGTH))


def request_otp(mobile) -> OtpChallenge:
    """
    Issue a fresh OTP for a mobile number.

    Earlier unconsumed challenges for the same number are invalidated.
    """
    mobile = normalize_mobile(mobile)
    config = current_app.config
    now = utcnow()

    if config.get("OTP_TEST_MOBILE") and mobile == config["OTP_TEST_MOBILE"]:
        code = config.get("OTP_TEST_CODE", "123456")
    else:
        code = _generate_code()

    db.session.query(OtpChallenge).filter(
        OtpChallenge.mobile == mobile,
        OtpChallenge.consumed_at.is_(None),
    ).update({"consumed_at": now}, synchronize_session=False)

    challenge = OtpChallenge(
        mobile=mobile,
        code_hash=bcrypt.hashpw(code.encode("utf-8"), bcrypt.gensalt(rounds=config.get("BCRYPT_ROUNDS", 12))).decode("utf-8"),
        attempts=0,
        created_at=now,
        expires_at=now + timedelta(minutes=config.get("OTP_TTL_MINUTES", 5)),
    )
    db.session.add(challenge)
    db.session.commit()

    send_sms(mobile, f"Your Authentiks verification code is {code}")
    return challenge


def verify_otp(mobile, code) -> User:
    """
    Check a code against the latest open challenge and log the consumer in.

    Returns the (possibly newly created) consumer User.
    Raises OtpError on a wrong, expired or exhausted code.
    """
    mobile = normalize_mobile(mobile)
    code = str(code or "").strip()
    if not code:
        raise ValidationError("otp is required")

    now = utcnow()
    max_attempts = current_app.config.get("OTP_MAX_ATTEMPTS", 5)

    challenge = db.session.query(OtpChallenge).filter(
        OtpChallenge.mobile == mobile,
        OtpChallenge.consumed_at.is_(None),
    ).order_by(OtpChallenge.id.desc()).first()

    if not challenge or challenge.expires_at < now:
        raise OtpError("OTP expired or not requested. Please request a new code.")
    if challenge.attempts >= max_attempts:
        raise OtpError("Too many attempts. Please request a new code.")

    if not bcrypt.checkpw(code.encode("utf-8"), challenge.code_hash.encode("utf-8")):
        challenge.attempts += 1
        db.session.commit()
        raise OtpError("Invalid OTP")

    challenge.consumed_at = now

    user = db.session.query(User).filter_by(mobile=mobile).first()
    if user is None:
        user = User(mobile=mobile, role=ROLE_USER, created_at=now)
        db.session.add(user)
        current_app.logger.info("Registered consumer %s", mobile)
    elif not user.is_active:
        db.session.commit()
        raise OtpError("Account is deactivated")

    user.last_login_at = now
    db.session.commit()
    return user
