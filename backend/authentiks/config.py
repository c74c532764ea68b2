# backend/authentiks/config.py
from __future__ import annotations
import os


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/authentiks.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",  # optional alternative location
        "sqlite:///authentiks.sqlite3",  # default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Browser origins allowed to call the API (Vite dev/preview + deployed site)
    CORS_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        ).split(",")
        if origin.strip()
    ]
    FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:5173")

    # Auth
    BCRYPT_ROUNDS = _env_int("BCRYPT_ROUNDS", 12)
    SESSION_TTL_HOURS = _env_int("SESSION_TTL_HOURS", 24 * 7)
    OTP_TTL_MINUTES = _env_int("OTP_TTL_MINUTES", 5)
    OTP_MAX_ATTEMPTS = _env_int("OTP_MAX_ATTEMPTS", 5)
    OTP_TEST_MOBILE = os.environ.get("OTP_TEST_MOBILE")
    OTP_TEST_CODE = os.environ.get("OTP_TEST_CODE", "123456")

    # Billing (money in paise, rates in basis points)
    QR_TOPUP_PRICE_PAISE = _env_int("QR_TOPUP_PRICE_PAISE", 500)
    DEFAULT_GST_RATE_BPS = _env_int("DEFAULT_GST_RATE_BPS", 1800)

    # Reports
    REPORT_MIN_IMAGES = _env_int("REPORT_MIN_IMAGES", 3)
    REPORT_MAX_IMAGES = _env_int("REPORT_MAX_IMAGES", 6)
    MAX_REPORTS_PER_USER = _env_int("MAX_REPORTS_PER_USER", 5)

    # Reverse geocoding (OpenStreetMap Nominatim)
    GEOCODING_ENABLED = _env_bool("GEOCODING_ENABLED", True)
    GEOCODING_URL = os.environ.get("GEOCODING_URL", "https://nominatim.openstreetmap.org/reverse")
    GEOCODING_TIMEOUT_SECONDS = float(os.environ.get("GEOCODING_TIMEOUT_SECONDS", "8"))
    GEOCODING_USER_AGENT = os.environ.get("GEOCODING_USER_AGENT", "Authentiks/1.0 (contact@authentiks.in)")

    # PhonePe standard checkout. Leave client id/secret unset to auto-complete payments.
    PHONEPE_CLIENT_ID = os.environ.get("PHONEPE_CLIENT_ID")
    PHONEPE_CLIENT_SECRET = os.environ.get("PHONEPE_CLIENT_SECRET")
    PHONEPE_CLIENT_VERSION = os.environ.get("PHONEPE_CLIENT_VERSION", "1")
    PHONEPE_BASE_URL = os.environ.get("PHONEPE_BASE_URL", "https://api-preprod.phonepe.com/apis/pg-sandbox")
    PHONEPE_TIMEOUT_SECONDS = float(os.environ.get("PHONEPE_TIMEOUT_SECONDS", "15"))
