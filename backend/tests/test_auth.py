"""
Authentication tests.

Verifies:
- Staff password login issues a session with the role's permissions
- Consumer OTP login creates the account on first verification
- Wrong, expired and exhausted codes are refused
- Logout revokes the token; profile updates apply to the caller
"""

from datetime import timedelta

import pytest

from authentiks.models import OtpChallenge, User
from authentiks.permissions import get_role_permissions
from authentiks.services import otp_service
from authentiks.time_utils import utcnow
from conftest import PASSWORD, TEST_MOBILE, TEST_OTP, auth_headers


# =============================================================================
# STAFF LOGIN
# =============================================================================


class TestStaffLogin:

    def test_success(self, client, db_session, admin):
        resp = client.post("/api/admin/login", json={"email": "OPS@authentiks.in ", "password": PASSWORD})
        assert resp.status_code == 200
        body = resp.json
        assert body["role"] == "admin"
        assert body["user"]["email"] == "ops@authentiks.in"
        assert body["permissions"] == sorted(get_role_permissions("admin"))
        assert body["token"]

        me = client.get("/api/auth/me", headers=auth_headers(body["token"]))
        assert me.status_code == 200
        assert me.json["role"] == "admin"

    def test_wrong_password(self, client, db_session, admin):
        resp = client.post("/api/admin/login", json={"email": "ops@authentiks.in", "password": "nope-nope"})
        assert resp.status_code == 401
        assert resp.json["error"] == "Invalid email or password"

    def test_unknown_email_same_message(self, client, db_session):
        resp = client.post("/api/admin/login", json={"email": "ghost@authentiks.in", "password": PASSWORD})
        assert resp.status_code == 401
        assert resp.json["error"] == "Invalid email or password"

    def test_missing_fields(self, client, db_session):
        assert client.post("/api/admin/login", json={"email": "ops@authentiks.in"}).status_code == 400

    def test_inactive_account(self, client, db_session, admin):
        admin.is_active = False
        db_session.commit()
        resp = client.post("/api/admin/login", json={"email": "ops@authentiks.in", "password": PASSWORD})
        assert resp.status_code == 401

    def test_last_login_recorded(self, client, db_session, creator):
        assert creator.last_login_at is None
        client.post("/api/admin/login", json={"email": "maker@acme.in", "password": PASSWORD})
        db_session.refresh(creator)
        assert creator.last_login_at is not None


# =============================================================================
# CONSUMER OTP
# =============================================================================


class TestOtp:

    def test_test_mobile_round_trip(self, client, db_session):
        resp = client.post("/api/auth/otp/request", json={"mobile": "+91 99999 99999"})
        assert resp.status_code == 200
        assert resp.json["mobile"] == TEST_MOBILE
        assert resp.json["expiresIn"] == 300

        resp = client.post("/api/auth/otp/verify", json={"mobile": TEST_MOBILE, "otp": TEST_OTP})
        assert resp.status_code == 200
        assert resp.json["role"] == "user"
        assert resp.json["user"]["mobile"] == TEST_MOBILE
        assert "SCAN_QR" in resp.json["permissions"]

        assert db_session.query(User).filter_by(mobile=TEST_MOBILE).count() == 1

    def test_existing_consumer_is_reused(self, client, db_session, consumer, monkeypatch):
        monkeypatch.setattr(otp_service, "_generate_code", lambda: "654321")
        client.post("/api/auth/otp/request", json={"mobile": consumer.mobile})

        resp = client.post("/api/auth/otp/verify", json={"mobile": consumer.mobile, "otp": "654321"})
        assert resp.status_code == 200
        assert resp.json["user"]["id"] == consumer.id
        assert resp.json["user"]["name"] == "Asha"

    def test_code_is_stored_hashed(self, client, db_session, monkeypatch):
        monkeypatch.setattr(otp_service, "_generate_code", lambda: "654321")
        client.post("/api/auth/otp/request", json={"mobile": "+919811111111"})
        challenge = db_session.query(OtpChallenge).one()
        assert "654321" not in challenge.code_hash

    def test_wrong_code(self, client, db_session):
        client.post("/api/auth/otp/request", json={"mobile": TEST_MOBILE})
        resp = client.post("/api/auth/otp/verify", json={"mobile": TEST_MOBILE, "otp": "000000"})
        assert resp.status_code == 401
        assert resp.json["error"] == "Invalid OTP"
        assert db_session.query(User).count() == 0

    def test_code_is_single_use(self, client, db_session):
        client.post("/api/auth/otp/request", json={"mobile": TEST_MOBILE})
        assert client.post("/api/auth/otp/verify", json={"mobile": TEST_MOBILE, "otp": TEST_OTP}).status_code == 200
        assert client.post("/api/auth/otp/verify", json={"mobile": TEST_MOBILE, "otp": TEST_OTP}).status_code == 401

    def test_new_request_invalidates_old_code(self, client, db_session, monkeypatch):
        codes = iter(["111111", "222222"])
        monkeypatch.setattr(otp_service, "_generate_code", lambda: next(codes))
        client.post("/api/auth/otp/request", json={"mobile": "+919822222222"})
        client.post("/api/auth/otp/request", json={"mobile": "+919822222222"})

        stale = client.post("/api/auth/otp/verify", json={"mobile": "+919822222222", "otp": "111111"})
        assert stale.status_code == 401
        fresh = client.post("/api/auth/otp/verify", json={"mobile": "+919822222222", "otp": "222222"})
        assert fresh.status_code == 200

    def test_expired(self, client, db_session):
        client.post("/api/auth/otp/request", json={"mobile": TEST_MOBILE})
        challenge = db_session.query(OtpChallenge).one()
        challenge.expires_at = utcnow() - timedelta(seconds=1)
        db_session.commit()

        resp = client.post("/api/auth/otp/verify", json={"mobile": TEST_MOBILE, "otp": TEST_OTP})
        assert resp.status_code == 401
        assert "expired" in resp.json["error"]

    def test_attempts_exhausted(self, client, db_session):
        client.post("/api/auth/otp/request", json={"mobile": TEST_MOBILE})
        for _ in range(5):
            client.post("/api/auth/otp/verify", json={"mobile": TEST_MOBILE, "otp": "000000"})

        resp = client.post("/api/auth/otp/verify", json={"mobile": TEST_MOBILE, "otp": TEST_OTP})
        assert resp.status_code == 401
        assert resp.json["error"] == "Too many attempts. Please request a new code."

    @pytest.mark.parametrize("mobile", [None, "", "12345", "phone-number"])
    def test_invalid_mobile(self, client, db_session, mobile):
        resp = client.post("/api/auth/otp/request", json={"mobile": mobile})
        assert resp.status_code == 400
        assert resp.json["error"] == "A valid mobile number is required"

    def test_missing_code(self, client, db_session):
        resp = client.post("/api/auth/otp/verify", json={"mobile": TEST_MOBILE})
        assert resp.status_code == 400

    def test_deactivated_consumer(self, client, db_session, consumer, monkeypatch):
        consumer.is_active = False
        db_session.commit()
        monkeypatch.setattr(otp_service, "_generate_code", lambda: "654321")
        client.post("/api/auth/otp/request", json={"mobile": consumer.mobile})

        resp = client.post("/api/auth/otp/verify", json={"mobile": consumer.mobile, "otp": "654321"})
        assert resp.status_code == 401
        assert resp.json["error"] == "Account is deactivated"


# =============================================================================
# SESSION & PROFILE
# =============================================================================


class TestSessionAndProfile:

    def test_logout_revokes_token(self, client, db_session, consumer_headers):
        assert client.get("/api/auth/me", headers=consumer_headers).status_code == 200
        assert client.post("/api/auth/logout", headers=consumer_headers).status_code == 200

        resp = client.get("/api/auth/me", headers=consumer_headers)
        assert resp.status_code == 401
        assert resp.json["error"] == "Invalid or expired token"

    def test_logout_requires_header(self, client, db_session):
        assert client.post("/api/auth/logout").status_code == 401
        assert client.post("/api/auth/logout", headers=auth_headers("bogus")).status_code == 401

    def test_me(self, client, db_session, creator_headers):
        body = client.get("/api/auth/me", headers=creator_headers).json
        assert body["role"] == "creator"
        assert body["user"]["brandName"] == "ACME"
        assert "CREATE_ORDER" in body["permissions"]
        assert "AUTHORIZE_ORDER" not in body["permissions"]

    def test_profile_update(self, client, db_session, consumer, consumer_headers):
        resp = client.put(
            "/api/auth/profile",
            json={"name": "  Asha Rao ", "city": "Pune", "role": "admin"},
            headers=consumer_headers,
        )
        assert resp.status_code == 200
        assert resp.json["user"]["name"] == "Asha Rao"
        assert resp.json["user"]["city"] == "Pune"
        assert resp.json["user"]["role"] == "user"

    def test_profile_requires_login(self, client, db_session):
        assert client.put("/api/auth/profile", json={"name": "X"}).status_code == 401
