"""
Authorization tests for Authentiks.

Verifies:
- Unauthenticated requests return 401
- Each role is refused the capabilities it does not hold (403)
- The role table grants exactly the documented capabilities
- Revoked and deactivated sessions stop working
"""

import pytest

from authentiks.decorators import require_any_capability, require_capability
from authentiks.permissions import (
    DEFAULT_ROLE_PERMISSIONS,
    validate_permission_code,
    get_role_permissions,
    role_has_permission,
    is_platform_role,
)
from conftest import auth_headers, token_for


# =============================================================================
# UNAUTHENTICATED ACCESS (401)
# =============================================================================


class TestUnauthenticatedAccess:
    """All protected endpoints return 401 without a token."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/orders"),
            ("POST", "/api/orders"),
            ("PUT", "/api/orders/1/authorize"),
            ("PUT", "/api/orders/1/process"),
            ("PUT", "/api/orders/1/reject"),
            ("GET", "/api/orders/1/download"),
            ("GET", "/api/scan/history"),
            ("GET", "/api/scan/stats"),
            ("POST", "/api/scan/report"),
            ("GET", "/api/scan/reports/all"),
            ("GET", "/api/admin/credits/balance"),
            ("POST", "/api/admin/credits/grant"),
            ("POST", "/api/payments/initiate"),
            ("GET", "/api/payments/history"),
            ("GET", "/api/admin/users"),
            ("GET", "/api/admin/qrs"),
            ("POST", "/api/admin/create-qr"),
            ("POST", "/api/plans"),
            ("GET", "/api/auth/me"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_garbage_token_rejected(self, client, db_session):
        resp = client.get("/api/orders", headers=auth_headers("not-a-token"))
        assert resp.status_code == 401
        assert resp.json["error"] == "Invalid or expired token"

    def test_public_endpoints_need_no_token(self, client, db_session):
        assert client.get("/api/health").status_code == 200
        assert client.get("/api/plans").status_code == 200
        assert client.post("/api/scan/check", json={"qrCode": "NOPE-1"}).status_code == 200


# =============================================================================
# CAPABILITY CHECKS (403)
# =============================================================================


class TestConsumerDenied:
    """Consumers may scan and report, nothing else."""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/orders"),
            ("POST", "/api/orders"),
            ("PUT", "/api/orders/1/authorize"),
            ("GET", "/api/admin/credits/balance"),
            ("POST", "/api/payments/initiate"),
            ("GET", "/api/scan/reports/all"),
            ("GET", "/api/admin/qrs"),
        ],
    )
    def test_forbidden(self, client, consumer_headers, method, path):
        resp = getattr(client, method.lower())(path, headers=consumer_headers)
        assert resp.status_code == 403
        assert resp.json["error"] == "Permission denied"

    def test_can_read_own_history(self, client, consumer_headers):
        resp = client.get("/api/scan/history", headers=consumer_headers)
        assert resp.status_code == 200
        assert resp.json == []


class TestBrandRolesDenied:

    def test_creator_cannot_authorize(self, client, creator_headers):
        resp = client.put("/api/orders/1/authorize", headers=creator_headers)
        assert resp.status_code == 403
        assert resp.json["required_permission"] == "AUTHORIZE_ORDER"

    def test_creator_cannot_reject(self, client, creator_headers):
        resp = client.put("/api/orders/1/reject", json={}, headers=creator_headers)
        assert resp.status_code == 403

    def test_authorizer_cannot_create_order(self, client, authorizer_headers):
        resp = client.post("/api/orders", json={"productName": "X", "quantity": 1}, headers=authorizer_headers)
        assert resp.status_code == 403

    def test_company_cannot_process(self, client, company_headers):
        resp = client.put("/api/orders/1/process", headers=company_headers)
        assert resp.status_code == 403

    def test_company_cannot_grant_credits(self, client, company_headers, company):
        resp = client.post(
            "/api/admin/credits/grant",
            json={"companyId": company.id, "amount": 1000},
            headers=company_headers,
        )
        assert resp.status_code == 403

    def test_company_cannot_edit_plans(self, client, company_headers):
        resp = client.post("/api/plans", json={"name": "Free", "pricePerQr": 1, "qrCredits": 1},
                           headers=company_headers)
        assert resp.status_code == 403


class TestPlatformRolesDenied:

    def test_admin_cannot_receive(self, client, admin_headers):
        resp = client.put("/api/orders/1/received", headers=admin_headers)
        assert resp.status_code == 403

    def test_admin_cannot_authorize(self, client, admin_headers):
        resp = client.put("/api/orders/1/authorize", headers=admin_headers)
        assert resp.status_code == 403

    def test_manager_cannot_view_orders(self, client, manager_headers):
        resp = client.get("/api/orders", headers=manager_headers)
        assert resp.status_code == 403

    def test_superadmin_cannot_create_qrs(self, client, superadmin_headers):
        resp = client.post("/api/admin/create-qr", json={"productName": "X", "brand": "ACME"},
                           headers=superadmin_headers)
        assert resp.status_code == 403


# =============================================================================
# ROLE TABLE
# =============================================================================


class TestRoleTable:

    def test_every_role_can_scan_and_report(self):
        for role in DEFAULT_ROLE_PERMISSIONS:
            assert role_has_permission(role, "SCAN_QR"), role
            assert role_has_permission(role, "SUBMIT_REPORT"), role

    def test_consumer_has_only_scan_and_report(self):
        assert get_role_permissions("user") == frozenset({"SCAN_QR", "SUBMIT_REPORT"})

    def test_only_admin_creates_qrs_among_platform_roles(self):
        assert role_has_permission("admin", "CREATE_QRS")
        assert not role_has_permission("superadmin", "CREATE_QRS")
        assert role_has_permission("manager", "CREATE_QRS")

    def test_authorize_holders(self):
        holders = {role for role in DEFAULT_ROLE_PERMISSIONS if role_has_permission(role, "AUTHORIZE_ORDER")}
        assert holders == {"company", "authorizer"}

    def test_fulfilment_is_platform_only(self):
        for capability in ("PROCESS_ORDER", "DISPATCH_ORDER", "DOWNLOAD_ORDER_QRS", "GRANT_CREDITS"):
            holders = {role for role in DEFAULT_ROLE_PERMISSIONS if role_has_permission(role, capability)}
            assert holders == {"superadmin", "admin"}, capability

    def test_unknown_role_has_nothing(self):
        assert get_role_permissions("intruder") == frozenset()
        assert not role_has_permission(None, "SCAN_QR")

    def test_platform_roles(self):
        assert is_platform_role("superadmin")
        assert is_platform_role("admin")
        assert not is_platform_role("manager")
        assert not is_platform_role("company")

    def test_every_granted_capability_is_defined(self):
        for role, capabilities in DEFAULT_ROLE_PERMISSIONS.items():
            for code in capabilities:
                assert validate_permission_code(code), (role, code)

    def test_decorators_reject_unknown_codes(self):
        with pytest.raises(ValueError, match="Unknown capability: FLY"):
            require_capability("FLY")
        with pytest.raises(ValueError, match="Unknown capability: FLY"):
            require_any_capability("SCAN_QR", "FLY")


class TestCapabilityListing:

    def test_consumer(self, client, consumer_headers):
        resp = client.get("/api/auth/permissions", headers=consumer_headers)
        assert resp.status_code == 200
        categories = resp.json["categories"]
        assert set(categories) == {"SCANS", "REPORTS"}
        assert [item["code"] for item in categories["SCANS"]] == ["SCAN_QR"]
        assert categories["REPORTS"][0]["name"]

    def test_creator(self, client, creator_headers):
        categories = client.get("/api/auth/permissions", headers=creator_headers).json["categories"]
        orders = [item["code"] for item in categories["ORDERS"]]
        assert "CREATE_ORDER" in orders
        assert "AUTHORIZE_ORDER" not in orders
        assert "USERS" not in categories

    def test_requires_login(self, client, db_session):
        assert client.get("/api/auth/permissions").status_code == 401


# =============================================================================
# SESSION LIFECYCLE
# =============================================================================


class TestSessions:

    def test_logout_revokes_token(self, client, admin):
        token = token_for(admin)
        assert client.get("/api/auth/me", headers=auth_headers(token)).status_code == 200

        resp = client.post("/api/auth/logout", headers=auth_headers(token))
        assert resp.status_code == 200

        assert client.get("/api/auth/me", headers=auth_headers(token)).status_code == 401

    def test_deactivated_user_loses_session(self, client, db_session, admin):
        token = token_for(admin)
        admin.is_active = False
        db_session.commit()

        assert client.get("/api/auth/me", headers=auth_headers(token)).status_code == 401
