"""
Pricing calculator tests.

Verifies:
- finalAmount = base + GST + charges - coupon discount, in integer paise
- Half-up rounding of percentage amounts
- Coupon rules (inactive, expired, exhausted, minimum, cap)
- Plan and coupon administration
"""

from datetime import timedelta

import pytest

from authentiks.models import Coupon
from authentiks.services import pricing_service
from authentiks.services.pricing_service import percent_of, breakdown_for
from authentiks.time_utils import utcnow


def configure(client, headers, gst=18, charges=None):
    resp = client.put(
        "/api/plans/settings",
        json={"gstPercentage": gst, "additionalCharges": charges or []},
        headers=headers,
    )
    assert resp.status_code == 200, resp.json
    return resp.json


def make_coupon(client, headers, **fields):
    body = {"code": "WELCOME10", "discountType": "percentage", "discountValue": 10}
    body.update(fields)
    resp = client.post("/api/plans/coupons", json=body, headers=headers)
    assert resp.status_code == 201, resp.json
    return resp.json["coupon"]


# =============================================================================
# ARITHMETIC
# =============================================================================


class TestPercentOf:

    @pytest.mark.parametrize(
        "amount,bps,expected",
        [
            (100000, 1800, 18000),
            (333, 1800, 60),      # 59.94
            (25, 1800, 5),        # 4.5 rounds up
            (1, 1800, 0),         # 0.18
            (0, 1800, 0),
            (99999, 0, 0),
        ],
    )
    def test_half_up(self, amount, bps, expected):
        assert percent_of(amount, bps) == expected


class TestBreakdown:

    def test_default_gst_only(self, client, db_session):
        resp = client.post("/api/plans/calculate-price", json={"baseAmount": 500})
        assert resp.status_code == 200
        body = resp.json
        assert body["baseAmount"] == 500.0
        assert body["gstPercentage"] == 18.0
        assert body["gstAmount"] == 90.0
        assert body["additionalCharges"] == []
        assert body["couponDiscount"] == 0.0
        assert body["couponInfo"] is None
        assert body["finalAmount"] == 590.0

    def test_identity_with_charges_and_coupon(self, client, db_session, admin_headers):
        configure(client, admin_headers, charges=[
            {"name": "Platform fee", "type": "percentage", "value": 2},
            {"name": "Convenience", "type": "flat", "value": 10},
            {"name": "Retired", "type": "flat", "value": 99, "isActive": False},
        ])
        make_coupon(client, admin_headers, maxDiscount=50)

        resp = client.post("/api/plans/calculate-price", json={"baseAmount": 1000, "couponCode": "welcome10"})
        body = resp.json
        assert body["gstAmount"] == 180.0
        assert [(line["name"], line["amount"]) for line in body["additionalCharges"]] == [
            ("Platform fee", 20.0),
            ("Convenience", 10.0),
        ]
        assert body["chargesTotal"] == 30.0
        assert body["subtotal"] == 1210.0
        assert body["couponDiscount"] == 50.0
        assert body["couponInfo"]["code"] == "WELCOME10"
        assert body["finalAmount"] == 1160.0
        assert body["finalAmount"] == pytest.approx(
            body["baseAmount"] + body["gstAmount"] + body["chargesTotal"] - body["couponDiscount"]
        )

    def test_identity_holds_in_paise(self, db_session):
        for base in (1, 7, 333, 12345, 99999):
            breakdown = breakdown_for(base, None)
            assert breakdown.final_paise == (
                breakdown.base_paise + breakdown.gst_paise
                + breakdown.charges_total_paise - breakdown.coupon_discount_paise
            )

    def test_unknown_coupon_is_ignored(self, client, db_session):
        resp = client.post("/api/plans/calculate-price", json={"baseAmount": 100, "couponCode": "NOPE"})
        assert resp.status_code == 200
        assert resp.json["couponDiscount"] == 0.0
        assert resp.json["finalAmount"] == 118.0

    @pytest.mark.parametrize("base", [None, "", 0, -5, "abc"])
    def test_invalid_base(self, client, db_session, base):
        resp = client.post("/api/plans/calculate-price", json={"baseAmount": base})
        assert resp.status_code == 400
        assert resp.json["error"] == "Valid base amount is required"

    def test_discount_never_exceeds_base(self, client, db_session, admin_headers):
        make_coupon(client, admin_headers, code="FLAT500", discountType="flat", discountValue=500)
        resp = client.post("/api/plans/calculate-price", json={"baseAmount": 100, "couponCode": "FLAT500"})
        assert resp.json["couponDiscount"] == 100.0
        assert resp.json["finalAmount"] == 18.0

    def test_settings_round_trip(self, client, db_session, admin_headers):
        configure(client, admin_headers, gst=12.5)
        resp = client.get("/api/plans/settings")
        assert resp.json["gstPercentage"] == 12.5

    def test_settings_reject_bad_gst(self, client, db_session, admin_headers):
        resp = client.put("/api/plans/settings", json={"gstPercentage": 150}, headers=admin_headers)
        assert resp.status_code == 400


# =============================================================================
# COUPONS
# =============================================================================


class TestCouponValidation:

    def test_valid(self, client, db_session, admin_headers):
        make_coupon(client, admin_headers)
        resp = client.post("/api/plans/coupons/validate", json={"code": "WELCOME10", "baseAmount": 500})
        assert resp.status_code == 200
        assert resp.json["valid"] is True
        assert resp.json["discount"] == 50.0
        assert resp.json["discountValue"] == 10.0

    def test_unknown(self, client, db_session):
        resp = client.post("/api/plans/coupons/validate", json={"code": "MISSING", "baseAmount": 500})
        assert resp.status_code == 404
        assert resp.json["error"] == "Invalid coupon code"

    def test_inactive(self, client, db_session, admin_headers):
        make_coupon(client, admin_headers, isActive=False)
        resp = client.post("/api/plans/coupons/validate", json={"code": "WELCOME10", "baseAmount": 500})
        assert resp.status_code == 400
        assert resp.json["error"] == "Coupon is inactive"

    def test_expired(self, client, db_session, admin_headers):
        coupon = make_coupon(client, admin_headers)
        row = db_session.get(Coupon, coupon["id"])
        row.expires_at = utcnow() - timedelta(days=1)
        db_session.commit()

        resp = client.post("/api/plans/coupons/validate", json={"code": "WELCOME10", "baseAmount": 500})
        assert resp.status_code == 400
        assert resp.json["error"] == "Coupon has expired"

    def test_usage_limit(self, client, db_session, admin_headers):
        coupon = make_coupon(client, admin_headers, usageLimit=1)
        row = db_session.get(Coupon, coupon["id"])
        row.used_count = 1
        db_session.commit()

        resp = client.post("/api/plans/coupons/validate", json={"code": "WELCOME10", "baseAmount": 500})
        assert resp.status_code == 400
        assert resp.json["error"] == "Coupon usage limit reached"

    def test_minimum_amount(self, client, db_session, admin_headers):
        make_coupon(client, admin_headers, minAmount=1000)
        resp = client.post("/api/plans/coupons/validate", json={"code": "WELCOME10", "baseAmount": 500})
        assert resp.status_code == 400
        assert "Minimum amount" in resp.json["error"]

    def test_duplicate_code(self, client, db_session, admin_headers):
        make_coupon(client, admin_headers)
        resp = client.post(
            "/api/plans/coupons",
            json={"code": "welcome10", "discountValue": 5},
            headers=admin_headers,
        )
        assert resp.status_code == 409

    def test_update_and_delete(self, client, db_session, admin_headers):
        coupon = make_coupon(client, admin_headers)
        resp = client.put(f"/api/plans/coupons/{coupon['id']}", json={"discountValue": 15}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["coupon"]["discountValue"] == 15.0

        assert client.delete(f"/api/plans/coupons/{coupon['id']}", headers=admin_headers).status_code == 200
        assert client.get("/api/plans/coupons", headers=admin_headers).json == []


# =============================================================================
# PLANS
# =============================================================================


class TestPlans:

    def test_create_and_list(self, client, db_session, admin_headers):
        resp = client.post(
            "/api/plans",
            json={"name": "Pilot", "pricePerQr": 4.5, "qrCredits": 200, "features": ["Scans"]},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        plan = resp.json["plan"]
        assert plan["price"] == 900.0
        assert plan["pricePerQr"] == 4.5

        listed = client.get("/api/plans").json
        assert [item["name"] for item in listed] == ["Pilot"]

    def test_validation(self, client, db_session, admin_headers):
        resp = client.post("/api/plans", json={"name": "Broken", "pricePerQr": 1, "qrCredits": 0},
                           headers=admin_headers)
        assert resp.status_code == 400

    def test_update_and_delete(self, client, db_session, admin_headers):
        plan = client.post("/api/plans", json={"name": "Pilot", "pricePerQr": 5, "qrCredits": 10},
                           headers=admin_headers).json["plan"]
        resp = client.put(f"/api/plans/{plan['id']}", json={"isPopular": True}, headers=admin_headers)
        assert resp.json["plan"]["isPopular"] is True

        assert client.delete(f"/api/plans/{plan['id']}", headers=admin_headers).status_code == 200
        assert client.put(f"/api/plans/{plan['id']}", json={}, headers=admin_headers).status_code == 404

    def test_seed_defaults_is_idempotent(self, db_session):
        assert pricing_service.seed_default_plans() == 3
        assert pricing_service.seed_default_plans() == 0
        names = [plan.name for plan in pricing_service.list_plans()]
        assert names == ["Starter", "Growth", "Enterprise"]
