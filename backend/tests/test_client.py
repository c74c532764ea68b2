"""
API client tests.

Runs AuthentiksClient against the Flask app through httpx's WSGI transport,
plus a few canned-response cases through httpx.MockTransport.
"""

import httpx
import pytest

from authentiks.client import (
    ApiError,
    AuthentiksClient,
    InsufficientCreditsError,
    PaymentPendingError,
    ReportValidationError,
    Session,
    Shortfall,
)
from conftest import PASSWORD, grant, token_for


class SessionStore:
    """Caller-owned session slot handed to the client as its provider."""

    def __init__(self):
        self.session = None

    def __call__(self):
        return self.session


@pytest.fixture
def store():
    return SessionStore()


@pytest.fixture
def api(app, store):
    client = AuthentiksClient("http://testserver", store, transport=httpx.WSGITransport(app=app))
    yield client
    client.close()


def canned(handler, store=None):
    return AuthentiksClient("http://testserver", store or (lambda: None), transport=httpx.MockTransport(handler))


# =============================================================================
# SESSION
# =============================================================================


class TestSession:

    def test_login_returns_session(self, api, store, db_session, creator):
        session = api.admin_login("maker@acme.in", PASSWORD)
        assert session.role == "creator"
        assert session.can("CREATE_ORDER")
        assert not session.can("AUTHORIZE_ORDER")

    def test_provider_consulted_per_request(self, api, store, db_session, creator):
        with pytest.raises(ApiError) as excinfo:
            api.list_orders()
        assert excinfo.value.status_code == 401
        assert excinfo.value.message == "Authentication required"

        store.session = api.admin_login("maker@acme.in", PASSWORD)
        assert api.list_orders() == []

        store.session = None
        with pytest.raises(ApiError):
            api.list_orders()

    def test_bad_login(self, api, db_session):
        with pytest.raises(ApiError) as excinfo:
            api.admin_login("nobody@acme.in", PASSWORD)
        assert excinfo.value.status_code == 401
        assert excinfo.value.message == "Invalid email or password"


# =============================================================================
# ORDER FLOW
# =============================================================================


class TestOrderFlow:

    def test_shortfall_then_buy_and_authorize(self, api, store, db_session, company, creator, authorizer):
        grant(company, 40)
        store.session = api.admin_login("maker@acme.in", PASSWORD)
        order = api.create_order({"productName": "Face Serum", "quantity": 100})

        store.session = api.admin_login("approver@acme.in", PASSWORD)
        with pytest.raises(InsufficientCreditsError) as excinfo:
            api.authorize_order(order["id"])

        shortfall = excinfo.value.shortfall
        assert excinfo.value.status_code == 400
        assert shortfall.required == 100
        assert shortfall.available == 40
        assert shortfall.shortfall == 60
        assert shortfall.topup_total_cost == 300.0
        assert shortfall.company_name == "Acme Corp"

        authorized = api.buy_shortfall_and_authorize(order["id"], shortfall)
        assert authorized["status"] == "Authorized"
        assert api.get_credits_balance()["qrCredits"] == 0

        kinds = [txn["type"] for txn in api.get_credit_transactions()["transactions"]]
        assert kinds == ["spend", "purchase_topup", "admin_grant"]

    def test_full_lifecycle(self, api, store, db_session, company, creator, authorizer, admin):
        grant(company, 2)
        store.session = api.admin_login("maker@acme.in", PASSWORD)
        order = api.create_order({"productName": "Serum", "quantity": 2})

        store.session = api.admin_login("approver@acme.in", PASSWORD)
        api.authorize_order(order["id"])

        store.session = api.admin_login("ops@authentiks.in", PASSWORD)
        assert api.process_order(order["id"])["qrCodesGenerated"] == 2
        assert api.download_order_pdf(order["id"]).startswith(b"%PDF")
        assert api.mark_dispatching(order["id"])["status"] == "Dispatching"
        dispatched = api.dispatch_order(order["id"], "TRK9", "Delhivery", notes="Fragile")
        assert dispatched["dispatchDetails"]["notes"] == "Fragile"

        store.session = api.admin_login("approver@acme.in", PASSWORD)
        received = api.mark_received(order["id"])
        assert received["qrCodesActivated"] == 2
        assert [item["status"] for item in api.list_orders(status="Received")] == ["Received"]

    def test_reject(self, api, store, db_session, creator, authorizer):
        store.session = api.admin_login("maker@acme.in", PASSWORD)
        order = api.create_order({"productName": "Serum", "quantity": 1})

        store.session = api.admin_login("approver@acme.in", PASSWORD)
        assert api.reject_order(order["id"], "Wrong label")["status"] == "Rejected"

        with pytest.raises(ApiError) as excinfo:
            api.authorize_order(order["id"])
        assert excinfo.value.message == "Order cannot be authorized in its current state"

    def test_no_shortfall_authorizes_directly(self, api, store, db_session, company, creator, authorizer):
        grant(company, 5)
        store.session = api.admin_login("maker@acme.in", PASSWORD)
        order = api.create_order({"productName": "Serum", "quantity": 5})

        store.session = api.admin_login("approver@acme.in", PASSWORD)
        nothing_missing = Shortfall(required=5, available=5, shortfall=0, topup_cost_per_qr=5.0, topup_total_cost=0.0)
        assert api.buy_shortfall_and_authorize(order["id"], nothing_missing)["status"] == "Authorized"


# =============================================================================
# SCANS, REPORTS, PRICING
# =============================================================================


class TestConsumerAndPricing:

    def test_scan_and_check(self, api, db_session):
        assert api.check_qr("NOPE-1")["status"] == "FAKE"
        result = api.scan("NOPE-1", place="Chennai")
        assert result["status"] == "FAKE"
        assert result["theme"]["label"] == "Counterfeit"

    def test_report_image_bounds_checked_before_sending(self, store):
        def explode(request):
            raise AssertionError("request should not be sent")

        client = canned(explode, store)
        with pytest.raises(ReportValidationError, match="Minimum 3 images required"):
            client.submit_report({"productName": "X", "brand": "Y", "images": ["a", "b"]})
        with pytest.raises(ReportValidationError, match="Maximum 6 images allowed"):
            client.submit_report({"productName": "X", "brand": "Y", "images": list("abcdefg")})

    def test_report_round_trip(self, api, store, db_session, consumer):
        store.session = Session(token=token_for(consumer), role="user")
        report = api.submit_report({
            "productName": "Face Serum",
            "brand": "ACME",
            "images": ["https://img/1", "https://img/2", "https://img/3"],
        })
        assert report["success"] is True
        assert [item["id"] for item in api.my_reports()] == [report["report"]["id"]]

    def test_pricing(self, api, db_session):
        assert api.get_plans() == []
        price = api.calculate_price(100)
        assert price["finalAmount"] == 118.0

        with pytest.raises(ApiError) as excinfo:
            api.validate_coupon("MISSING", 100)
        assert excinfo.value.status_code == 404

    def test_payment_status_and_invoice(self, api, store, db_session, company, company_user):
        store.session = api.admin_login("owner@acme.in", PASSWORD)
        started = api.initiate_payment("topup", quantity=8)
        assert started["autoCompleted"] is True

        status = api.check_payment_status(started["merchantOrderId"])
        assert status["status"] == "completed"
        assert status["payment"]["credits"] == 8
        assert status["payment"]["id"] == started["paymentId"]

        assert api.download_invoice(started["paymentId"]).startswith(b"%PDF")

    def test_payment_status_errors(self, api, store, db_session, company, company_user, other_creator):
        store.session = api.admin_login("owner@acme.in", PASSWORD)
        started = api.initiate_payment("topup", quantity=2)

        with pytest.raises(ApiError) as excinfo:
            api.check_payment_status("ORD_MISSING")
        assert excinfo.value.status_code == 404

        store.session = Session(token=token_for(other_creator), role="creator")
        with pytest.raises(ApiError) as excinfo:
            api.download_invoice(started["paymentId"])
        assert excinfo.value.status_code == 403


# =============================================================================
# CANNED RESPONSES
# =============================================================================


class TestCannedResponses:

    def test_pending_gateway_payment(self):
        def server(request):
            if request.url.path == "/api/payments/initiate":
                return httpx.Response(200, json={
                    "merchantOrderId": "AUTH_1",
                    "redirectUrl": "https://pay.example/AUTH_1",
                })
            raise AssertionError("authorize must not be retried")

        client = canned(server, lambda: Session(token="t", role="company"))
        shortfall = Shortfall(required=10, available=0, shortfall=10, topup_cost_per_qr=5.0, topup_total_cost=50.0)
        with pytest.raises(PaymentPendingError) as excinfo:
            client.buy_shortfall_and_authorize(7, shortfall)
        assert excinfo.value.merchant_order_id == "AUTH_1"
        assert excinfo.value.redirect_url == "https://pay.example/AUTH_1"

    def test_bearer_header_sent(self):
        seen = {}

        def server(request):
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"isTestAccount": False})

        client = canned(server, lambda: Session(token="abc123", role="company"))
        client.check_is_test_account()
        assert seen["auth"] == "Bearer abc123"

    def test_non_json_error(self):
        client = canned(lambda request: httpx.Response(502, text="Bad Gateway"))
        with pytest.raises(ApiError) as excinfo:
            client.get_plans()
        assert excinfo.value.status_code == 502
        assert excinfo.value.message == "Bad Gateway"
        assert excinfo.value.payload is None

    def test_shortfall_from_payload_defaults(self):
        shortfall = Shortfall.from_payload({"required": "3"})
        assert shortfall.required == 3
        assert shortfall.shortfall == 0
        assert shortfall.company_id is None
