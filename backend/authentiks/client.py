# Overview: Typed HTTP client for the Authentiks API (httpx), mirroring the frontend API layer.

"""
Authentiks API client

The caller owns the session. A SessionProvider (any zero-argument callable
returning a Session or None) is consulted on every request, so the client
never keeps a token of its own:

    store = {"session": None}
    api = AuthentiksClient("http://localhost:5000", lambda: store["session"])
    store["session"] = api.admin_login("ops@authentiks.in", "...")

Errors:
- any non-2xx response raises ApiError carrying the server message
- authorize_order raises InsufficientCreditsError (with a Shortfall) when
  the brand lacks credits; buy_shortfall_and_authorize is the explicit
  follow-up
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx

from .permissions import role_has_permission


REPORT_MIN_IMAGES = 3
REPORT_MAX_IMAGES = 6


@dataclass(frozen=True)
class Session:
    token: str
    role: str

    def can(self, capability: str) -> bool:
        return role_has_permission(self.role, capability)


SessionProvider = Callable[[], Optional[Session]]


@dataclass(frozen=True)
class Shortfall:
    required: int
    available: int
    shortfall: int
    topup_cost_per_qr: float
    topup_total_cost: float
    company_id: Optional[int] = None
    company_name: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: dict) -> "Shortfall":
        return cls(
            required=int(payload.get("required", 0)),
            available=int(payload.get("available", 0)),
            shortfall=int(payload.get("shortfall", 0)),
            topup_cost_per_qr=float(payload.get("topupCostPerQr", 0)),
            topup_total_cost=float(payload.get("topupTotalCost", 0)),
            company_id=payload.get("companyId"),
            company_name=payload.get("companyName"),
        )


class ApiError(Exception):
    """Non-2xx response. `message` is the server's error text, verbatim."""

    def __init__(self, status_code: int, message: str, payload: Any = None):
        self.status_code = status_code
        self.message = message
        self.payload = payload
        super().__init__(f"{status_code}: {message}")


class InsufficientCreditsError(ApiError):
    def __init__(self, status_code: int, message: str, shortfall: Shortfall, payload: Any = None):
        super().__init__(status_code, message, payload)
        self.shortfall = shortfall


class PaymentPendingError(ApiError):
    """The top-up went to the gateway; the payer must finish at redirect_url first."""

    def __init__(self, merchant_order_id: str, redirect_url: str):
        super().__init__(202, "Payment requires completion at the gateway")
        self.merchant_order_id = merchant_order_id
        self.redirect_url = redirect_url


class ReportValidationError(ValueError):
    pass


def _error_message(response: httpx.Response, payload: Any) -> str:
    if isinstance(payload, dict):
        message = payload.get("error") or payload.get("message")
        if message:
            return str(message)
    return response.text or response.reason_phrase or f"HTTP {response.status_code}"


class AuthentiksClient:
    def __init__(
        self,
        base_url: str,
        session_provider: SessionProvider,
        transport: httpx.BaseTransport | None = None,
        timeout: float | None = None,
    ):
        self._session_provider = session_provider
        client_kwargs: dict[str, Any] = {"base_url": base_url.rstrip("/")}
        if transport is not None:
            client_kwargs["transport"] = transport
        if timeout is not None:
            client_kwargs["timeout"] = timeout
        self._http = httpx.Client(**client_kwargs)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "AuthentiksClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # transport
    # ------------------------------------------------------------------

    def _headers(self) -> dict:
        session = self._session_provider()
        if session is None:
            return {}
        return {"Authorization": f"Bearer {session.token}"}

    def _request(self, method: str, path: str, *, json: Any = None, params: dict | None = None) -> Any:
        response = self._http.request(method, path, json=json, params=params, headers=self._headers())
        try:
            payload = response.json()
        except ValueError:
            payload = None

        if response.is_success:
            return payload

        message = _error_message(response, payload)
        if isinstance(payload, dict) and payload.get("insufficientCredits"):
            raise InsufficientCreditsError(response.status_code, message, Shortfall.from_payload(payload), payload)
        raise ApiError(response.status_code, message, payload)

    # ------------------------------------------------------------------
    # auth
    # ------------------------------------------------------------------

    def admin_login(self, email: str, password: str) -> Session:
        data = self._request("POST", "/api/admin/login", json={"email": email, "password": password})
        return Session(token=data["token"], role=data["role"])

    # ------------------------------------------------------------------
    # scans & reports
    # ------------------------------------------------------------------

    def check_qr(self, qr_code: str) -> dict:
        return self._request("POST", "/api/scan/check", json={"qrCode": qr_code})

    def scan(self, qr_code: str, place: str | None = None,
             latitude: float | None = None, longitude: float | None = None) -> dict:
        body: dict[str, Any] = {"qrCode": qr_code}
        if place is not None:
            body["place"] = place
        if latitude is not None and longitude is not None:
            body["latitude"] = latitude
            body["longitude"] = longitude
        return self._request("POST", "/api/scan", json=body)

    def scan_history(self) -> list:
        return self._request("GET", "/api/scan/history")

    def submit_report(self, report: dict) -> dict:
        images = report.get("images") or []
        if len(images) < REPORT_MIN_IMAGES:
            raise ReportValidationError(f"Minimum {REPORT_MIN_IMAGES} images required")
        if len(images) > REPORT_MAX_IMAGES:
            raise ReportValidationError(f"Maximum {REPORT_MAX_IMAGES} images allowed")
        return self._request("POST", "/api/scan/report", json=report)

    def my_reports(self) -> list:
        return self._request("GET", "/api/scan/reports/my")

    # ------------------------------------------------------------------
    # orders
    # ------------------------------------------------------------------

    def list_orders(self, status: str | None = None) -> list:
        params = {"status": status} if status else None
        return self._request("GET", "/api/orders", params=params)["orders"]

    def create_order(self, order: dict) -> dict:
        return self._request("POST", "/api/orders", json=order)["order"]

    def authorize_order(self, order_id: int) -> dict:
        return self._request("PUT", f"/api/orders/{order_id}/authorize")["order"]

    def process_order(self, order_id: int) -> dict:
        return self._request("PUT", f"/api/orders/{order_id}/process")

    def mark_dispatching(self, order_id: int) -> dict:
        return self._request("PUT", f"/api/orders/{order_id}/dispatching")["order"]

    def dispatch_order(self, order_id: int, tracking_number: str, courier_name: str,
                       notes: str | None = None) -> dict:
        body = {"trackingNumber": tracking_number, "courierName": courier_name}
        if notes:
            body["notes"] = notes
        return self._request("PUT", f"/api/orders/{order_id}/dispatch", json=body)["order"]

    def mark_received(self, order_id: int) -> dict:
        return self._request("PUT", f"/api/orders/{order_id}/received")

    def reject_order(self, order_id: int, reason: str | None = None) -> dict:
        return self._request("PUT", f"/api/orders/{order_id}/reject", json={"reason": reason})["order"]

    def download_order_pdf(self, order_id: int) -> bytes:
        data = self._request("GET", f"/api/orders/{order_id}/download")
        return base64.b64decode(data["pdfBase64"])

    # ------------------------------------------------------------------
    # credits, pricing, payments
    # ------------------------------------------------------------------

    def get_credits_balance(self) -> dict:
        return self._request("GET", "/api/admin/credits/balance")

    def get_credit_transactions(self, page: int = 1, limit: int = 20) -> dict:
        return self._request("GET", "/api/admin/credits/transactions", params={"page": page, "limit": limit})

    def get_plans(self) -> list:
        return self._request("GET", "/api/plans")

    def calculate_price(self, base_amount: float, coupon_code: str | None = None) -> dict:
        body: dict[str, Any] = {"baseAmount": base_amount}
        if coupon_code:
            body["couponCode"] = coupon_code
        return self._request("POST", "/api/plans/calculate-price", json=body)

    def validate_coupon(self, code: str, base_amount: float) -> dict:
        return self._request("POST", "/api/plans/coupons/validate", json={"code": code, "baseAmount": base_amount})

    def initiate_payment(self, payment_type: str, plan_id: int | None = None,
                         quantity: int | None = None, coupon_code: str | None = None) -> dict:
        body: dict[str, Any] = {"type": payment_type}
        if plan_id is not None:
            body["planId"] = plan_id
        if quantity is not None:
            body["quantity"] = quantity
        if coupon_code:
            body["couponCode"] = coupon_code
        return self._request("POST", "/api/payments/initiate", json=body)

    def check_payment_status(self, merchant_order_id: str) -> dict:
        return self._request("GET", f"/api/payments/status/{merchant_order_id}")

    def check_is_test_account(self) -> dict:
        return self._request("GET", "/api/payments/test-account")

    def download_invoice(self, payment_id: int) -> bytes:
        data = self._request("GET", f"/api/payments/{payment_id}/invoice")
        return base64.b64decode(data["pdfBase64"])

    def buy_shortfall_and_authorize(self, order_id: int, shortfall: Shortfall,
                                    coupon_code: str | None = None) -> dict:
        """
        Top up exactly the missing credits, then retry authorization once.

        Raises PaymentPendingError when the top-up was sent to the gateway
        instead of completing immediately.
        """
        if shortfall.shortfall <= 0:
            return self.authorize_order(order_id)

        payment = self.initiate_payment("topup", quantity=shortfall.shortfall, coupon_code=coupon_code)
        if not payment.get("autoCompleted"):
            raise PaymentPendingError(payment["merchantOrderId"], payment.get("redirectUrl"))
        return self.authorize_order(order_id)
