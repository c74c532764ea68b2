# Overview: PhonePe standard-checkout client (OAuth token, pay, order status) over httpx.

"""
Payment Gateway

Only three calls are used:
- POST {base}/v1/oauth/token            (client credentials -> O-Bearer token)
- POST {base}/checkout/v2/pay           (create checkout, returns redirectUrl)
- GET  {base}/checkout/v2/order/{id}/status

get_gateway() returns None when PHONEPE_CLIENT_ID/SECRET are not
configured; payment_service then completes payments immediately.
"""

from __future__ import annotations

import base64
import json
import time

import httpx
from flask import current_app


STATE_COMPLETED = "COMPLETED"
STATE_FAILED = "FAILED"
STATE_PENDING = "PENDING"

_SUCCESS_STATES = {"PAYMENT_SUCCESS", "SUCCESS", "COMPLETED"}
_FAILED_STATES = {"PAYMENT_ERROR", "FAILED", "PAYMENT_DECLINED"}

# PhonePe refuses checkouts below ₹1
MIN_CHARGE_PAISE = 100


class PaymentGatewayError(Exception):
    """Raised when the gateway rejects a request or cannot be reached."""
    pass


def normalize_state(state) -> str:
    value = str(state or "").strip().upper()
    if value in _SUCCESS_STATES:
        return STATE_COMPLETED
    if value in _FAILED_STATES:
        return STATE_FAILED
    return STATE_PENDING


def decode_callback(body: dict) -> tuple[str | None, str | None, str]:
    """
    Extract (merchantOrderId, transactionId, normalized state) from a
    callback body.

    The gateway posts {"response": <base64 JSON>}; direct fields
    {merchantOrderId, transactionId, state} are accepted as well.
    """
    body = body if isinstance(body, dict) else {}
    merchant_order_id = transaction_id = state = None

    encoded = body.get("response")
    if encoded:
        try:
            decoded = json.loads(base64.b64decode(encoded).decode("utf-8"))
        except (ValueError, TypeError) as exc:
            current_app.logger.warning("Could not decode gateway callback: %s", exc)
        else:
            if not isinstance(decoded, dict):
                decoded = {}
            data = decoded.get("data") or decoded
            merchant_order_id = data.get("merchantOrderId") or data.get("merchantTransactionId")
            transaction_id = (
                data.get("transactionId")
                or data.get("phonePeTransactionId")
                or data.get("providerReferenceId")
            )
            state = data.get("state") or data.get("status") or decoded.get("code")

    if not merchant_order_id:
        merchant_order_id = body.get("merchantOrderId") or body.get("merchantTransactionId")
        transaction_id = body.get("transactionId") or body.get("providerReferenceId")
        state = body.get("state") or body.get("status") or body.get("code")

    return merchant_order_id, transaction_id, normalize_state(state)


class PhonePeGateway:
    def __init__(
        self,
        client_id: str,
        client_secret: str,
        client_version: str,
        base_url: str,
        timeout: float = 15.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.client_version = client_version
        self.base_url = base_url.rstrip("/")
        self._http = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)
        self._token: str | None = None
        self._token_expires_at = 0

    def close(self) -> None:
        self._http.close()

    def _request(self, method: str, path: str, **kwargs) -> dict:
        try:
            response = self._http.request(method, path, **kwargs)
        except httpx.HTTPError as exc:
            raise PaymentGatewayError(f"Gateway unreachable: {exc}") from exc
        if response.status_code >= 400:
            try:
                detail = response.json().get("message") or response.text
            except ValueError:
                detail = response.text
            raise PaymentGatewayError(f"Gateway returned {response.status_code}: {detail}")
        try:
            return response.json()
        except ValueError as exc:
            raise PaymentGatewayError("Gateway returned invalid JSON") from exc

    def access_token(self) -> str:
        if self._token and time.time() < self._token_expires_at - 60:
            return self._token
        data = self._request(
            "POST",
            "/v1/oauth/token",
            data={
                "client_id": self.client_id,
                "client_version": self.client_version,
                "client_secret": self.client_secret,
                "grant_type": "client_credentials",
            },
        )
        token = data.get("access_token")
        if not token:
            raise PaymentGatewayError("Gateway did not return an access token")
        self._token = token
        self._token_expires_at = int(data.get("expires_at") or time.time() + 300)
        return token

    def _auth_headers(self) -> dict:
        return {"Authorization": f"O-Bearer {self.access_token()}"}

    def create_checkout(self, merchant_order_id: str, amount_paise: int, redirect_url: str) -> str:
        """Create a checkout and return the URL the payer is sent to."""
        if amount_paise < MIN_CHARGE_PAISE:
            raise PaymentGatewayError("Minimum amount is ₹1")
        data = self._request(
            "POST",
            "/checkout/v2/pay",
            headers=self._auth_headers(),
            json={
                "merchantOrderId": merchant_order_id,
                "amount": amount_paise,
                "paymentFlow": {
                    "type": "PG_CHECKOUT",
                    "merchantUrls": {"redirectUrl": redirect_url},
                },
            },
        )
        redirect = data.get("redirectUrl") or (data.get("data") or {}).get("redirectUrl")
        if not redirect:
            raise PaymentGatewayError("Gateway did not return a redirect URL")
        return redirect

    def order_status(self, merchant_order_id: str) -> tuple[str, str | None]:
        """(normalized state, gateway transaction id) for a merchant order."""
        data = self._request(
            "GET",
            f"/checkout/v2/order/{merchant_order_id}/status",
            headers=self._auth_headers(),
        )
        transaction_id = None
        details = data.get("paymentDetails") or []
        if details and isinstance(details[0], dict):
            transaction_id = details[0].get("transactionId")
        return normalize_state(data.get("state")), transaction_id


def get_gateway() -> PhonePeGateway | None:
    config = current_app.config
    if not config.get("PHONEPE_CLIENT_ID") or not config.get("PHONEPE_CLIENT_SECRET"):
        return None
    return PhonePeGateway(
        client_id=config["PHONEPE_CLIENT_ID"],
        client_secret=config["PHONEPE_CLIENT_SECRET"],
        client_version=str(config.get("PHONEPE_CLIENT_VERSION") or "1"),
        base_url=config["PHONEPE_BASE_URL"],
        timeout=float(config.get("PHONEPE_TIMEOUT_SECONDS") or 15),
        transport=config.get("PHONEPE_TRANSPORT"),
    )
