"""
Credit gate and ledger tests.

Verifies:
- Authorization spends exactly order.quantity credits or nothing at all
- A short balance returns the structured shortfall payload
- Buying exactly the shortfall makes the retry succeed
- Rejecting an authorized order refunds its credits
- Every balance change is mirrored by a ledger row
"""

import pytest

from authentiks.models import CreditTransaction, Order
from authentiks.services import credit_service, order_service
from authentiks.services.credit_service import InsufficientCreditsError, evaluate_gate
from conftest import grant


def new_order(creator, quantity):
    return order_service.create_order(creator, {"productName": "Serum", "quantity": quantity})


# =============================================================================
# GATE
# =============================================================================


class TestGate:

    def test_sufficient(self, app):
        gate = evaluate_gate(10, 25)
        assert gate.sufficient
        assert gate.shortfall == 0

    def test_exact_balance_is_enough(self, app):
        assert evaluate_gate(25, 25).sufficient

    def test_shortfall_costs(self, app):
        payload = evaluate_gate(100, 40).to_dict()
        assert payload == {
            "required": 100,
            "available": 40,
            "sufficient": False,
            "shortfall": 60,
            "topupCostPerQr": 5.0,
            "topupTotalCost": 300.0,
        }


# =============================================================================
# AUTHORIZE WITH CREDITS
# =============================================================================


class TestAuthorizeSpendsCredits:

    def test_spend_and_ledger(self, db_session, company, creator, authorizer):
        grant(company, 50)
        order = new_order(creator, 20)
        order_service.authorize_order(order.id, authorizer)

        db_session.refresh(company)
        assert company.qr_credits == 30

        spend = db_session.query(CreditTransaction).filter_by(type="spend").one()
        assert spend.amount == -20
        assert spend.balance_after == 30
        assert spend.order_id == order.id
        assert credit_service.verify_ledger(company.id)

    def test_insufficient_changes_nothing(self, client, db_session, company, creator, authorizer_headers):
        grant(company, 40)
        order = new_order(creator, 100)

        resp = client.put(f"/api/orders/{order.id}/authorize", headers=authorizer_headers)
        assert resp.status_code == 400
        body = resp.json
        assert body["insufficientCredits"] is True
        assert body["required"] == 100
        assert body["available"] == 40
        assert body["shortfall"] == 60
        assert body["topupCostPerQr"] == 5.0
        assert body["topupTotalCost"] == 300.0
        assert body["companyId"] == company.id
        assert body["companyName"] == "Acme Corp"
        assert body["error"] == "Insufficient QR credits. Need 100, have 40. 60 more needed."
        assert "sufficient" not in body

        db_session.expire_all()
        assert db_session.get(Order, order.id).status == "Pending Authorization"
        assert db_session.get(Order, order.id).history[-1].status == "Pending Authorization"
        assert company.qr_credits == 40
        assert db_session.query(CreditTransaction).filter_by(type="spend").count() == 0

    def test_topup_exact_shortfall_then_authorize(self, client, db_session, company, creator,
                                                  company_headers, authorizer_headers):
        grant(company, 40)
        order = new_order(creator, 100)

        refused = client.put(f"/api/orders/{order.id}/authorize", headers=authorizer_headers)
        shortfall = refused.json["shortfall"]
        assert shortfall == 60

        payment = client.post(
            "/api/payments/initiate",
            json={"type": "topup", "quantity": shortfall},
            headers=company_headers,
        )
        assert payment.status_code == 200
        assert payment.json["autoCompleted"] is True
        assert payment.json["creditsAdded"] == 60
        assert payment.json["qrCredits"] == 100

        resp = client.put(f"/api/orders/{order.id}/authorize", headers=authorizer_headers)
        assert resp.status_code == 200
        assert resp.json["order"]["status"] == "Authorized"

        db_session.expire_all()
        assert company.qr_credits == 0
        assert credit_service.verify_ledger(company.id)

    def test_service_raises_typed_error(self, db_session, company, creator, authorizer):
        order = new_order(creator, 3)
        with pytest.raises(InsufficientCreditsError) as excinfo:
            order_service.authorize_order(order.id, authorizer)
        assert excinfo.value.gate.shortfall == 3
        assert excinfo.value.to_dict()["insufficientCredits"] is True


# =============================================================================
# REFUND ON REJECT
# =============================================================================


class TestRejectRefund:

    def test_reject_authorized_refunds(self, client, db_session, company, creator, authorizer, company_headers):
        grant(company, 10)
        order = new_order(creator, 10)
        order_service.authorize_order(order.id, authorizer)

        resp = client.put(f"/api/orders/{order.id}/reject", json={"reason": "Changed mind"}, headers=company_headers)
        assert resp.status_code == 200
        assert resp.json["order"]["status"] == "Rejected"

        db_session.expire_all()
        assert company.qr_credits == 10
        refund = db_session.query(CreditTransaction).filter_by(type="refund").one()
        assert refund.amount == 10
        assert refund.order_id == order.id
        assert credit_service.verify_ledger(company.id)

    def test_reject_pending_does_not_touch_credits(self, db_session, company, creator, authorizer):
        grant(company, 10)
        order = new_order(creator, 4)
        order_service.reject_order(order.id, authorizer)

        db_session.refresh(company)
        assert company.qr_credits == 10
        assert db_session.query(CreditTransaction).filter_by(type="refund").count() == 0

    def test_cannot_reject_after_processing(self, db_session, company, creator, authorizer, admin):
        grant(company, 2)
        order = new_order(creator, 2)
        order_service.authorize_order(order.id, authorizer)
        order_service.process_order(order.id, admin)

        with pytest.raises(ValueError, match="can be rejected"):
            order_service.reject_order(order.id, admin)
        db_session.refresh(company)
        assert company.qr_credits == 0


# =============================================================================
# CREDIT ROUTES
# =============================================================================


class TestCreditRoutes:

    def test_balance(self, client, db_session, company, creator_headers):
        grant(company, 75)
        resp = client.get("/api/admin/credits/balance", headers=creator_headers)
        assert resp.status_code == 200
        assert resp.json == {"companyId": company.id, "companyName": "Acme Corp", "qrCredits": 75}

    def test_transactions_paginated(self, client, db_session, company, company_headers):
        for amount in (5, 10, 15):
            grant(company, amount)

        resp = client.get("/api/admin/credits/transactions?page=1&limit=2", headers=company_headers)
        assert resp.status_code == 200
        assert resp.json["total"] == 3
        assert resp.json["pages"] == 2
        assert [txn["amount"] for txn in resp.json["transactions"]] == [15, 10]

    def test_check_order(self, client, db_session, company, creator, creator_headers):
        grant(company, 5)
        order = new_order(creator, 8)
        resp = client.get(f"/api/admin/credits/check/{order.id}", headers=creator_headers)
        assert resp.status_code == 200
        assert resp.json["sufficient"] is False
        assert resp.json["shortfall"] == 3

    def test_admin_grant(self, client, db_session, company, admin_headers):
        resp = client.post(
            "/api/admin/credits/grant",
            json={"companyId": company.id, "amount": 250, "note": "Launch bonus"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json["qrCredits"] == 250
        assert resp.json["transaction"]["type"] == "admin_grant"
        assert credit_service.verify_ledger(company.id)

    @pytest.mark.parametrize("amount", [0, -5, "ten"])
    def test_grant_rejects_bad_amounts(self, client, db_session, company, admin_headers, amount):
        resp = client.post(
            "/api/admin/credits/grant",
            json={"companyId": company.id, "amount": amount},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_grant_requires_company(self, client, db_session, admin_headers):
        resp = client.post("/api/admin/credits/grant", json={"amount": 5}, headers=admin_headers)
        assert resp.status_code == 400

    def test_grant_unknown_company(self, client, db_session, admin_headers):
        resp = client.post("/api/admin/credits/grant", json={"companyId": 999, "amount": 5}, headers=admin_headers)
        assert resp.status_code == 404

    def test_admin_has_no_balance_of_its_own(self, client, db_session, admin_headers):
        resp = client.get("/api/admin/credits/balance", headers=admin_headers)
        assert resp.status_code == 403


# =============================================================================
# LEDGER INTEGRITY
# =============================================================================


class TestLedgerIntegrity:

    def test_detects_tampering(self, db_session, company):
        grant(company, 10)
        company.qr_credits = 99
        db_session.commit()
        assert not credit_service.verify_ledger(company.id)

    def test_balance_never_negative(self, db_session, company, creator, authorizer):
        grant(company, 1)
        first = new_order(creator, 1)
        second = new_order(creator, 1)
        order_service.authorize_order(first.id, authorizer)
        with pytest.raises(InsufficientCreditsError):
            order_service.authorize_order(second.id, authorizer)

        db_session.refresh(company)
        assert company.qr_credits == 0
        assert credit_service.verify_ledger(company.id)
