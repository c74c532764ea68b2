# Overview: Service-layer operations for credit purchases; initiation, completion, callbacks, test accounts.

"""
Credit Purchase Service

FLOW:
1. initiate: price the purchase (plan bundle or per-QR top-up), freeze the
   breakdown on a pending Payment and hand the payer to the gateway
2. the gateway reports the outcome through callback/webhook, or the
   client polls status
3. complete: credit the company ledger once

DESIGN:
- Only a pending payment can complete or fail; duplicate callbacks and
  repeated polls are no-ops
- Without a configured gateway (or when nothing is chargeable) the payment
  completes during initiate
- A company flagged as a test account is charged its fixed test amount
  and still credited in full
- Credits, unit price and plan name are frozen at initiate
- A discounted payment reserves one coupon use at initiate, under a row
  lock; a failed payment gives the use back
"""

from __future__ import annotations

import uuid

from flask import current_app

from ..extensions import db
from ..models import Company, Coupon, Payment, PricePlan, TestAccount, User
from ..models.billing import (
    CREDIT_PURCHASE_PLAN,
    CREDIT_PURCHASE_TOPUP,
    PAYMENT_PENDING,
    PAYMENT_COMPLETED,
    PAYMENT_FAILED,
    PAYMENT_TYPES,
)
from ..permissions import is_platform_role
from ..validation import (
    ValidationError,
    ConflictError,
    NotFoundError,
    AccessDeniedError,
    paise_to_rupees,
    parse_positive_int,
    require_fields,
    rupees_to_paise,
)
from authentiks.time_utils import utcnow
from . import credit_service, gateway_service, pricing_service
from .concurrency import lock_for_update, run_with_retry
from .gateway_service import PaymentGatewayError, STATE_COMPLETED, STATE_FAILED
from .user_service import resolve_company


class PaymentError(ValueError):
    """Raised for invalid payment operations."""
    pass


class PaymentNotFoundError(PaymentError, NotFoundError):
    pass


class PaymentAccessError(PaymentError, AccessDeniedError):
    pass


def new_merchant_order_id() -> str:
    # Gateway limit: 63 chars of [A-Za-z0-9_-]
    return "ORD_" + uuid.uuid4().hex[:16].upper()


def active_test_account(company_id: int) -> TestAccount | None:
    return db.session.query(TestAccount).filter_by(company_id=company_id, is_active=True).first()


def _base_for(data: dict) -> tuple[str, PricePlan | None, int, int]:
    """(type, plan, topup quantity, base paise) for an initiate request."""
    payment_type = data.get("type")
    if payment_type not in PAYMENT_TYPES:
        raise ValidationError("Invalid payment type")

    if payment_type == "plan":
        plan = db.session.get(PricePlan, data.get("planId")) if data.get("planId") is not None else None
        if plan is None:
            raise PaymentNotFoundError("Plan not found")
        if plan.qr_credits <= 0 or plan.price_paise <= 0:
            raise PaymentError("Invalid plan configuration")
        return payment_type, plan, 0, plan.price_paise

    quantity = parse_positive_int(data.get("quantity"), "quantity")
    return payment_type, None, quantity, quantity * credit_service.topup_price_paise()


def initiate_payment(user: User, data: dict) -> dict:
    """
    Start a plan or top-up purchase for the caller's company.

    Returns the response payload. Raises PaymentGatewayError (payment
    recorded as failed) when the gateway refuses the checkout.
    """
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    company = credit_service.company_for_user(user)
    payment_type, plan, quantity, base_paise = _base_for(data)

    breakdown = pricing_service.breakdown_for(base_paise, data.get("couponCode"))

    test_account = active_test_account(company.id)
    charged_paise = test_account.test_amount_paise if test_account else breakdown.final_paise

    payment = Payment(
        company_id=company.id,
        type=payment_type,
        plan_id=plan.id if plan else None,
        plan_name=plan.name if plan else None,
        quantity=quantity,
        credits=plan.qr_credits if plan else quantity,
        unit_price_paise=plan.price_per_qr_paise if plan else credit_service.topup_price_paise(),
        base_amount_paise=breakdown.base_paise,
        gst_rate_bps=breakdown.gst_rate_bps,
        gst_amount_paise=breakdown.gst_paise,
        additional_charges=[line.to_record() for line in breakdown.charges],
        charges_total_paise=breakdown.charges_total_paise,
        coupon_code=breakdown.coupon.code if breakdown.coupon else None,
        coupon_discount_paise=breakdown.coupon_discount_paise,
        final_amount_paise=breakdown.final_paise,
        charged_amount_paise=charged_paise,
        is_test_payment=test_account is not None,
        merchant_order_id=new_merchant_order_id(),
        status=PAYMENT_PENDING,
        performed_by_user_id=user.id,
    )
    _save_with_coupon_reservation(payment)

    if test_account is not None:
        current_app.logger.info(
            "Test account %s: payment %s charged %d paise instead of %d",
            company.company_name, payment.merchant_order_id, charged_paise, breakdown.final_paise,
        )

    response = {
        "paymentId": payment.id,
        "merchantOrderId": payment.merchant_order_id,
        "finalAmount": paise_to_rupees(breakdown.final_paise),
        "actualPaymentAmount": paise_to_rupees(charged_paise),
        "isTestAccount": test_account is not None,
        "breakdown": {
            **breakdown.to_dict(),
            "testAmount": paise_to_rupees(charged_paise) if test_account else None,
        },
    }

    gateway = gateway_service.get_gateway()
    if gateway is not None and charged_paise > 0:
        redirect_target = (
            f"{current_app.config.get('FRONTEND_URL', '').rstrip('/')}"
            f"/admin/billing?payment={payment.merchant_order_id}"
        )
        try:
            redirect_url = gateway.create_checkout(payment.merchant_order_id, charged_paise, redirect_target)
        except PaymentGatewayError:
            fail_payment(payment.merchant_order_id)
            current_app.logger.warning("Gateway refused payment %s", payment.merchant_order_id)
            raise
        finally:
            gateway.close()

        payment.redirect_url = redirect_url
        db.session.commit()
        current_app.logger.info("Payment %s sent to gateway", payment.merchant_order_id)
        response["redirectUrl"] = redirect_url
        return response

    result = complete_payment(payment.merchant_order_id)
    response.update({
        "redirectUrl": None,
        "autoCompleted": True,
        "creditsAdded": result["creditsAdded"],
        "qrCredits": result["qrCredits"],
    })
    return response


def _lock_coupon(code: str) -> Coupon | None:
    return lock_for_update(db.session.query(Coupon).filter_by(code=code)).first()


def _save_with_coupon_reservation(payment: Payment) -> None:
    """Persist a new payment, taking one use of its coupon when it discounts."""
    if not payment.coupon_code or payment.coupon_discount_paise <= 0:
        db.session.add(payment)
        db.session.commit()
        return

    def _op():
        coupon = _lock_coupon(payment.coupon_code)
        if coupon is None:
            raise pricing_service.CouponNotFoundError("Coupon not found")
        if coupon.usage_limit > 0 and coupon.used_count >= coupon.usage_limit:
            raise pricing_service.CouponError("Coupon usage limit reached")
        coupon.used_count += 1
        db.session.add(payment)
        db.session.commit()

    run_with_retry(_op)


def _release_coupon(payment: Payment) -> None:
    if not payment.coupon_code or payment.coupon_discount_paise <= 0:
        return
    coupon = _lock_coupon(payment.coupon_code)
    if coupon is not None and coupon.used_count > 0:
        coupon.used_count -= 1


def complete_payment(merchant_order_id: str, transaction_id: str | None = None) -> dict:
    """
    Mark a pending payment completed and credit the company.

    Returns {"creditsAdded", "qrCredits", "status"}; a payment that is no
    longer pending is left alone and reports creditsAdded = 0.
    """
    def _op():
        payment = lock_for_update(
            db.session.query(Payment).filter_by(merchant_order_id=merchant_order_id)
        ).first()
        if payment is None:
            raise PaymentNotFoundError("Payment not found")
        company = credit_service.lock_company(payment.company_id)
        if payment.status != PAYMENT_PENDING:
            return {"creditsAdded": 0, "qrCredits": company.qr_credits, "status": payment.status}

        credits = payment.credits
        payment.status = PAYMENT_COMPLETED
        payment.completed_at = utcnow()
        if transaction_id:
            payment.gateway_transaction_id = transaction_id

        if credits > 0:
            txn = credit_service.post_purchase(
                company,
                credits,
                CREDIT_PURCHASE_PLAN if payment.type == "plan" else CREDIT_PURCHASE_TOPUP,
                unit_price_paise=payment.unit_price_paise,
                total_paid_paise=payment.final_amount_paise,
                plan_name=payment.plan_name,
                payment_id=payment.id,
                performed_by_user_id=payment.performed_by_user_id,
                note=f"Payment {payment.merchant_order_id}: ₹{paise_to_rupees(payment.final_amount_paise):.2f}",
            )
            payment.credit_transaction_id = txn.id

        db.session.commit()
        current_app.logger.info(
            "Payment %s completed: %d credits to company %s", merchant_order_id, credits, company.id,
        )
        return {"creditsAdded": credits, "qrCredits": company.qr_credits, "status": payment.status}

    return run_with_retry(_op)


def fail_payment(merchant_order_id: str, transaction_id: str | None = None) -> Payment:
    def _op():
        payment = lock_for_update(
            db.session.query(Payment).filter_by(merchant_order_id=merchant_order_id)
        ).first()
        if payment is None:
            raise PaymentNotFoundError("Payment not found")
        if payment.status == PAYMENT_PENDING:
            payment.status = PAYMENT_FAILED
            if transaction_id:
                payment.gateway_transaction_id = transaction_id
            _release_coupon(payment)
            db.session.commit()
            current_app.logger.info("Payment %s failed", merchant_order_id)
        return payment

    return run_with_retry(_op)


def handle_callback(body: dict) -> dict:
    """
    Apply a gateway notification. Returns {"message", "status"}.

    Unknown payments raise PaymentNotFoundError; payments that are no
    longer pending are reported as already processed.
    """
    merchant_order_id, transaction_id, state = gateway_service.decode_callback(body)
    if not merchant_order_id:
        raise ValidationError("Missing merchantOrderId")

    payment = db.session.query(Payment).filter_by(merchant_order_id=merchant_order_id).first()
    if payment is None:
        raise PaymentNotFoundError("Payment not found")
    if payment.status != PAYMENT_PENDING:
        return {"message": "Payment already processed", "status": payment.status}

    if state == STATE_COMPLETED:
        result = complete_payment(merchant_order_id, transaction_id)
        return {"message": "Callback processed", "status": result["status"]}
    if state == STATE_FAILED:
        payment = fail_payment(merchant_order_id, transaction_id)
        return {"message": "Callback processed", "status": payment.status}

    current_app.logger.info("Payment %s still pending after callback", merchant_order_id)
    return {"message": "Callback processed", "status": payment.status}


def _check_company_scope(payment: Payment, user: User) -> None:
    if is_platform_role(user.role):
        return
    company = credit_service.company_for_user(user)
    if payment.company_id != company.id:
        raise PaymentAccessError("Not authorized for this payment")


def get_status(merchant_order_id: str, user: User) -> Payment:
    """Payment by merchant order id, refreshed from the gateway while pending."""
    payment = db.session.query(Payment).filter_by(merchant_order_id=merchant_order_id).first()
    if payment is None:
        raise PaymentNotFoundError("Payment not found")
    _check_company_scope(payment, user)

    if payment.status == PAYMENT_PENDING:
        gateway = gateway_service.get_gateway()
        if gateway is not None:
            try:
                state, transaction_id = gateway.order_status(merchant_order_id)
            except PaymentGatewayError as exc:
                current_app.logger.warning("Gateway status check failed for %s: %s", merchant_order_id, exc)
            else:
                if state == STATE_COMPLETED:
                    complete_payment(merchant_order_id, transaction_id)
                elif state == STATE_FAILED:
                    fail_payment(merchant_order_id, transaction_id)
            finally:
                gateway.close()
            db.session.refresh(payment)
    return payment


def get_payment(payment_id: int, user: User) -> Payment:
    payment = db.session.get(Payment, payment_id)
    if payment is None:
        raise PaymentNotFoundError("Payment not found")
    _check_company_scope(payment, user)
    return payment


def payment_history(user: User, limit=100, company_id=None) -> list[Payment]:
    try:
        limit = min(500, max(1, int(limit)))
    except (TypeError, ValueError):
        raise ValidationError("limit must be an integer")

    query = db.session.query(Payment)
    if is_platform_role(user.role):
        if company_id:
            query = query.filter(Payment.company_id == company_id)
    else:
        company = credit_service.company_for_user(user)
        query = query.filter(Payment.company_id == company.id)
    return query.order_by(Payment.created_at.desc(), Payment.id.desc()).limit(limit).all()


# =============================================================================
# TEST ACCOUNTS
# =============================================================================

def is_test_account(user: User) -> dict:
    company = resolve_company(user)
    account = active_test_account(company.id) if company else None
    return {
        "isTestAccount": account is not None,
        "testAmount": paise_to_rupees(account.test_amount_paise) if account else None,
    }


def list_test_accounts() -> list[TestAccount]:
    return db.session.query(TestAccount).order_by(TestAccount.created_at.desc(), TestAccount.id.desc()).all()


def create_test_account(user: User, data: dict) -> TestAccount:
    require_fields(data, ("companyId",))
    company = db.session.get(Company, data["companyId"])
    if company is None:
        raise PaymentNotFoundError("Company not found")
    if db.session.query(TestAccount).filter_by(company_id=company.id).first() is not None:
        raise ConflictError("Company is already a test account")

    account = TestAccount(
        company_id=company.id,
        test_amount_paise=rupees_to_paise(data.get("testAmount", 1), "testAmount"),
        is_active=bool(data.get("isActive", True)),
        description=str(data.get("description") or ""),
        created_by_user_id=user.id,
    )
    db.session.add(account)
    db.session.commit()
    current_app.logger.info("Company %s flagged as test account", company.id)
    return account


def update_test_account(account_id: int, data: dict) -> TestAccount:
    account = db.session.get(TestAccount, account_id)
    if account is None:
        raise PaymentNotFoundError("Test account not found")
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    if "testAmount" in data:
        account.test_amount_paise = rupees_to_paise(data["testAmount"], "testAmount")
    if "isActive" in data:
        account.is_active = bool(data["isActive"])
    if "description" in data:
        account.description = str(data["description"] or "")
    db.session.commit()
    return account


def delete_test_account(account_id: int) -> None:
    account = db.session.get(TestAccount, account_id)
    if account is None:
        raise PaymentNotFoundError("Test account not found")
    db.session.delete(account)
    db.session.commit()
