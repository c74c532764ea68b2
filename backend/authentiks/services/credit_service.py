# Overview: Service-layer operations for the QR credit ledger and the credit gate.

"""
QR Credit Ledger

WHY: Authorizing an order consumes one credit per QR code. Credits are
bought (plans/top-ups), granted by admins, spent on authorization and
refunded when an authorized order is rejected.

INVARIANTS:
- Every balance change writes exactly one CreditTransaction whose
  balance_after is the company balance after the change
- The balance never goes below zero; a spend that would is refused whole
  (no partial consumption)

The _post_* helpers do not commit. They run inside the caller's unit of
work (order authorization, payment completion) so the ledger row, the
balance and the caller's own state change commit together.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from ..extensions import db
from ..models import Company, CreditTransaction, Order, User
from ..models.billing import (
    CREDIT_SPEND,
    CREDIT_REFUND,
    CREDIT_ADMIN_GRANT,
)
from ..permissions import is_platform_role
from ..validation import ValidationError, NotFoundError, AccessDeniedError, parse_positive_int
from .concurrency import lock_for_update, run_with_retry
from .user_service import resolve_company


class CreditError(ValueError):
    """Raised for invalid credit operations."""
    pass


class CreditNotFoundError(CreditError, NotFoundError):
    pass


class CreditAccessError(CreditError, AccessDeniedError):
    pass


@dataclass(frozen=True)
class Shortfall:
    """Outcome of the credit gate for a given requirement."""
    required: int
    available: int
    topup_price_paise: int

    @property
    def shortfall(self) -> int:
        return max(0, self.required - self.available)

    @property
    def sufficient(self) -> bool:
        return self.available >= self.required

    def to_dict(self) -> dict:
        return {
            "required": self.required,
            "available": self.available,
            "sufficient": self.sufficient,
            "shortfall": self.shortfall,
            "topupCostPerQr": self.topup_price_paise / 100,
            "topupTotalCost": self.shortfall * self.topup_price_paise / 100,
        }


class InsufficientCreditsError(CreditError):
    """
    The credit gate refused a spend.

    Carries the structured shortfall payload returned to clients so they
    can offer a top-up of exactly the missing credits.
    """

    def __init__(self, company: Company, gate: Shortfall):
        self.company_id = company.id
        self.company_name = company.company_name
        self.gate = gate
        super().__init__(
            f"Insufficient QR credits. Need {gate.required}, have {gate.available}. "
            f"{gate.shortfall} more needed."
        )

    def to_dict(self) -> dict:
        payload = self.gate.to_dict()
        payload.pop("sufficient")
        payload.update({
            "error": str(self),
            "message": str(self),
            "insufficientCredits": True,
            "companyId": self.company_id,
            "companyName": self.company_name,
        })
        return payload


def topup_price_paise() -> int:
    return int(current_app.config.get("QR_TOPUP_PRICE_PAISE", 500))


def evaluate_gate(required: int, available: int) -> Shortfall:
    return Shortfall(required=required, available=available, topup_price_paise=topup_price_paise())


def company_for_user(user: User) -> Company:
    company = resolve_company(user)
    if company is None:
        raise CreditError("User not linked to a company")
    return company


def lock_company(company_id: int) -> Company:
    company = lock_for_update(db.session.query(Company).filter_by(id=company_id)).first()
    if company is None:
        raise CreditNotFoundError("Company not found")
    return company


# =============================================================================
# LEDGER POSTING (no commit)
# =============================================================================

def _post(company: Company, amount: int, txn_type: str, **fields) -> CreditTransaction:
    new_balance = (company.qr_credits or 0) + amount
    if new_balance < 0:
        raise InsufficientCreditsError(company, evaluate_gate(-amount, company.qr_credits or 0))

    company.qr_credits = new_balance
    txn = CreditTransaction(
        company_id=company.id,
        type=txn_type,
        amount=amount,
        balance_after=new_balance,
        **fields,
    )
    db.session.add(txn)
    db.session.flush()
    current_app.logger.info(
        "Credit %s of %+d for company %s; balance now %d",
        txn_type, amount, company.id, new_balance,
    )
    return txn


def post_spend(company: Company, order: Order, user: User) -> CreditTransaction:
    """
    Spend order.quantity credits. Raises InsufficientCreditsError and
    changes nothing when the balance is short.
    """
    gate = evaluate_gate(order.quantity, company.qr_credits or 0)
    if not gate.sufficient:
        raise InsufficientCreditsError(company, gate)
    return _post(
        company,
        -order.quantity,
        CREDIT_SPEND,
        order_id=order.id,
        performed_by_user_id=user.id,
        note=f"Authorized order {order.order_number}: {order.quantity} QR credits spent",
    )


def post_refund(company: Company, order: Order, user: User) -> CreditTransaction:
    return _post(
        company,
        order.quantity,
        CREDIT_REFUND,
        order_id=order.id,
        performed_by_user_id=user.id,
        note=f"Rejected order {order.order_number}: {order.quantity} QR credits refunded",
    )


def post_purchase(
    company: Company,
    credits: int,
    txn_type: str,
    *,
    unit_price_paise: int,
    total_paid_paise: int,
    plan_name: str | None,
    payment_id: int,
    performed_by_user_id: int,
    note: str,
) -> CreditTransaction:
    return _post(
        company,
        credits,
        txn_type,
        unit_price_paise=unit_price_paise,
        total_paid_paise=total_paid_paise,
        plan_name=plan_name,
        payment_id=payment_id,
        performed_by_user_id=performed_by_user_id,
        note=note,
    )


# =============================================================================
# PUBLIC OPERATIONS
# =============================================================================

def grant_credits(company_id, amount, user: User, note: str | None = None) -> CreditTransaction:
    """Admin grant outside the payment flow."""
    amount = parse_positive_int(amount, "amount")

    def _op():
        company = lock_company(company_id)
        txn = _post(
            company,
            amount,
            CREDIT_ADMIN_GRANT,
            performed_by_user_id=user.id if user else None,
            note=note or f"Admin grant of {amount} QR credits",
        )
        db.session.commit()
        return txn

    return run_with_retry(_op)


def get_balance(user: User) -> dict:
    company = company_for_user(user)
    return {
        "companyId": company.id,
        "companyName": company.company_name,
        "qrCredits": company.qr_credits,
    }


def list_transactions(user: User, page=1, limit=20) -> dict:
    company = company_for_user(user)
    try:
        page = max(1, int(page))
        limit = min(100, max(1, int(limit)))
    except (TypeError, ValueError):
        raise ValidationError("page and limit must be integers")

    query = db.session.query(CreditTransaction).filter_by(company_id=company.id)
    total = query.count()
    rows = query.order_by(
        CreditTransaction.created_at.desc(), CreditTransaction.id.desc()
    ).offset((page - 1) * limit).limit(limit).all()

    return {
        "transactions": [row.to_dict() for row in rows],
        "total": total,
        "page": page,
        "pages": (total + limit - 1) // limit,
    }


def check_order(order_id: int, user: User) -> dict:
    """Dry-run the credit gate for an order without touching the balance."""
    order = db.session.get(Order, order_id)
    if order is None:
        raise CreditNotFoundError("Order not found")
    if not is_platform_role(user.role) and order.brand_id != user.brand_id:
        raise CreditAccessError("Not authorized for this order")

    brand = order.brand_ref
    company = brand.company if brand else None
    if company is None:
        raise CreditError("Brand or company not found for this order")
    return evaluate_gate(order.quantity, company.qr_credits or 0).to_dict()


def verify_ledger(company_id: int) -> bool:
    """True if the running sum of the ledger matches every balance_after and the balance."""
    company = db.session.get(Company, company_id)
    if company is None:
        raise CreditNotFoundError("Company not found")
    running = 0
    rows = db.session.query(CreditTransaction).filter_by(company_id=company_id).order_by(CreditTransaction.id).all()
    for row in rows:
        running += row.amount
        if running != row.balance_after or running < 0:
            return False
    return running == company.qr_credits
