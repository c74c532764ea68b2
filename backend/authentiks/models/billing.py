from __future__ import annotations

from ..extensions import db
from authentiks.time_utils import to_utc_z, utcnow
from authentiks.validation import paise_to_rupees, bps_to_percent


# Credit ledger entry types
CREDIT_PURCHASE_PLAN = "purchase_plan"
CREDIT_PURCHASE_TOPUP = "purchase_topup"
CREDIT_SPEND = "spend"
CREDIT_REFUND = "refund"
CREDIT_ADMIN_GRANT = "admin_grant"

CREDIT_TRANSACTION_TYPES = (
    CREDIT_PURCHASE_PLAN,
    CREDIT_PURCHASE_TOPUP,
    CREDIT_SPEND,
    CREDIT_REFUND,
    CREDIT_ADMIN_GRANT,
)

CHARGE_TYPES = ("percentage", "flat")

PAYMENT_PENDING = "pending"
PAYMENT_COMPLETED = "completed"
PAYMENT_FAILED = "failed"

PAYMENT_TYPES = ("plan", "topup")


class CreditTransaction(db.Model):
    """
    Append-only QR credit ledger.

    INVARIANT: balance_after equals the running sum of amount for the
    company, and never drops below zero.
    """
    __tablename__ = "credit_transactions"
    __table_args__ = (
        db.Index("ix_credit_transactions_company_created", "company_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    type = db.Column(db.String(32), nullable=False)

    # +ve for credits added, -ve for credits spent
    amount = db.Column(db.Integer, nullable=False)
    balance_after = db.Column(db.Integer, nullable=False)

    # Purchases
    unit_price_paise = db.Column(db.Integer, nullable=True)
    total_paid_paise = db.Column(db.Integer, nullable=True)
    plan_name = db.Column(db.String(128), nullable=True)
    payment_id = db.Column(db.Integer, nullable=True)

    # Spends/refunds
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=True)

    performed_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    note = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    performed_by = db.relationship("User", foreign_keys=[performed_by_user_id])
    order = db.relationship("Order", foreign_keys=[order_id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "companyId": self.company_id,
            "type": self.type,
            "amount": self.amount,
            "balanceAfter": self.balance_after,
            "unitPrice": paise_to_rupees(self.unit_price_paise),
            "totalPaid": paise_to_rupees(self.total_paid_paise),
            "planName": self.plan_name,
            "paymentId": self.payment_id,
            "orderId": self.order_id,
            "orderNumber": self.order.order_number if self.order else None,
            "performedBy": {
                "id": self.performed_by.id,
                "name": self.performed_by.name,
                "email": self.performed_by.email,
            } if self.performed_by else None,
            "note": self.note,
            "createdAt": to_utc_z(self.created_at),
        }


class PricePlan(db.Model):
    """Credit bundle offered for purchase."""
    __tablename__ = "price_plans"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False, unique=True)
    price_per_qr_paise = db.Column(db.Integer, nullable=False)
    qr_credits = db.Column(db.Integer, nullable=False)
    min_qr_per_order = db.Column(db.Integer, nullable=True)
    validity = db.Column(db.String(64), nullable=True)
    is_popular = db.Column(db.Boolean, nullable=False, default=False)
    is_trial = db.Column(db.Boolean, nullable=False, default=False)
    save_text = db.Column(db.String(128), nullable=True)
    features = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    @property
    def price_paise(self) -> int:
        return self.price_per_qr_paise * self.qr_credits

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "price": paise_to_rupees(self.price_paise),
            "pricePerQr": paise_to_rupees(self.price_per_qr_paise),
            "qrCredits": self.qr_credits,
            "minQrPerOrder": self.min_qr_per_order,
            "validity": self.validity,
            "isPopular": self.is_popular,
            "isTrial": self.is_trial,
            "saveText": self.save_text,
            "features": list(self.features or []),
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


class BillingSetting(db.Model):
    """Singleton row holding the GST rate."""
    __tablename__ = "billing_settings"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    gst_rate_bps = db.Column(db.Integer, nullable=False, default=1800)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    charges = db.relationship(
        "AdditionalCharge",
        backref="setting",
        lazy=True,
        order_by="AdditionalCharge.id",
        cascade="all, delete-orphan",
    )

    def to_dict(self) -> dict:
        return {
            "gstPercentage": bps_to_percent(self.gst_rate_bps),
            "additionalCharges": [charge.to_dict() for charge in self.charges],
            "updatedAt": to_utc_z(self.updated_at),
        }


class AdditionalCharge(db.Model):
    """
    Extra line on every price breakdown.

    value is basis points for "percentage" charges and paise for "flat".
    """
    __tablename__ = "additional_charges"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    setting_id = db.Column(db.Integer, db.ForeignKey("billing_settings.id"), nullable=False, index=True)
    name = db.Column(db.String(128), nullable=False)
    charge_type = db.Column(db.String(16), nullable=False, default="percentage")
    value = db.Column(db.Integer, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.charge_type,
            "value": bps_to_percent(self.value) if self.charge_type == "percentage" else paise_to_rupees(self.value),
            "isActive": self.is_active,
        }


class Coupon(db.Model):
    """
    Discount code applied to a purchase.

    discount_value is basis points for "percentage" coupons and paise for
    "flat". max_discount_paise = 0 and usage_limit = 0 mean "no limit".
    """
    __tablename__ = "coupons"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(64), nullable=False, unique=True, index=True)
    description = db.Column(db.String(255), nullable=False, default="")
    discount_type = db.Column(db.String(16), nullable=False, default="percentage")
    discount_value = db.Column(db.Integer, nullable=False)
    min_amount_paise = db.Column(db.Integer, nullable=False, default=0)
    max_discount_paise = db.Column(db.Integer, nullable=False, default=0)
    expires_at = db.Column(db.DateTime, nullable=True)
    usage_limit = db.Column(db.Integer, nullable=False, default=0)
    used_count = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    version_id = db.Column(db.Integer, nullable=False, default=1)
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        if self.discount_type == "percentage":
            discount_value = bps_to_percent(self.discount_value)
        else:
            discount_value = paise_to_rupees(self.discount_value)
        return {
            "id": self.id,
            "code": self.code,
            "description": self.description,
            "discountType": self.discount_type,
            "discountValue": discount_value,
            "minAmount": paise_to_rupees(self.min_amount_paise),
            "maxDiscount": paise_to_rupees(self.max_discount_paise),
            "expiryDate": to_utc_z(self.expires_at),
            "usageLimit": self.usage_limit,
            "usedCount": self.used_count,
            "isActive": self.is_active,
            "createdAt": to_utc_z(self.created_at),
        }


class Payment(db.Model):
    """
    A credit purchase (plan bundle or per-QR top-up).

    DESIGN:
    - The full price breakdown is frozen on the row at initiation, together
      with the credits it buys, the unit price and the plan name; later plan
      edits or deletion do not change what a pending payment delivers
    - charged_amount_paise is what the gateway is asked to collect; it
      differs from final_amount_paise only for test accounts
    - Only a "pending" payment can complete or fail, which makes callback
      processing idempotent
    """
    __tablename__ = "payments"
    __table_args__ = (
        db.Index("ix_payments_company_created", "company_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    type = db.Column(db.String(16), nullable=False)
    plan_id = db.Column(db.Integer, db.ForeignKey("price_plans.id", ondelete="SET NULL"), nullable=True)
    plan_name = db.Column(db.String(128), nullable=True)
    quantity = db.Column(db.Integer, nullable=False, default=0)
    credits = db.Column(db.Integer, nullable=False, default=0)
    unit_price_paise = db.Column(db.Integer, nullable=False, default=0)

    # Breakdown (paise / bps)
    base_amount_paise = db.Column(db.Integer, nullable=False)
    gst_rate_bps = db.Column(db.Integer, nullable=False, default=0)
    gst_amount_paise = db.Column(db.Integer, nullable=False, default=0)
    additional_charges = db.Column(db.JSON, nullable=False, default=list)
    charges_total_paise = db.Column(db.Integer, nullable=False, default=0)
    coupon_code = db.Column(db.String(64), nullable=True)
    coupon_discount_paise = db.Column(db.Integer, nullable=False, default=0)
    final_amount_paise = db.Column(db.Integer, nullable=False)
    charged_amount_paise = db.Column(db.Integer, nullable=False)
    is_test_payment = db.Column(db.Boolean, nullable=False, default=False)

    # Gateway
    merchant_order_id = db.Column(db.String(64), nullable=False, unique=True, index=True)
    gateway_transaction_id = db.Column(db.String(128), nullable=True)
    redirect_url = db.Column(db.String(1024), nullable=True)

    status = db.Column(db.String(16), nullable=False, default=PAYMENT_PENDING, index=True)
    credit_transaction_id = db.Column(db.Integer, db.ForeignKey("credit_transactions.id"), nullable=True)
    performed_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    completed_at = db.Column(db.DateTime, nullable=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    company = db.relationship("Company", foreign_keys=[company_id])
    plan = db.relationship("PricePlan", foreign_keys=[plan_id])
    performed_by = db.relationship("User", foreign_keys=[performed_by_user_id])
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "companyId": self.company_id,
            "companyName": self.company.company_name if self.company else None,
            "type": self.type,
            "planId": self.plan_id,
            "planName": self.plan_name,
            "quantity": self.quantity,
            "credits": self.credits,
            "unitPrice": paise_to_rupees(self.unit_price_paise),
            "baseAmount": paise_to_rupees(self.base_amount_paise),
            "gstPercentage": bps_to_percent(self.gst_rate_bps),
            "gstAmount": paise_to_rupees(self.gst_amount_paise),
            "additionalCharges": [
                {
                    "name": charge["name"],
                    "type": charge["type"],
                    "value": charge["value"],
                    "amount": paise_to_rupees(charge["amountPaise"]),
                }
                for charge in (self.additional_charges or [])
            ],
            "chargesTotal": paise_to_rupees(self.charges_total_paise),
            "couponCode": self.coupon_code,
            "couponDiscount": paise_to_rupees(self.coupon_discount_paise),
            "finalAmount": paise_to_rupees(self.final_amount_paise),
            "chargedAmount": paise_to_rupees(self.charged_amount_paise),
            "isTestPayment": self.is_test_payment,
            "merchantOrderId": self.merchant_order_id,
            "gatewayTransactionId": self.gateway_transaction_id,
            "redirectUrl": self.redirect_url,
            "status": self.status,
            "creditTransactionId": self.credit_transaction_id,
            "performedBy": {
                "id": self.performed_by.id,
                "name": self.performed_by.name,
                "email": self.performed_by.email,
            } if self.performed_by else None,
            "createdAt": to_utc_z(self.created_at),
            "completedAt": to_utc_z(self.completed_at),
        }


class TestAccount(db.Model):
    """
    Company flagged for live-gateway testing.

    The gateway charges test_amount_paise instead of the real total while
    the company is still credited in full.
    """
    __tablename__ = "test_accounts"
    __table_args__ = {"sqlite_autoincrement": True}

    # Not a pytest test class
    __test__ = False

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, unique=True)
    test_amount_paise = db.Column(db.Integer, nullable=False, default=100)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    description = db.Column(db.String(255), nullable=False, default="")
    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    company = db.relationship("Company", foreign_keys=[company_id])

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "companyId": self.company_id,
            "companyName": self.company.company_name if self.company else None,
            "testAmount": paise_to_rupees(self.test_amount_paise),
            "isActive": self.is_active,
            "description": self.description,
            "createdAt": to_utc_z(self.created_at),
        }
