# Overview: Service-layer operations for pricing; breakdowns, plans, GST settings and coupons.

"""
Pricing Calculator

    finalAmount = baseAmount + gstAmount + sum(additional charge amounts) - couponDiscount

All arithmetic is integer paise; rates are basis points. Percentages are
taken of the base amount and rounded half-up to the paisa, so the identity
above holds exactly and finalAmount is never negative (the coupon discount
is capped at the base amount).
"""

from __future__ import annotations

from dataclasses import dataclass, field

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import BillingSetting, AdditionalCharge, Coupon, Payment, PricePlan, User
from ..models.billing import CHARGE_TYPES
from ..validation import (
    ValidationError,
    ConflictError,
    NotFoundError,
    paise_to_rupees,
    bps_to_percent,
    parse_positive_int,
    percent_to_bps,
    require_fields,
    rupees_to_paise,
)
from authentiks.time_utils import utcnow, parse_iso_datetime


class PricingError(ValueError):
    """Raised for invalid pricing input or configuration."""
    pass


class PricingNotFoundError(PricingError, NotFoundError):
    pass


class CouponError(PricingError):
    """Raised when a coupon cannot be applied."""
    pass


class CouponNotFoundError(CouponError, NotFoundError):
    pass


def percent_of(amount_paise: int, rate_bps: int) -> int:
    """Half-up rounded share of an amount (integer paise)."""
    return (amount_paise * rate_bps + 5000) // 10000


@dataclass
class ChargeLine:
    name: str
    charge_type: str
    value: int
    amount_paise: int

    def to_dict(self) -> dict:
        value = bps_to_percent(self.value) if self.charge_type == "percentage" else paise_to_rupees(self.value)
        return {
            "name": self.name,
            "type": self.charge_type,
            "value": value,
            "amount": paise_to_rupees(self.amount_paise),
        }

    def to_record(self) -> dict:
        """Frozen copy stored on a Payment row."""
        wire = self.to_dict()
        return {
            "name": self.name,
            "type": self.charge_type,
            "value": wire["value"],
            "amountPaise": self.amount_paise,
        }


@dataclass
class PriceBreakdown:
    base_paise: int
    gst_rate_bps: int
    gst_paise: int
    charges: list[ChargeLine] = field(default_factory=list)
    coupon: Coupon | None = None
    coupon_discount_paise: int = 0

    @property
    def charges_total_paise(self) -> int:
        return sum(line.amount_paise for line in self.charges)

    @property
    def subtotal_paise(self) -> int:
        return self.base_paise + self.gst_paise + self.charges_total_paise

    @property
    def final_paise(self) -> int:
        return max(0, self.subtotal_paise - self.coupon_discount_paise)

    def to_dict(self) -> dict:
        return {
            "baseAmount": paise_to_rupees(self.base_paise),
            "gstPercentage": bps_to_percent(self.gst_rate_bps),
            "gstAmount": paise_to_rupees(self.gst_paise),
            "additionalCharges": [line.to_dict() for line in self.charges],
            "chargesTotal": paise_to_rupees(self.charges_total_paise),
            "couponDiscount": paise_to_rupees(self.coupon_discount_paise),
            "couponInfo": {
                "code": self.coupon.code,
                "discountType": self.coupon.discount_type,
                "discountValue": coupon_value_for_wire(self.coupon),
            } if self.coupon is not None else None,
            "subtotal": paise_to_rupees(self.subtotal_paise),
            "finalAmount": paise_to_rupees(self.final_paise),
        }


# =============================================================================
# SETTINGS
# =============================================================================

def get_settings() -> BillingSetting:
    """Singleton billing settings row, created with defaults on first use."""
    settings = db.session.query(BillingSetting).order_by(BillingSetting.id).first()
    if settings is None:
        settings = BillingSetting(gst_rate_bps=current_app.config.get("DEFAULT_GST_RATE_BPS", 1800))
        db.session.add(settings)
        db.session.commit()
    return settings


def _parse_charge(spec: dict, index: int) -> AdditionalCharge:
    if not isinstance(spec, dict):
        raise ValidationError(f"additionalCharges[{index}] must be an object")
    require_fields(spec, ("name", "value"))
    charge_type = spec.get("type") or "percentage"
    if charge_type not in CHARGE_TYPES:
        raise ValidationError(f"additionalCharges[{index}].type must be percentage or flat")
    if charge_type == "percentage":
        value = percent_to_bps(spec["value"], f"additionalCharges[{index}].value")
    else:
        value = rupees_to_paise(spec["value"], f"additionalCharges[{index}].value", allow_zero=True)
    return AdditionalCharge(
        name=str(spec["name"]).strip(),
        charge_type=charge_type,
        value=value,
        is_active=bool(spec.get("isActive", True)),
    )


def update_settings(data: dict) -> BillingSetting:
    """
    Update GST and/or replace the additional charge list.

    Request body: {"gstPercentage": 18, "additionalCharges": [{"name", "type", "value", "isActive"}]}
    """
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    settings = get_settings()

    if data.get("gstPercentage") is not None:
        settings.gst_rate_bps = percent_to_bps(data["gstPercentage"], "gstPercentage")

    if data.get("additionalCharges") is not None:
        specs = data["additionalCharges"]
        if not isinstance(specs, list):
            raise ValidationError("additionalCharges must be a list")
        new_charges = [_parse_charge(spec, i) for i, spec in enumerate(specs)]
        settings.charges = new_charges

    db.session.commit()
    current_app.logger.info(
        "Billing settings updated: GST %s bps, %d charge(s)", settings.gst_rate_bps, len(settings.charges),
    )
    return settings


# =============================================================================
# COUPONS
# =============================================================================

def coupon_value_for_wire(coupon: Coupon):
    if coupon.discount_type == "percentage":
        return bps_to_percent(coupon.discount_value)
    return paise_to_rupees(coupon.discount_value)


def find_coupon(code) -> Coupon | None:
    normalized = str(code or "").strip().upper()
    if not normalized:
        return None
    return db.session.query(Coupon).filter_by(code=normalized).first()


def coupon_rejection(coupon: Coupon, base_paise: int) -> str | None:
    """Reason the coupon cannot apply to this base amount, or None."""
    if not coupon.is_active:
        return "Coupon is inactive"
    if coupon.expires_at is not None and utcnow() > coupon.expires_at:
        return "Coupon has expired"
    if coupon.usage_limit > 0 and coupon.used_count >= coupon.usage_limit:
        return "Coupon usage limit reached"
    if base_paise < coupon.min_amount_paise:
        return f"Minimum amount ₹{paise_to_rupees(coupon.min_amount_paise):.2f} required"
    return None


def coupon_discount(coupon: Coupon, base_paise: int) -> int:
    """Discount in paise: percentage of base or flat, capped by max_discount and base."""
    if coupon.discount_type == "percentage":
        discount = percent_of(base_paise, coupon.discount_value)
    else:
        discount = coupon.discount_value
    if coupon.max_discount_paise > 0 and discount > coupon.max_discount_paise:
        discount = coupon.max_discount_paise
    return min(discount, base_paise)


def validate_coupon(code, base_amount) -> dict:
    """
    Check a coupon against a base amount (rupees).

    Raises CouponNotFoundError for unknown codes and CouponError with the
    reason when the coupon exists but does not apply.
    """
    if not str(code or "").strip():
        raise ValidationError("Coupon code is required")
    base_paise = rupees_to_paise(base_amount if base_amount is not None else 0, "baseAmount", allow_zero=True)

    coupon = find_coupon(code)
    if coupon is None:
        raise CouponNotFoundError("Invalid coupon code")
    reason = coupon_rejection(coupon, base_paise)
    if reason:
        raise CouponError(reason)

    return {
        "valid": True,
        "couponId": coupon.id,
        "code": coupon.code,
        "discountType": coupon.discount_type,
        "discountValue": coupon_value_for_wire(coupon),
        "discount": paise_to_rupees(coupon_discount(coupon, base_paise)),
        "description": coupon.description,
    }


def _apply_coupon_fields(coupon: Coupon, data: dict) -> None:
    if "code" in data:
        code = str(data["code"] or "").strip().upper()
        if not code:
            raise ValidationError("code is required")
        coupon.code = code
    if "description" in data:
        coupon.description = str(data["description"] or "")
    if "discountType" in data:
        if data["discountType"] not in CHARGE_TYPES:
            raise ValidationError("discountType must be percentage or flat")
        coupon.discount_type = data["discountType"]
    if "discountValue" in data or "discountType" in data:
        raw = data.get("discountValue")
        if raw is None:
            raw = coupon_value_for_wire(coupon) if coupon.discount_value is not None else None
        if raw is None:
            raise ValidationError("discountValue is required")
        if coupon.discount_type == "percentage":
            coupon.discount_value = percent_to_bps(raw, "discountValue")
        else:
            coupon.discount_value = rupees_to_paise(raw, "discountValue", allow_zero=True)
    if "minAmount" in data:
        coupon.min_amount_paise = rupees_to_paise(data["minAmount"] or 0, "minAmount", allow_zero=True)
    if "maxDiscount" in data:
        coupon.max_discount_paise = rupees_to_paise(data["maxDiscount"] or 0, "maxDiscount", allow_zero=True)
    if "expiryDate" in data:
        try:
            coupon.expires_at = parse_iso_datetime(data["expiryDate"]) if data["expiryDate"] else None
        except ValueError:
            raise ValidationError("expiryDate must be an ISO-8601 date")
    if "usageLimit" in data:
        limit = data["usageLimit"] or 0
        coupon.usage_limit = 0 if limit == 0 else parse_positive_int(limit, "usageLimit")
    if "isActive" in data:
        coupon.is_active = bool(data["isActive"])


def list_coupons() -> list[Coupon]:
    return db.session.query(Coupon).order_by(Coupon.created_at.desc(), Coupon.id.desc()).all()


def create_coupon(user: User, data: dict) -> Coupon:
    require_fields(data, ("code", "discountValue"))
    coupon = Coupon(discount_type="percentage", created_by_user_id=user.id)
    _apply_coupon_fields(coupon, {"discountType": "percentage", **data})
    if find_coupon(coupon.code) is not None:
        raise ConflictError("Coupon code already exists")
    db.session.add(coupon)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Coupon code already exists")
    return coupon


def update_coupon(coupon_id: int, data: dict) -> Coupon:
    coupon = db.session.get(Coupon, coupon_id)
    if coupon is None:
        raise CouponNotFoundError("Coupon not found")
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    _apply_coupon_fields(coupon, data)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Coupon code already exists")
    return coupon


def delete_coupon(coupon_id: int) -> None:
    coupon = db.session.get(Coupon, coupon_id)
    if coupon is None:
        raise CouponNotFoundError("Coupon not found")
    db.session.delete(coupon)
    db.session.commit()


# =============================================================================
# PLANS
# =============================================================================

def list_plans() -> list[PricePlan]:
    return db.session.query(PricePlan).order_by(PricePlan.price_per_qr_paise.desc(), PricePlan.id).all()


def _apply_plan_fields(plan: PricePlan, data: dict) -> None:
    if "name" in data:
        name = str(data["name"] or "").strip()
        if not name:
            raise ValidationError("name is required")
        plan.name = name
    if "pricePerQr" in data:
        plan.price_per_qr_paise = rupees_to_paise(data["pricePerQr"], "pricePerQr")
    if "qrCredits" in data:
        plan.qr_credits = parse_positive_int(data["qrCredits"], "qrCredits")
    if "minQrPerOrder" in data:
        plan.min_qr_per_order = parse_positive_int(data["minQrPerOrder"], "minQrPerOrder") if data["minQrPerOrder"] else None
    if "validity" in data:
        plan.validity = data["validity"]
    if "isPopular" in data:
        plan.is_popular = bool(data["isPopular"])
    if "isTrial" in data:
        plan.is_trial = bool(data["isTrial"])
    if "saveText" in data:
        plan.save_text = data["saveText"]
    if "features" in data:
        features = data["features"] or []
        if not isinstance(features, list) or not all(isinstance(f, str) for f in features):
            raise ValidationError("features must be a list of strings")
        plan.features = features


def create_plan(data: dict) -> PricePlan:
    require_fields(data, ("name", "pricePerQr", "qrCredits"))
    plan = PricePlan()
    _apply_plan_fields(plan, data)
    if db.session.query(PricePlan).filter_by(name=plan.name).first() is not None:
        raise ConflictError("Plan name already exists")
    db.session.add(plan)
    db.session.commit()
    return plan


def get_plan(plan_id) -> PricePlan:
    plan = db.session.get(PricePlan, plan_id) if plan_id is not None else None
    if plan is None:
        raise PricingNotFoundError("Plan not found")
    return plan


def update_plan(plan_id: int, data: dict) -> PricePlan:
    plan = get_plan(plan_id)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    _apply_plan_fields(plan, data)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError("Plan name already exists")
    return plan


def delete_plan(plan_id: int) -> None:
    plan = get_plan(plan_id)
    # Payments keep their frozen plan name and credits
    db.session.query(Payment).filter_by(plan_id=plan.id).update({Payment.plan_id: None}, synchronize_session=False)
    db.session.delete(plan)
    db.session.commit()


DEFAULT_PLANS = (
    {"name": "Starter", "pricePerQr": 5, "qrCredits": 100, "validity": "1 month",
     "features": ["Product authentication", "Scan history"]},
    {"name": "Growth", "pricePerQr": 4, "qrCredits": 1000, "validity": "6 months", "isPopular": True,
     "saveText": "Save 20%", "features": ["Product authentication", "Scan analytics", "Counterfeit reports"]},
    {"name": "Enterprise", "pricePerQr": 3, "qrCredits": 10000, "validity": "12 months",
     "saveText": "Save 40%", "features": ["Product authentication", "Scan analytics", "Counterfeit reports",
                                          "Priority support"]},
)


def seed_default_plans() -> int:
    """Create the default plans that do not exist yet. Returns how many were added."""
    added = 0
    for spec in DEFAULT_PLANS:
        if db.session.query(PricePlan).filter_by(name=spec["name"]).first() is None:
            plan = PricePlan()
            _apply_plan_fields(plan, spec)
            db.session.add(plan)
            added += 1
    db.session.commit()
    return added


# =============================================================================
# BREAKDOWN
# =============================================================================

def breakdown_for(base_paise: int, coupon_code=None) -> PriceBreakdown:
    """
    Full price breakdown for a base amount.

    An unknown or inapplicable coupon is ignored (no discount, no error).
    """
    if base_paise <= 0:
        raise PricingError("Valid base amount is required")

    settings = get_settings()
    breakdown = PriceBreakdown(
        base_paise=base_paise,
        gst_rate_bps=settings.gst_rate_bps,
        gst_paise=percent_of(base_paise, settings.gst_rate_bps),
    )

    for charge in settings.charges:
        if not charge.is_active:
            continue
        if charge.charge_type == "percentage":
            amount = percent_of(base_paise, charge.value)
        else:
            amount = charge.value
        breakdown.charges.append(ChargeLine(charge.name, charge.charge_type, charge.value, amount))

    coupon = find_coupon(coupon_code) if coupon_code else None
    if coupon is not None and coupon_rejection(coupon, base_paise) is None:
        breakdown.coupon = coupon
        breakdown.coupon_discount_paise = coupon_discount(coupon, base_paise)

    return breakdown


def calculate_price(data: dict) -> PriceBreakdown:
    if not isinstance(data, dict) or data.get("baseAmount") in (None, ""):
        raise PricingError("Valid base amount is required")
    try:
        base_paise = rupees_to_paise(data["baseAmount"], "baseAmount")
    except ValidationError:
        raise PricingError("Valid base amount is required")
    return breakdown_for(base_paise, data.get("couponCode"))
