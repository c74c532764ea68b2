# Overview: Service-layer operations for QR orders; the order lifecycle state machine.

"""
Order Lifecycle Service

STATE MACHINE:
    Pending Authorization -> Authorized -> Order Processing -> Dispatching
        -> Dispatched -> Received
    Pending Authorization | Authorized -> Rejected

WHO DRIVES WHICH STEP (enforced by route capabilities):
- create:       creator, company
- authorize:    company, authorizer of the order's brand (spends credits)
- process:      admin, superadmin (mints inactive QR codes)
- dispatching:  admin, superadmin
- dispatch:     admin, superadmin (tracking number + courier required)
- received:     company, authorizer of the order's brand (activates codes)
- reject:       admin, superadmin, company/authorizer of the brand
                (refunds credits when the order was already authorized)

INVARIANTS:
- Each transition appends exactly one OrderHistory row
- A transition re-reads the order under lock inside a retried unit of
  work, so a lost race fails the status guard instead of applying twice
- Credits are spent exactly once per authorized order and refunded
  exactly once if that order is rejected
- Nothing is retried on a business failure (e.g., insufficient credits)
"""

from __future__ import annotations

import time

from flask import current_app

from ..extensions import db
from ..models import Order, OrderHistory, User, Brand
from ..models.orders import (
    ORDER_STATUSES,
    STATUS_PENDING_AUTHORIZATION,
    STATUS_AUTHORIZED,
    STATUS_ORDER_PROCESSING,
    STATUS_DISPATCHING,
    STATUS_DISPATCHED,
    STATUS_RECEIVED,
    STATUS_REJECTED,
)
from ..permissions import ROLE_CREATOR, BRAND_ROLES, is_platform_role
from ..validation import (
    ValidationError,
    NotFoundError,
    AccessDeniedError,
    parse_positive_int,
    require_fields,
)
from . import credit_service, qr_service
from .concurrency import lock_for_update, run_with_retry
from authentiks.time_utils import utcnow


class OrderError(ValueError):
    """Raised for invalid order operations."""
    pass


class OrderTransitionError(OrderError):
    """Raised when an action is not allowed from the order's current status."""
    pass


class OrderNotFoundError(OrderError, NotFoundError):
    pass


class OrderAccessError(OrderError, AccessDeniedError):
    pass


# action -> (allowed from-statuses, to-status, message when the guard fails)
TRANSITIONS = {
    "authorize": (
        (STATUS_PENDING_AUTHORIZATION,),
        STATUS_AUTHORIZED,
        "Order cannot be authorized in its current state",
    ),
    "process": (
        (STATUS_AUTHORIZED,),
        STATUS_ORDER_PROCESSING,
        "Order must be authorized first",
    ),
    "dispatching": (
        (STATUS_ORDER_PROCESSING,),
        STATUS_DISPATCHING,
        "Order must be in processing state",
    ),
    "dispatch": (
        (STATUS_DISPATCHING,),
        STATUS_DISPATCHED,
        "Order must be in dispatching state",
    ),
    "received": (
        (STATUS_DISPATCHED,),
        STATUS_RECEIVED,
        "Order must be dispatched first",
    ),
    "reject": (
        (STATUS_PENDING_AUTHORIZATION, STATUS_AUTHORIZED),
        STATUS_REJECTED,
        "Only orders pending authorization or authorized can be rejected",
    ),
}


def can_transition(status: str, action: str) -> bool:
    allowed_from, _, _ = TRANSITIONS[action]
    return status in allowed_from


def _record(order: Order, user: User, comment: str) -> OrderHistory:
    entry = OrderHistory(
        order_id=order.id,
        status=order.status,
        changed_by_user_id=user.id,
        role=user.role,
        comment=comment,
    )
    db.session.add(entry)
    return entry


def _apply(order: Order, action: str, user: User, comment: str) -> None:
    allowed_from, to_status, message = TRANSITIONS[action]
    if order.status not in allowed_from:
        raise OrderTransitionError(message)
    from_status = order.status
    order.status = to_status
    _record(order, user, comment)
    current_app.logger.info(
        "Order %s: %s -> %s by user %s (%s)",
        order.order_number, from_status, to_status, user.id, user.role,
    )


def _check_brand_scope(order: Order, user: User) -> None:
    """Brand users act only on their own brand's orders."""
    if is_platform_role(user.role):
        return
    if user.role in BRAND_ROLES and user.brand_id and order.brand_id == user.brand_id:
        return
    if user.role == ROLE_CREATOR and not user.brand_id and order.created_by_user_id == user.id:
        return
    raise OrderAccessError("Not authorized for this order")


def _lock_order(order_id: int) -> Order:
    order = lock_for_update(db.session.query(Order).filter_by(id=order_id)).first()
    if order is None:
        raise OrderNotFoundError("Order not found")
    return order


def _next_order_number() -> str:
    count = db.session.query(db.func.count(Order.id)).scalar() or 0
    stamp = int(time.time() * 1000)
    candidate = f"ORD-{stamp}-{count + 1}"
    while db.session.query(Order.id).filter_by(order_number=candidate).first() is not None:
        count += 1
        candidate = f"ORD-{stamp}-{count + 1}"
    return candidate


# =============================================================================
# CREATE / READ
# =============================================================================

def create_order(user: User, data: dict) -> Order:
    """
    Create an order in Pending Authorization.

    Required: productName, quantity (>= 1). The caller must be linked to a brand.
    """
    require_fields(data, ("productName", "quantity"))
    quantity = parse_positive_int(data.get("quantity"), "quantity")

    if not user.brand_id:
        raise OrderError("User is not linked to a brand")
    brand = db.session.get(Brand, user.brand_id)
    if brand is None:
        raise OrderError("User is not linked to a brand")

    order_number = _next_order_number()
    order = Order(
        order_number=order_number,
        status=STATUS_PENDING_AUTHORIZATION,
        product_name=str(data["productName"]).strip(),
        brand=str(data.get("brand") or brand.brand_name).strip(),
        batch_no=str(data.get("batchNo") or "").strip() or f"BATCH-{order_number}",
        manufacture_date=data.get("manufactureDate"),
        expiry_date=data.get("expiryDate"),
        quantity=quantity,
        description=data.get("description"),
        brand_id=brand.id,
        created_by_user_id=user.id,
    )
    db.session.add(order)
    db.session.flush()
    _record(order, user, "Order created and awaiting authorization")
    db.session.commit()

    current_app.logger.info(
        "Order %s created by user %s: %d x %s", order.order_number, user.id, quantity, order.product_name,
    )
    return order


def get_order(order_id: int, user: User) -> Order:
    order = db.session.get(Order, order_id)
    if order is None:
        raise OrderNotFoundError("Order not found")
    _check_brand_scope(order, user)
    return order


def _scoped_query(user: User):
    query = db.session.query(Order)
    if is_platform_role(user.role):
        return query
    if user.brand_id:
        return query.filter(Order.brand_id == user.brand_id)
    if user.role == ROLE_CREATOR:
        return query.filter(Order.created_by_user_id == user.id)
    raise OrderAccessError("User not linked to a brand")


def list_orders(user: User, status: str | None = None) -> list[Order]:
    """Orders visible to the caller, newest first."""
    query = _scoped_query(user)
    if status:
        if status not in ORDER_STATUSES:
            raise ValidationError(f"Unknown status: {status}")
        query = query.filter(Order.status == status)
    return query.order_by(Order.created_at.desc(), Order.id.desc()).all()


def order_stats(user: User) -> dict:
    query = _scoped_query(user)
    rows = query.with_entities(
        Order.status,
        db.func.count(Order.id),
        db.func.coalesce(db.func.sum(Order.quantity), 0),
    ).group_by(Order.status).all()

    return {
        "totalOrders": sum(count for _, count, _ in rows),
        "totalQRs": int(sum(total for _, _, total in rows)),
        "byStatus": [
            {"status": status, "count": count, "totalQuantity": int(total)}
            for status, count, total in rows
        ],
    }


# =============================================================================
# TRANSITIONS
# =============================================================================

def authorize_order(order_id: int, user: User) -> Order:
    """
    Authorize a pending order, spending order.quantity credits.

    Raises credit_service.InsufficientCreditsError (status unchanged, no
    credits consumed) when the company balance is short.
    """
    def _op():
        order = _lock_order(order_id)
        _check_brand_scope(order, user)
        if not can_transition(order.status, "authorize"):
            raise OrderTransitionError(TRANSITIONS["authorize"][2])

        brand = order.brand_ref
        if brand is None or brand.company_id is None:
            raise OrderError("Brand or company not found for this order")
        company = credit_service.lock_company(brand.company_id)

        try:
            credit_service.post_spend(company, order, user)
        except credit_service.InsufficientCreditsError:
            db.session.rollback()
            raise

        _apply(order, "authorize", user, "Order authorized and sent for processing")
        db.session.commit()
        return order

    return run_with_retry(_op)


def process_order(order_id: int, user: User) -> tuple[Order, int]:
    """Accept an authorized order and mint its (inactive) QR codes."""
    def _op():
        order = _lock_order(order_id)
        if not can_transition(order.status, "process"):
            raise OrderTransitionError(TRANSITIONS["process"][2])

        codes = qr_service.mint_for_order(order, user)
        order.qr_codes_generated = True
        order.qr_generated_count = len(codes)
        _apply(order, "process", user, f"{len(codes)} QR codes generated")
        db.session.commit()
        return order, len(codes)

    return run_with_retry(_op)


def mark_dispatching(order_id: int, user: User) -> Order:
    def _op():
        order = _lock_order(order_id)
        _apply(order, "dispatching", user, "Preparing order for dispatch")
        db.session.commit()
        return order

    return run_with_retry(_op)


def dispatch_order(order_id: int, user: User, data: dict) -> Order:
    """Record shipment details; trackingNumber and courierName are required."""
    require_fields(data, ("trackingNumber", "courierName"))
    tracking_number = str(data["trackingNumber"]).strip()
    courier_name = str(data["courierName"]).strip()
    notes = data.get("notes")

    def _op():
        order = _lock_order(order_id)
        _apply(
            order,
            "dispatch",
            user,
            f"Dispatched via {courier_name} - Tracking: {tracking_number}",
        )
        order.tracking_number = tracking_number
        order.courier_name = courier_name
        order.dispatch_notes = notes
        order.dispatched_at = utcnow()
        db.session.commit()
        return order

    return run_with_retry(_op)


def mark_received(order_id: int, user: User) -> tuple[Order, int]:
    """Final step: the brand confirms delivery and every code becomes active."""
    def _op():
        order = _lock_order(order_id)
        _check_brand_scope(order, user)
        if not can_transition(order.status, "received"):
            raise OrderTransitionError(TRANSITIONS["received"][2])

        activated = qr_service.activate_for_order(order)
        _apply(order, "received", user, f"Order received and {activated} QR codes activated")
        db.session.commit()
        return order, activated

    return run_with_retry(_op)


def reject_order(order_id: int, user: User, reason: str | None = None) -> Order:
    """
    Reject a pending or authorized order.

    Rejecting an authorized order returns its spent credits to the company.
    """
    def _op():
        order = _lock_order(order_id)
        _check_brand_scope(order, user)
        if not can_transition(order.status, "reject"):
            raise OrderTransitionError(TRANSITIONS["reject"][2])

        if order.status == STATUS_AUTHORIZED:
            brand = order.brand_ref
            if brand is not None and brand.company_id is not None:
                company = credit_service.lock_company(brand.company_id)
                credit_service.post_refund(company, order, user)

        _apply(order, "reject", user, (reason or "").strip() or "Order rejected")
        db.session.commit()
        return order

    return run_with_retry(_op)
