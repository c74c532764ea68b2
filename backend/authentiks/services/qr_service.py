# Overview: Service-layer operations for QR codes; minting, activation and listing.

"""
QR Code Minting

Two ways codes come into existence:

1. Order workflow (the normal path): when an admin processes an
   authorized order, `quantity` codes are minted INACTIVE with the form
   <BRAND>-<seq:06d>-<order number>-<4 random>. They become active when the
   brand marks the order received.

2. Direct creation by admins/managers (samples, legacy stock):
   <BRAND>-<seq:04d>-<batch>-<4 random>, ACTIVE immediately.

Sequences run per brand name and continue across both paths.
"""

from __future__ import annotations

import secrets
import string

from flask import current_app

from ..extensions import db
from ..models import QrCode, Order, User
from ..permissions import ROLE_SUPERADMIN, ROLE_ADMIN, ROLE_MANAGER, BRAND_ROLES
from ..validation import ValidationError, parse_positive_int, require_fields
from .user_service import find_brand_by_name


SUFFIX_ALPHABET = string.ascii_uppercase + string.digits
SUFFIX_LENGTH = 4

# Direct creation returns a PDF inline; keep batches printable
MAX_DIRECT_QUANTITY = 1000


def random_suffix() -> str:
    return "".join(secrets.choice(SUFFIX_ALPHABET) for _ in range(SUFFIX_LENGTH))


def next_sequence(brand_name: str) -> int:
    last = db.session.query(db.func.max(QrCode.sequence)).filter(QrCode.brand == brand_name).scalar()
    return (last or 0) + 1


def _unique_code(prefix: str, taken: set) -> str:
    while True:
        code = f"{prefix}-{random_suffix()}"
        if code in taken:
            continue
        if db.session.query(QrCode.id).filter_by(code=code).first() is None:
            taken.add(code)
            return code


# =============================================================================
# ORDER WORKFLOW
# =============================================================================

def mint_for_order(order: Order, user: User) -> list[QrCode]:
    """
    Mint order.quantity inactive codes for an order. Does not commit.
    """
    start = next_sequence(order.brand)
    brand = order.brand_ref
    taken: set = set()
    codes = []
    for offset in range(order.quantity):
        seq = start + offset
        qr = QrCode(
            code=_unique_code(f"{order.brand}-{seq:06d}-{order.order_number}", taken),
            product_name=order.product_name,
            brand=order.brand,
            brand_id=brand.id if brand else order.brand_id,
            batch_no=order.batch_no,
            manufacture_date=order.manufacture_date,
            expiry_date=order.expiry_date,
            sequence=seq,
            order_id=order.id,
            is_active=False,
            created_by_user_id=user.id,
        )
        codes.append(qr)
    db.session.add_all(codes)
    db.session.flush()
    return codes


def activate_for_order(order: Order) -> int:
    """
    Activate every code of an order. Does not commit.

    Returns the number of codes switched from inactive to active.
    """
    activated = db.session.query(QrCode).filter(
        QrCode.order_id == order.id,
        QrCode.is_active.is_(False),
    ).update(
        {QrCode.is_active: True, QrCode.version_id: QrCode.version_id + 1},
        synchronize_session=False,
    )
    return activated


def codes_for_order(order: Order) -> list[QrCode]:
    return db.session.query(QrCode).filter_by(order_id=order.id).order_by(QrCode.sequence).all()


# =============================================================================
# DIRECT CREATION
# =============================================================================

def _create_direct(user: User, item: dict, quantity: int) -> list[QrCode]:
    require_fields(item, ("productName", "brand"))
    brand_name = str(item["brand"]).strip()
    batch_no = str(item.get("batchNo") or "").strip() or "BATCH"
    brand = find_brand_by_name(brand_name)

    start = next_sequence(brand_name)
    taken: set = set()
    created = []
    for offset in range(quantity):
        seq = start + offset
        qr = QrCode(
            code=_unique_code(f"{brand_name}-{seq:04d}-{batch_no}", taken),
            product_name=str(item["productName"]).strip(),
            brand=brand_name,
            brand_id=brand.id if brand else None,
            batch_no=batch_no,
            manufacture_date=item.get("manufactureDate"),
            expiry_date=item.get("expiryDate"),
            sequence=seq,
            is_active=True,
            created_by_user_id=user.id,
        )
        created.append(qr)
    db.session.add_all(created)
    db.session.flush()
    return created


def create_codes(user: User, data: dict) -> list[QrCode]:
    """Create `quantity` active codes for one product line."""
    raw_quantity = data.get("quantity") if isinstance(data, dict) else None
    quantity = 1 if raw_quantity in (None, "") else parse_positive_int(raw_quantity, "quantity")
    if quantity > MAX_DIRECT_QUANTITY:
        raise ValidationError(f"quantity must be at most {MAX_DIRECT_QUANTITY}")

    created = _create_direct(user, data, quantity)
    db.session.commit()
    current_app.logger.info("User %s created %d QR code(s) for %s", user.id, len(created), data.get("brand"))
    return created


def bulk_create(user: User, items) -> list[QrCode]:
    """Create one active code per item of an uploaded sheet."""
    if not isinstance(items, list) or not items:
        raise ValidationError("Invalid data format")
    if len(items) > MAX_DIRECT_QUANTITY:
        raise ValidationError(f"At most {MAX_DIRECT_QUANTITY} rows per upload")

    created = []
    for index, item in enumerate(items, start=1):
        if not isinstance(item, dict):
            raise ValidationError(f"Row {index} must be an object")
        try:
            created.extend(_create_direct(user, item, 1))
        except ValidationError as exc:
            db.session.rollback()
            raise ValidationError(f"Row {index}: {exc}")
    db.session.commit()
    current_app.logger.info("User %s bulk-created %d QR code(s)", user.id, len(created))
    return created


# =============================================================================
# LISTING
# =============================================================================

def list_codes(user: User, page=1, limit=50, order_id=None) -> dict:
    """
    Paginated code listing, scoped by role:
    - superadmin/admin: everything
    - manager: codes they created
    - brand users: codes of their brand
    """
    try:
        page = max(1, int(page))
        limit = min(500, max(1, int(limit)))
    except (TypeError, ValueError):
        raise ValidationError("page and limit must be integers")

    query = db.session.query(QrCode)
    if user.role in (ROLE_SUPERADMIN, ROLE_ADMIN):
        pass
    elif user.role == ROLE_MANAGER:
        query = query.filter(QrCode.created_by_user_id == user.id)
    elif user.role in BRAND_ROLES and user.brand_id:
        query = query.filter(QrCode.brand_id == user.brand_id)
    else:
        query = query.filter(QrCode.created_by_user_id == user.id)

    if order_id:
        query = query.filter(QrCode.order_id == order_id)

    total = query.count()
    rows = query.order_by(QrCode.id.desc()).offset((page - 1) * limit).limit(limit).all()
    return {
        "qrs": [row.to_dict() for row in rows],
        "total": total,
        "page": page,
        "pages": (total + limit - 1) // limit,
    }
