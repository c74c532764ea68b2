from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable


# Upper bound for any rupee amount accepted from clients (₹99,99,999.99)
MAX_AMOUNT_PAISE = 999_999_999


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate coupon code)."""


class NotFoundError(Exception):
    """Mixin for domain errors that map to 404."""


class AccessDeniedError(Exception):
    """Mixin for domain errors that map to 403 (e.g., another brand's order)."""


def require_fields(data: dict | None, fields: Iterable[str]) -> dict:
    """
    Ensure every named field is present and non-blank.

    Returns the payload (never None) so callers can chain.
    """
    if data is None or not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")

    missing = []
    for name in fields:
        value = data.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(name)
    if missing:
        raise ValidationError(f"Missing required field(s): {', '.join(missing)}")
    return data


def parse_positive_int(value: Any, field: str) -> int:
    """
    Strict positive integer parsing.

    Accepts ints and digit strings; rejects bools, floats with a fraction,
    scientific notation and anything < 1.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a positive integer")

    if isinstance(value, int):
        parsed = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{field} must be an integer, not a decimal")
        parsed = int(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped.lstrip("-").isdigit():
            raise ValidationError(f"{field} must be a positive integer")
        parsed = int(stripped)
    else:
        raise ValidationError(f"{field} must be a positive integer")

    if parsed < 1:
        raise ValidationError(f"{field} must be at least 1")
    return parsed


def rupees_to_paise(value: Any, field: str, *, allow_zero: bool = False) -> int:
    """
    Convert a client-supplied rupee amount (number or numeric string) to paise.

    Rounds half-up to the paisa.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number")

    paise = int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if paise < 0 or (paise == 0 and not allow_zero):
        raise ValidationError(f"{field} must be greater than zero")
    if paise > MAX_AMOUNT_PAISE:
        raise ValidationError(f"{field} exceeds the maximum allowed amount")
    return paise


def percent_to_bps(value: Any, field: str) -> int:
    """Convert a percentage (e.g. 18 or "12.5") to basis points, 0..100%."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be a number")
    try:
        pct = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number")
    if not pct.is_finite() or pct < 0 or pct > 100:
        raise ValidationError(f"{field} must be between 0 and 100")
    return int((pct * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def paise_to_rupees(paise: int | None) -> float | None:
    """Wire representation of a paise amount (two decimal places)."""
    if paise is None:
        return None
    return round(paise / 100, 2)


def bps_to_percent(bps: int | None) -> float | None:
    if bps is None:
        return None
    return round(bps / 100, 2)
