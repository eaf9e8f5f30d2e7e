# Overview: Request payload parsing helpers; raise ValidationError on bad input.

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from .errors import ValidationError
from .ids import is_valid_id


# Maximum price: 9,999,999.99 (999,999,999 cents)
MAX_PRICE_CENTS = 999_999_999


def require_id(value: Any, field: str) -> str:
    if value is None or value == "":
        raise ValidationError(f"{field} is required")
    if not is_valid_id(value):
        raise ValidationError(f"Invalid {field}", details={"field": field, "value": str(value)[:64]})
    return value


def require_positive_int(value: Any, field: str) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, float) and value.is_integer():
        parsed = int(value)
    elif isinstance(value, str) and value.strip().lstrip("-").isdigit():
        parsed = int(value.strip())
    else:
        raise ValidationError(f"{field} must be an integer")
    if parsed <= 0:
        raise ValidationError(f"{field} must be greater than 0")
    return parsed


def require_non_negative_int(value: Any, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer")
    if value < 0:
        raise ValidationError(f"{field} cannot be negative")
    return value


def parse_percent(value: Any, field: str) -> Decimal | None:
    """Tax rate in percent, 0-100, two decimals. None clears it."""
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValidationError(f"{field} must be a number")
    try:
        parsed = Decimal(str(value)).quantize(Decimal("0.01"))
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number")
    if parsed < 0 or parsed > 100:
        raise ValidationError(f"{field} must be between 0 and 100")
    return parsed


def parse_price_cents(value: Any, field: str = "price_cents", *, required: bool = True) -> int | None:
    if value is None:
        if required:
            raise ValidationError(f"{field} is required")
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer number of cents")
    if value < 0:
        raise ValidationError(f"{field} cannot be negative")
    if value > MAX_PRICE_CENTS:
        raise ValidationError(f"{field} exceeds maximum of {MAX_PRICE_CENTS}")
    return value


def require_choice(value: Any, field: str, choices: Iterable[str]) -> str:
    allowed = tuple(choices)
    if value not in allowed:
        raise ValidationError(
            f"{field} must be one of: {', '.join(allowed)}",
            details={"field": field, "allowed": list(allowed)},
        )
    return value


def require_text(value: Any, field: str, max_length: int = 255) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    stripped = value.strip()
    if len(stripped) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return stripped


def parse_line_items(raw: Any, *, require_price: bool = True) -> list[dict]:
    """
    Normalize a list of {product_id, quantity, price_cents} payload entries.

    Duplicate product ids are rejected; a line is keyed by its product.
    """
    if not isinstance(raw, list) or not raw:
        raise ValidationError("items must be a non-empty list")

    lines: list[dict] = []
    seen: set[str] = set()
    for index, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise ValidationError("Invalid item data", details={"index": index})
        product_id = require_id(entry.get("product_id"), "product_id")
        if product_id in seen:
            raise ValidationError("Duplicate product in items", details={"product_id": product_id})
        seen.add(product_id)
        lines.append({
            "product_id": product_id,
            "quantity": require_positive_int(entry.get("quantity"), "quantity"),
            "price_cents": parse_price_cents(entry.get("price_cents"), required=require_price),
        })
    return lines
