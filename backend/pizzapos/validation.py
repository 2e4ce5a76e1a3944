from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Iterable

from .errors import InvalidInputError


# Largest amount accepted for any money field (Guaraníes have no minor unit,
# this still leaves room for two decimals in the Numeric(14, 2) columns)
MAX_AMOUNT = Decimal("999999999999.99")

CENTS = Decimal("0.01")

# Largest integer accepted for ids and quantities (32-bit signed INTEGER)
MAX_INT = 2_147_483_647


def parse_amount(
    value: Any,
    field: str,
    *,
    required: bool = True,
    default: Decimal | None = None,
    allow_zero: bool = True,
    quantum: Decimal = CENTS,
    maximum: Decimal = MAX_AMOUNT,
) -> Decimal | None:
    """
    Coerce a JSON money (or quantity) value into a Decimal rounded to `quantum`.

    Accepts ints, floats and numeric strings. Rejects booleans, NaN/Infinity,
    negative values, values above `maximum`, and zero when allow_zero is False.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise InvalidInputError(f"{field} is required")
        return default

    if isinstance(value, bool):
        raise InvalidInputError(f"{field} must be a number")

    if isinstance(value, (int, float, Decimal)):
        raw = str(value)
    elif isinstance(value, str):
        raw = value.strip()
    else:
        raise InvalidInputError(f"{field} must be a number")

    try:
        amount = Decimal(raw)
    except InvalidOperation:
        raise InvalidInputError(f"{field} must be a number")

    if not amount.is_finite():
        raise InvalidInputError(f"{field} must be a finite number")

    # Bounds come first: quantize() fails on values wider than the context precision
    if amount < 0:
        raise InvalidInputError(f"{field} cannot be negative")
    if amount > maximum:
        raise InvalidInputError(f"{field} exceeds maximum allowed value")

    amount = amount.quantize(quantum)

    if not allow_zero and amount == 0:
        raise InvalidInputError(f"{field} must be greater than 0")

    return amount


def parse_positive_int(value: Any, field: str) -> int:
    """Strict positive integer: rejects bools, floats with decimals, scientific notation."""
    if isinstance(value, bool) or value is None:
        raise InvalidInputError(f"{field} must be a positive integer")

    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise InvalidInputError(f"{field} must be an integer, not a decimal")
        number = int(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped.lstrip("-").isdigit():
            raise InvalidInputError(f"{field} must be a positive integer")
        number = int(stripped)
    else:
        raise InvalidInputError(f"{field} must be a positive integer")

    if number <= 0:
        raise InvalidInputError(f"{field} must be a positive integer")
    if number > MAX_INT:
        raise InvalidInputError(f"{field} exceeds maximum allowed value")
    return number


def parse_choice(value: Any, field: str, choices: Iterable[str]) -> str:
    choices = tuple(choices)
    if not isinstance(value, str) or value.strip().upper() not in choices:
        raise InvalidInputError(f"{field} must be one of: {', '.join(choices)}")
    return value.strip().upper()


def parse_text(value: Any, field: str, *, required: bool = False, max_length: int = 255) -> str | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise InvalidInputError(f"{field} is required")
        return None
    text = str(value).strip()
    if len(text) > max_length:
        raise InvalidInputError(f"{field} must be at most {max_length} characters")
    return text


def parse_optional_id(value: Any, field: str) -> int | None:
    if value is None or value == "":
        return None
    return parse_positive_int(value, field)


def amount_to_json(value: Decimal | None) -> float | None:
    """Money columns are Decimal in Python; JSON clients expect plain numbers."""
    if value is None:
        return None
    return float(value)


def parse_page_args(args, *, default_limit: int = 10, max_limit: int = 100) -> tuple[int, int]:
    """page/limit query parameters; bad values fall back to defaults."""
    page = args.get("page", 1, type=int) or 1
    limit = args.get("limit", default_limit, type=int) or default_limit
    return max(page, 1), min(max(limit, 1), max_limit)


def pagination(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": (total + limit - 1) // limit,
    }
