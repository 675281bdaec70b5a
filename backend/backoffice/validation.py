from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable

from backoffice.time_utils import parse_iso_date


# Maximum money value accepted from clients: 9,999,999,999,999,999.99
# matches Numeric(18, 2) storage.
MAX_MONEY = Decimal("9999999999999999.99")

CENT = Decimal("0.01")


class ValidationError(ValueError):
    """400-level input problem. Carries every message collected for the request."""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or [message]


class NotFoundError(LookupError):
    """404-level: a required top-level subject does not exist."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., receipt already paid)."""


def money(value: Decimal | int | str) -> Decimal:
    """Quantize to cents using commercial rounding."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round_quantity(value: Decimal) -> int:
    """
    Round a requested quantity to a whole unit, half away from zero.

    Negative requests are clamped to 0 before rounding.
    """
    if value < 0:
        value = Decimal(0)
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def parse_decimal(value: Any, field: str) -> Decimal:
    """
    Strict decimal coercion for posted numbers.

    Accepts ints, decimal strings and floats (via str to avoid binary noise).
    Rejects bools, blanks, NaN/Infinity and values beyond MAX_MONEY.
    """
    if value is None:
        raise ValidationError(f"{field} is required")
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be a number")
        try:
            result = Decimal(stripped)
        except InvalidOperation:
            raise ValidationError(f"{field} must be a number")
    else:
        raise ValidationError(f"{field} must be a number")

    if not result.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if abs(result) > MAX_MONEY:
        raise ValidationError(f"{field} is out of range")
    return result


def parse_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.lstrip("-").isdigit():
            return int(stripped)
    raise ValidationError(f"{field} must be an integer")


def parse_date(value: Any, field: str, *, default: date | None = None) -> date:
    if value is None or value == "":
        if default is None:
            raise ValidationError(f"{field} is required")
        return default
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be an ISO-8601 date")
    try:
        parsed = parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{field} must be an ISO-8601 date")
    if parsed is None:
        raise ValidationError(f"{field} must be an ISO-8601 date")
    return parsed


def parse_quantity_grid(cells: Iterable[Any] | None) -> dict[tuple[int, int], Decimal]:
    """
    Turn posted matrix cells into a {(product_id, outlet_id): quantity} map.

    Each cell is {"product_id": int, "outlet_id": int, "quantity": number}.
    A repeated (product, outlet) pair is rejected rather than silently merged.
    """
    grid: dict[tuple[int, int], Decimal] = {}
    errors: list[str] = []

    for index, cell in enumerate(cells or []):
        label = f"quantities[{index}]"
        if not isinstance(cell, dict):
            errors.append(f"{label} must be an object")
            continue
        try:
            product_id = parse_int(cell.get("product_id"), f"{label}.product_id")
            outlet_id = parse_int(cell.get("outlet_id"), f"{label}.outlet_id")
            quantity = parse_decimal(cell.get("quantity", 0), f"{label}.quantity")
        except ValidationError as exc:
            errors.extend(exc.errors)
            continue

        key = (product_id, outlet_id)
        if key in grid:
            errors.append(f"{label} duplicates product {product_id} for outlet {outlet_id}")
            continue
        grid[key] = quantity

    if errors:
        raise ValidationError("Invalid quantity grid", errors)
    return grid


def parse_id_map(raw: Any, field: str) -> dict[int, Decimal]:
    """
    Parse a {product_id: number} mapping. JSON object keys arrive as strings.
    """
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValidationError(f"{field} must be an object keyed by product id")

    parsed: dict[int, Decimal] = {}
    errors: list[str] = []
    for key, value in raw.items():
        try:
            product_id = parse_int(key, f"{field} key")
            parsed[product_id] = parse_decimal(value, f"{field}[{key}]")
        except ValidationError as exc:
            errors.extend(exc.errors)

    if errors:
        raise ValidationError(f"Invalid {field}", errors)
    return parsed
