"""Money coercion and rounding helpers.

Rounding:
- AUD to 2 decimals at result boundaries
- Internal compute at full Decimal precision
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
ZERO = Decimal("0")


def round_to_cents(amount: Decimal) -> Decimal:
    """Round amount to 2 decimal places (cents), half-up.

    Precision is widened to fit the integer digits so very large amounts
    round instead of raising InvalidOperation.
    """
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, amount.adjusted() + 3)
        return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def to_decimal(value: Any) -> Decimal | None:
    """Coerce a numeric input to Decimal.

    Returns None for missing, unparseable or non-finite values. Floats go
    through ``str`` so 0.1 becomes Decimal("0.1") rather than its binary
    expansion.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation:
            logger.warning("Ignoring non-numeric amount %r", value)
            return None
    else:
        raise TypeError(f"Expected a numeric amount, got {type(value).__name__}")

    if not result.is_finite():
        logger.warning("Ignoring non-finite amount %r", value)
        return None
    return result


def amount_or_zero(value: Any) -> Decimal:
    """Coerce to Decimal, treating missing or invalid values as zero."""
    result = to_decimal(value)
    return ZERO if result is None else result


def money_to_json(amount: Decimal) -> float | int:
    """Render a cents-rounded Decimal as a JSON number.

    Whole amounts render as ints so 0 stays ``0`` rather than ``0.0``.
    """
    rounded = round_to_cents(amount)
    if rounded == rounded.to_integral_value():
        return int(rounded)
    return float(rounded)
