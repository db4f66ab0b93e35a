# Overview: Decimal currency helpers shared by models, services and exports.

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP, InvalidOperation

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

# Matches Numeric(10, 2): 99,999,999.99
MAX_AMOUNT = Decimal("99999999.99")


def to_decimal(value) -> Decimal:
    """Coerce int/str/Decimal to a Decimal quantized to cents. Floats go through str()."""
    if isinstance(value, bool):
        raise InvalidOperation("booleans are not amounts")
    if isinstance(value, Decimal):
        dec = value
    elif isinstance(value, float):
        dec = Decimal(str(value))
    else:
        dec = Decimal(str(value).strip())
    if not dec.is_finite():
        raise InvalidOperation("amount must be finite")
    return dec.quantize(CENT, rounding=ROUND_HALF_UP)


def money_str(value) -> str | None:
    if value is None:
        return None
    return f"{to_decimal(value):.2f}"
