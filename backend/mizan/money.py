"""
Decimal helpers for amounts and quantities.

Amounts are stored as NUMERIC(14, 2) and quantities as NUMERIC(14, 3).
All arithmetic happens on Decimal; floats are converted through str() so
0.1 stays 0.1.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")
MILLI = Decimal("0.001")


def to_decimal(value, *, field: str = "value") -> Decimal:
    """Coerce int/str/float/Decimal to Decimal. Raises ValueError otherwise."""
    if value is None:
        raise ValueError(f"{field} is required")
    if isinstance(value, bool):
        raise ValueError(f"{field} must be a number")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValueError(f"{field} must be a number")
        try:
            result = Decimal(stripped)
        except InvalidOperation:
            raise ValueError(f"{field} must be a number")
    else:
        raise ValueError(f"{field} must be a number")

    if not result.is_finite():
        raise ValueError(f"{field} must be a finite number")
    return result


def round2(value: Decimal) -> Decimal:
    """Half-up rounding to cents."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def round3(value: Decimal) -> Decimal:
    return value.quantize(MILLI, rounding=ROUND_HALF_UP)


def as_amount(value) -> str | None:
    """Serialize an amount column for JSON ("27.00")."""
    if value is None:
        return None
    return str(round2(to_decimal(value)))


def as_quantity(value) -> str | None:
    """Serialize a quantity column for JSON, dropping trailing zeros ("30", "2.5")."""
    if value is None:
        return None
    q = round3(to_decimal(value)).normalize()
    # normalize() turns 100 into 1E+2
    return format(q, "f")
