"""
Money Utilities - Safe Decimal operations for monetary values.

Avoids float precision issues by using Decimal throughout.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Union

# Default precision for money operations (2 decimal places)
MONEY_PRECISION = Decimal("0.01")

# Fixed VAT rate applied to every cart
TAX_RATE = Decimal("0.075")


def to_decimal(value: Union[str, int, float, Decimal, None]) -> Decimal:
    """
    Convert any value to Decimal safely.

    Args:
        value: Value to convert (str, int, float, Decimal, or None)

    Returns:
        Decimal representation of the value, or Decimal("0") if None/invalid
    """
    if value is None:
        return Decimal("0")

    if isinstance(value, Decimal):
        return value

    try:
        # Convert via string to avoid float precision issues
        if isinstance(value, float):
            return Decimal(str(value))
        return Decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        return Decimal("0")


def round_money(value: Union[str, int, float, Decimal]) -> Decimal:
    """Round monetary value to cents."""
    return to_decimal(value).quantize(MONEY_PRECISION, rounding=ROUND_HALF_UP)


def to_float(value: Union[str, int, float, Decimal]) -> float:
    """
    Convert Decimal to float for JSON serialization or external APIs.

    Use only at API boundaries, not for internal calculations.
    """
    return float(to_decimal(value))


def multiply(value: Union[str, int, float, Decimal], factor: Union[str, int, float, Decimal]) -> Decimal:
    """Safe multiplication of monetary value by a factor."""
    return to_decimal(value) * to_decimal(factor)


def tax_for(subtotal: Union[str, int, float, Decimal]) -> Decimal:
    """VAT owed on a subtotal (unrounded)."""
    return multiply(subtotal, TAX_RATE)
