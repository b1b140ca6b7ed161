"""
Module: club_kernel.db.types
Responsibility: Monetary constants and conversion helpers, so every model
    and service treats amounts identically.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/ and stores/.  MUST NOT import from any of those layers.

Invariants enforced:
    - All monetary amounts are Decimal with two decimal places.  to_money()
      is the ONLY sanctioned way to turn external numbers (floats from a
      parsed statement, strings from config) into amounts.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP

ZERO = Decimal("0.00")

# Watermark default for members that have never been charged or matched.
EPOCH = date(1900, 1, 1)


def round_money(value: Decimal, rounding: str = DEFAULT_ROUNDING) -> Decimal:
    """Quantize a Decimal to cents."""
    return value.quantize(Decimal(10) ** -MONEY_DECIMAL_PLACES, rounding=rounding)


def to_money(value: Decimal | float | int | str) -> Decimal:
    """
    Convert a number to a cents-exact Decimal.

    Floats go through ``str()`` first so that 23.42 becomes Decimal("23.42")
    rather than its binary approximation.

    Raises:
        decimal.InvalidOperation: If a string cannot be parsed.
    """
    if isinstance(value, Decimal):
        return round_money(value)
    if isinstance(value, float):
        return round_money(Decimal(str(value)))
    return round_money(Decimal(value))
