"""
Monetary value helpers.

All amounts in the kernel are ``Decimal``.  Floats are rejected at the
boundary because binary rounding would break the pricing invariants:

    total_amount == sum(item.total)
    royalty_fee  == round_money(total_amount * ROYALTY_RATE)
    net_revenue  == total_amount - royalty_fee
"""

from decimal import ROUND_HALF_UP, Decimal

# Fixed royalty deducted from every invoice total.
ROYALTY_RATE = Decimal("0.15")

MONEY_DECIMAL_PLACES = 2
_MONEY_QUANTUM = Decimal(1).scaleb(-MONEY_DECIMAL_PLACES)

ZERO = Decimal("0")


def to_money(value: Decimal | int | str) -> Decimal:
    """
    Coerce an int, string or Decimal into a Decimal amount.

    Raises:
        TypeError: for floats and any other type.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise TypeError(f"Monetary amounts must not be {type(value).__name__}: {value!r}")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, str)):
        return Decimal(value)
    raise TypeError(f"Cannot convert {type(value).__name__} to a monetary amount")


def round_money(amount: Decimal) -> Decimal:
    """Round half-up to cents.  The only sanctioned rounding in the kernel."""
    return amount.quantize(_MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def royalty_for(total_amount: Decimal) -> Decimal:
    """Royalty fee owed on an invoice total."""
    return round_money(total_amount * ROYALTY_RATE)
