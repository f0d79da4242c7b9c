"""Conversions between the processor's integer minor units and decimal amounts."""
from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")
SUB_CENT = Decimal("0.000001")


def to_major_units(minor) -> Decimal:
    """Convert an integer amount in minor units (cents) to a decimal amount.

    Anything that is not an integer (None, strings, floats) counts as zero.
    """
    if isinstance(minor, bool) or not isinstance(minor, int):
        minor = 0
    return (Decimal(minor) / 100).quantize(CENT, rounding=ROUND_HALF_UP)


def unit_price(line_total_minor, quantity: int) -> Decimal:
    """Recover a per-unit price from a quantity-multiplied line total.

    Uneven splits keep sub-cent precision so that ``price * quantity``
    lands back on the line total.
    """
    if isinstance(line_total_minor, bool) or not isinstance(line_total_minor, int):
        line_total_minor = 0
    if quantity < 1:
        quantity = 1

    price = Decimal(line_total_minor) / 100 / quantity
    if price == price.quantize(CENT):
        return price.quantize(CENT)
    return price.quantize(SUB_CENT, rounding=ROUND_HALF_UP)
