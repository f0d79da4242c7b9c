from decimal import Decimal

import pytest

from storefront.money import to_major_units, unit_price


def test_to_major_units():
    assert to_major_units(4999) == Decimal("49.99")
    assert to_major_units(0) == Decimal("0.00")
    assert to_major_units(5) == Decimal("0.05")


@pytest.mark.parametrize("value", [None, "4999", 49.99, True])
def test_to_major_units_non_integer_is_zero(value):
    assert to_major_units(value) == Decimal("0.00")


def test_unit_price_even_split_is_in_cents():
    price = unit_price(5998, 2)
    assert price == Decimal("29.99")
    assert str(price) == "29.99"


def test_unit_price_zero_quantity_counts_as_one():
    assert unit_price(1500, 0) == Decimal("15.00")


@pytest.mark.parametrize("total,quantity", [(1000, 3), (1004, 10), (999, 7), (123457, 99)])
def test_unit_price_recovers_line_total(total, quantity):
    price = unit_price(total, quantity)
    assert abs(price * quantity - Decimal(total) / 100) <= Decimal("0.01")
