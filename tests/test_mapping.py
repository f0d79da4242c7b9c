from decimal import Decimal

import pytest

from storefront.mapping import map_address, map_line_items


@pytest.mark.parametrize("line_items", [None, "oops", 42, {}, {"data": None}, []])
def test_missing_or_malformed_line_items_map_to_nothing(line_items):
    assert map_line_items(line_items) == []


def test_line_item_from_bare_list():
    items = map_line_items([{"description": "Phone X", "amount_total": 4999, "quantity": 1}])

    assert len(items) == 1
    assert items[0].name == "Phone X"
    assert items[0].price == Decimal("49.99")
    assert items[0].quantity == 1
    assert items[0].id == ""


def test_line_item_defaults():
    items = map_line_items({"data": [{"amount_total": 2000}, "not-an-item"]})

    assert len(items) == 1
    assert items[0].name == "Product"
    assert items[0].quantity == 1
    assert items[0].price == Decimal("20.00")
    assert items[0].description == ""
    assert items[0].image == ""


def test_line_item_price_is_per_unit():
    items = map_line_items({"data": [{"description": "Case", "amount_total": 3000, "quantity": 3}]})

    assert items[0].price == Decimal("10.00")
    assert items[0].price * items[0].quantity == Decimal("30.00")


def test_line_item_uses_expanded_product():
    items = map_line_items({"data": [{
        "description": "Phone X",
        "amount_total": 4999,
        "quantity": 1,
        "price": {"product": {
            "id": "prod_abc",
            "description": "6.1 inch, 128 GB",
            "images": ["https://cdn.example.com/x.png"],
            "metadata": {"productId": "phone-x"},
        }},
    }]})

    assert items[0].id == "phone-x"
    assert items[0].description == "6.1 inch, 128 GB"
    assert items[0].image == "https://cdn.example.com/x.png"


def test_line_item_without_store_id_falls_back_to_stripe_product():
    items = map_line_items([{"amount_total": 100, "price": {"product": {"id": "prod_abc"}}}])
    assert items[0].id == "prod_abc"


def test_missing_address_is_none():
    assert map_address(None) is None
    assert map_address("1 rue de Rivoli") is None


def test_partial_address_defaults_to_blank_fields():
    address = map_address({"line1": "1 rue de Rivoli"})

    assert address is not None
    assert address.line1 == "1 rue de Rivoli"
    assert address.line2 == ""
    assert address.city == ""
    assert address.state == ""
    assert address.postal_code == ""
    assert address.country == ""
    assert address.name == ""


def test_empty_address_is_still_present():
    assert map_address({}) is not None


def test_address_keeps_name():
    address = map_address({"city": "Paris", "postal_code": None}, name="Ada")
    assert address.name == "Ada"
    assert address.city == "Paris"
    assert address.postal_code == ""
