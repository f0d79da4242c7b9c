"""Mapping of processor payloads onto order items and addresses.

Nothing in here raises on bad input: a malformed line item or address
degrades to defaults instead of failing the whole reconciliation.
"""
from typing import Any, List, Optional

from storefront.money import unit_price
from storefront.schemas import Address, OrderItem

PLACEHOLDER_NAME = "Product"
ADDRESS_FIELDS = ("line1", "line2", "city", "state", "postal_code", "country")


def as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _quantity(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        return 1
    return value


def _line_entries(line_items: Any) -> list:
    # Stripe list objects wrap their entries in "data"
    if isinstance(line_items, dict):
        line_items = line_items.get("data")
    if isinstance(line_items, list):
        return line_items
    return []


def _product_fields(price: Any) -> dict:
    fields = {"id": "", "description": "", "image": ""}
    if not isinstance(price, dict):
        return fields

    product = price.get("product")
    if isinstance(product, str):
        fields["id"] = product
    elif isinstance(product, dict):
        metadata = product.get("metadata")
        store_id = metadata.get("productId") if isinstance(metadata, dict) else None
        fields["id"] = as_text(store_id) or as_text(product.get("id"))
        fields["description"] = as_text(product.get("description"))
        images = product.get("images")
        if isinstance(images, list) and images:
            fields["image"] = as_text(images[0])
    return fields


def map_line_items(line_items: Any) -> List[OrderItem]:
    items = []
    for entry in _line_entries(line_items):
        if not isinstance(entry, dict):
            continue

        quantity = _quantity(entry.get("quantity"))
        product = _product_fields(entry.get("price"))
        items.append(
            OrderItem(
                id=product["id"],
                name=as_text(entry.get("description")) or PLACEHOLDER_NAME,
                price=unit_price(entry.get("amount_total"), quantity),
                quantity=quantity,
                description=product["description"],
                image=product["image"],
            )
        )
    return items


def map_address(address: Any, name: Any = None) -> Optional[Address]:
    """Flatten an address object, or return None when none was collected."""
    if not isinstance(address, dict):
        return None

    return Address(
        name=as_text(name),
        **{field: as_text(address.get(field)) for field in ADDRESS_FIELDS},
    )
