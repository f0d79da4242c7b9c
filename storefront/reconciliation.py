"""Turns the first successful observation of a payment into an order.

Notifications are delivered at least once and possibly concurrently, so the
only thing that makes this safe is the deterministic order key enforced by
``create_order``. The ``order_exists`` check merely avoids building an
order for redeliveries that are already settled.
"""
from typing import Any, Dict, Optional

import structlog
from sqlalchemy.orm import Session

from storefront.mapping import as_text, map_address, map_line_items
from storefront.money import to_major_units
from storefront.orders import DuplicateOrderError, create_order, order_exists, order_id_for
from storefront.schemas import PaymentRecord

logger = structlog.get_logger(__name__)

SUCCEEDED = "succeeded"
USER_ID_KEY = "userId"


def is_success_transition(before: Optional[PaymentRecord], after: Optional[PaymentRecord]) -> bool:
    previous = before.status if before is not None else None
    return after is not None and previous != SUCCEEDED and after.status == SUCCEEDED


def resolve_user_id(payment: PaymentRecord) -> Optional[str]:
    user_id = payment.metadata.get(USER_ID_KEY)
    if isinstance(user_id, str) and user_id.strip():
        return user_id.strip()
    return None


def _section(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def build_order_fields(payment: PaymentRecord, user_id: str) -> Dict[str, Any]:
    shipping = _section(payment.shipping)
    billing = _section(payment.billing_details)
    customer = _section(payment.customer_details)
    method = _section(payment.payment_method_details)

    shipping_address = map_address(shipping.get("address"), name=shipping.get("name"))
    billing_address = map_address(billing.get("address"), name=billing.get("name"))
    email = as_text(customer.get("email")) or as_text(payment.receipt_email)

    return {
        "user_id": user_id,
        "items": [item.model_dump(mode="json") for item in map_line_items(payment.line_items)],
        "total": to_major_units(payment.amount_total),
        "currency": payment.currency,
        "status": "paid",
        "shipping_address": shipping_address.model_dump() if shipping_address else None,
        "billing_address": billing_address.model_dump() if billing_address else None,
        "phone": as_text(customer.get("phone")),
        "email": email,
        "payment_method": as_text(method.get("type")),
    }


def reconcile_payment_change(
    db: Session,
    payment_id: str,
    before: Optional[PaymentRecord],
    after: Optional[PaymentRecord],
) -> Dict[str, Any]:
    """Create the order for a payment that just succeeded.

    Returns a result dict whose ``status`` is one of ``ignored``,
    ``unattributable``, ``duplicate`` or ``created``. Store errors are not
    caught: the caller must fail so the notification gets redelivered.
    """
    log = logger.bind(payment_id=payment_id)

    if not is_success_transition(before, after):
        log.debug("payment_change_ignored", status=after.status if after else None)
        return {"status": "ignored", "payment_id": payment_id}

    user_id = resolve_user_id(after)
    if user_id is None:
        log.warning("payment_unattributable", metadata_keys=sorted(after.metadata))
        return {"status": "unattributable", "payment_id": payment_id}

    if order_exists(db, payment_id):
        log.info("order_already_exists")
        return {"status": "duplicate", "payment_id": payment_id, "order_id": order_id_for(payment_id)}

    try:
        order_id = create_order(db, payment_id, **build_order_fields(after, user_id))
    except DuplicateOrderError as e:
        log.info("order_created_concurrently", order_id=e.order_id)
        return {"status": "duplicate", "payment_id": payment_id, "order_id": e.order_id}

    return {"status": "created", "payment_id": payment_id, "order_id": order_id}
