import hashlib
from typing import List, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from storefront.models import Order

logger = structlog.get_logger(__name__)


class DuplicateOrderError(Exception):
    """Raised when an order already exists for a payment."""

    def __init__(self, payment_id: str, order_id: str):
        super().__init__(f"Order {order_id} already exists for payment {payment_id}")
        self.payment_id = payment_id
        self.order_id = order_id


def order_id_for(payment_id: str) -> str:
    """Deterministic order key, so a second insert for a payment collides."""
    digest = hashlib.sha256(payment_id.encode("utf-8")).hexdigest()
    return f"ord_{digest[:24]}"


def order_exists(db: Session, payment_id: str) -> bool:
    stmt = select(Order.id).where(Order.payment_id == payment_id).limit(1)
    return db.execute(stmt).first() is not None


def create_order(db: Session, payment_id: str, **fields) -> str:
    """Insert the order for ``payment_id`` and return its id.

    Timestamps come from the database clock. Raises DuplicateOrderError if
    the payment already has an order, even one written concurrently.
    """
    order_id = order_id_for(payment_id)
    db.add(Order(id=order_id, payment_id=payment_id, **fields))
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        if not order_exists(db, payment_id):
            raise
        raise DuplicateOrderError(payment_id, order_id)

    logger.info("order_created", order_id=order_id, payment_id=payment_id)
    return order_id


def list_user_orders(db: Session, user_id: str) -> List[Order]:
    stmt = (
        select(Order)
        .where(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id)
    )
    return list(db.scalars(stmt))


def get_order(db: Session, order_id: str) -> Optional[Order]:
    return db.get(Order, order_id)
