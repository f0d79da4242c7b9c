from typing import Optional

import structlog
from sqlalchemy.orm import Session

from storefront.models import Customer

logger = structlog.get_logger(__name__)


def get_customer(db: Session, user_id: str) -> Optional[Customer]:
    return db.get(Customer, user_id)


def link_stripe_customer(db: Session, user_id: str, stripe_customer_id: str, email: str = "") -> Customer:
    """Remember which Stripe customer pays for ``user_id``. Safe to repeat."""
    customer = get_customer(db, user_id)
    if customer is None:
        customer = Customer(user_id=user_id)
        db.add(customer)

    customer.stripe_customer_id = stripe_customer_id
    if email:
        customer.email = email
    db.commit()

    logger.info("stripe_customer_linked", user_id=user_id, stripe_customer_id=stripe_customer_id)
    return customer
