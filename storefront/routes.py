from typing import List, Optional

import stripe
import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.auth import verify_token
from storefront.catalog import UnknownProductError, get_product, list_products, popular_products, price_cart
from storefront.customers import get_customer, link_stripe_customer
from storefront.database import get_db
from storefront.orders import get_order, list_user_orders
from storefront.reconciliation import reconcile_payment_change, resolve_user_id
from storefront.schemas import CheckoutRequest, OrderOut, PaymentChange, PaymentRecord, PortalRequest, ProductOut
from storefront.stripe_service import create_checkout_session, create_portal_session, find_or_create_customer

router = APIRouter()
logger = structlog.get_logger(__name__)


def reconcile_or_503(db: Session, payment_id: str, before, after) -> dict:
    """Run reconciliation, mapping store failures to 503 so the sender retries."""
    try:
        return reconcile_payment_change(db, payment_id, before, after)
    except SQLAlchemyError as e:
        logger.error("reconciliation_store_failure", payment_id=payment_id, error=str(e))
        raise HTTPException(status_code=503, detail="Order store unavailable")


def settle_checkout(
    db: Session, payment_id: str, payment: PaymentRecord, stripe_customer_id: Optional[str]
) -> dict:
    """Reconcile a completed checkout, then remember the buyer's Stripe customer."""
    result = reconcile_or_503(db, payment_id, None, payment)
    user_id = resolve_user_id(payment)
    if result["status"] not in ("created", "duplicate") or not user_id or not stripe_customer_id:
        return result

    try:
        link_stripe_customer(db, user_id, stripe_customer_id)
    except SQLAlchemyError as e:
        logger.error("customer_link_store_failure", user_id=user_id, error=str(e))
        raise HTTPException(status_code=503, detail="Order store unavailable")
    return result


@router.post("/payments/{payment_id}/changes")
def payment_changed(
    payment_id: str,
    change: PaymentChange,
    db: Session = Depends(get_db),
    auth=Depends(verify_token),
):
    if change.after.id is not None and change.after.id != payment_id:
        raise HTTPException(status_code=422, detail="Payment id does not match the document")
    return reconcile_or_503(db, payment_id, change.before, change.after)


@router.get("/products", response_model=List[ProductOut])
def products(q: Optional[str] = None, db: Session = Depends(get_db)):
    return list_products(db, q)


@router.get("/products/popular", response_model=List[ProductOut])
def products_popular(count: int = Query(4, ge=1, le=50), db: Session = Depends(get_db)):
    return popular_products(db, count)


@router.get("/products/{product_id}", response_model=ProductOut)
def product(product_id: str, db: Session = Depends(get_db)):
    found = get_product(db, product_id)
    if found is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return found


@router.post("/checkout")
def checkout(
    request: CheckoutRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(verify_token),
):
    if not request.items:
        raise HTTPException(status_code=400, detail="Cart is empty")

    try:
        items = price_cart(db, request.items)
    except UnknownProductError as e:
        raise HTTPException(status_code=400, detail=f"Unknown product: {e.product_id}")

    try:
        session = create_checkout_session(items, user_id, request.email)
    except stripe.StripeError as e:
        logger.error("checkout_session_failed", user_id=user_id, error=str(e))
        raise HTTPException(status_code=502, detail="Payment processor error")

    logger.info("checkout_session_created", user_id=user_id, session_id=session.id)
    return {"url": session.url}


@router.post("/billing-portal")
def billing_portal(
    request: PortalRequest,
    db: Session = Depends(get_db),
    user_id: str = Depends(verify_token),
):
    customer = get_customer(db, user_id)
    if customer is None and not request.email:
        raise HTTPException(status_code=400, detail="Email is required")

    try:
        if customer is not None:
            customer_id = customer.stripe_customer_id
        else:
            customer_id = find_or_create_customer(user_id, request.email)
            link_stripe_customer(db, user_id, customer_id, request.email)
        session = create_portal_session(customer_id)
    except stripe.PermissionError as e:
        logger.error("billing_portal_disabled", user_id=user_id, error=str(e))
        raise HTTPException(status_code=502, detail="Customer portal is not enabled")
    except stripe.StripeError as e:
        logger.error("billing_portal_failed", user_id=user_id, error=str(e))
        raise HTTPException(status_code=502, detail="Payment processor error")

    return {"url": session.url}


@router.get("/orders", response_model=List[OrderOut])
def my_orders(db: Session = Depends(get_db), user_id: str = Depends(verify_token)):
    return list_user_orders(db, user_id)


@router.get("/orders/{order_id}", response_model=OrderOut)
def my_order(order_id: str, db: Session = Depends(get_db), user_id: str = Depends(verify_token)):
    order = get_order(db, order_id)
    if order is None or order.user_id != user_id:
        raise HTTPException(status_code=404, detail="Order not found")
    return order
