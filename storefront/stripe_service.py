import os
from pathlib import Path
from typing import Any, List, Optional, Tuple

from dotenv import load_dotenv
import stripe

from storefront.schemas import CartItem, PaymentRecord

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(dotenv_path=BASE_DIR / ".env")

stripe.api_key = os.getenv("STRIPE_SECRET_KEY")

SHIPPING_COUNTRIES = ["FR", "BE", "CH", "LU", "DE", "ES", "IT", "GB"]


def _plain(obj: Any) -> Any:
    """Copy a Stripe object tree into plain dicts and lists."""
    if isinstance(obj, (str, bytes)):
        return obj
    if hasattr(obj, "keys"):
        return {key: _plain(obj[key]) for key in obj.keys()}
    if isinstance(obj, (list, tuple)):
        return [_plain(value) for value in obj]
    return obj


def _line_item(item: CartItem, currency: str) -> dict:
    product_data = {"name": item.name, "metadata": {"productId": item.id}}
    if item.description:
        product_data["description"] = item.description
    if item.image:
        product_data["images"] = [item.image]

    return {
        "price_data": {
            "currency": currency,
            "product_data": product_data,
            "unit_amount": int((item.price * 100).to_integral_value()),
        },
        "quantity": item.quantity,
    }


def create_checkout_session(items: List[CartItem], user_id: str, email: Optional[str] = None):
    base_url = os.getenv("PUBLIC_BASE_URL", "http://localhost:3000")
    currency = os.getenv("CHECKOUT_CURRENCY", "eur")
    metadata = {"userId": user_id}

    params = dict(
        mode="payment",
        line_items=[_line_item(item, currency) for item in items],
        success_url=f"{base_url}/checkout/success?session_id={{CHECKOUT_SESSION_ID}}",
        cancel_url=f"{base_url}/cart",
        shipping_address_collection={"allowed_countries": SHIPPING_COUNTRIES},
        phone_number_collection={"enabled": True},
        payment_intent_data={"metadata": metadata},
        metadata=metadata,
    )
    if email:
        params["customer_email"] = email

    return stripe.checkout.Session.create(**params)


def retrieve_session(session_id: str):
    return stripe.checkout.Session.retrieve(session_id)


def list_session_line_items(session_id: str) -> List[dict]:
    """Every line item of a session, following pagination."""
    page = stripe.checkout.Session.list_line_items(
        session_id,
        limit=100,
        expand=["data.price.product"],
    )
    return [_plain(item) for item in page.auto_paging_iter()]


def fetch_completed_session(session_id: str) -> dict:
    session = _plain(retrieve_session(session_id))
    session["line_items"] = {"data": list_session_line_items(session_id)}
    return session


def find_or_create_customer(user_id: str, email: str) -> str:
    existing = stripe.Customer.list(email=email, limit=1)
    if existing.data:
        return existing.data[0].id
    return stripe.Customer.create(email=email, metadata={"userId": user_id}).id


def create_portal_session(customer_id: str):
    base_url = os.getenv("PUBLIC_BASE_URL", "http://localhost:3000")
    return stripe.billing_portal.Session.create(
        customer=customer_id,
        return_url=f"{base_url}/account",
    )


def payment_record_from_session(session: Any) -> Tuple[Optional[str], PaymentRecord]:
    """Map a completed Checkout session onto a payment snapshot.

    The payment intent id is the payment identifier, the same one the
    payment sync layer keys its documents by.
    """
    data = _plain(session)
    customer = data.get("customer_details") or {}
    payment_id = data.get("payment_intent")
    if isinstance(payment_id, dict):
        payment_id = payment_id.get("id")

    record = PaymentRecord(
        id=payment_id,
        status="succeeded" if data.get("payment_status") == "paid" else data.get("status") or "",
        amount_total=data.get("amount_total"),
        currency=data.get("currency") or "",
        metadata=data.get("metadata") or {},
        line_items=data.get("line_items"),
        shipping=data.get("shipping_details"),
        billing_details={"name": customer.get("name"), "address": customer.get("address")},
        customer_details=customer,
    )
    return payment_id, record
