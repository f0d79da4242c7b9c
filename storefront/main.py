import os
import stripe
import structlog
from pathlib import Path
from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request, Header, HTTPException
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from storefront.routes import router, settle_checkout
from storefront.database import Base, engine, get_db
from storefront.logging_config import configure_logging
from storefront.stripe_service import fetch_completed_session, payment_record_from_session

# Force-load .env (Windows-safe)
BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(dotenv_path=BASE_DIR / ".env")

configure_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(title="Phone Store Order Service")

app.include_router(router)

Base.metadata.create_all(bind=engine)


@app.post("/webhook")
async def stripe_webhook(
    request: Request,
    stripe_signature: str = Header(None),
    db: Session = Depends(get_db),
):
    payload = await request.body()

    try:
        event = stripe.Webhook.construct_event(
            payload,
            stripe_signature,
            os.getenv("STRIPE_WEBHOOK_SECRET")
        )
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid payload")
    except stripe.SignatureVerificationError:
        raise HTTPException(status_code=400, detail="Invalid signature")

    if event["type"] != "checkout.session.completed":
        return {"ok": True}

    session_id = event["data"]["object"]["id"]
    try:
        session = await run_in_threadpool(fetch_completed_session, session_id)
    except stripe.StripeError as e:
        logger.error("checkout_session_retrieve_failed", session_id=session_id, error=str(e))
        raise HTTPException(status_code=503, detail="Payment processor unavailable")

    payment_id, payment = payment_record_from_session(session)
    if not payment_id:
        logger.warning("checkout_session_without_payment", session_id=session_id)
        return {"ok": True}

    customer = session.get("customer")
    if isinstance(customer, dict):
        customer = customer.get("id")

    result = await run_in_threadpool(settle_checkout, db, payment_id, payment, customer)
    return {"ok": True, **result}
