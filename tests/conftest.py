import os

# Must be set before the storefront package is imported
os.environ["DATABASE_URL"] = "sqlite:///./test_storefront.db"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test"

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from storefront.auth import verify_token
from storefront.database import Base, get_db
from storefront.main import app as fastapi_app
from storefront.models import Product

engine = create_engine(os.environ["DATABASE_URL"], connect_args={
                       "check_same_thread": False})
TestingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db():
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def client():
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[verify_token] = lambda: "u1"
    with TestClient(fastapi_app) as c:
        yield c
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def succeeded_payment():
    """A payment document as the sync layer stores it after success."""
    return {
        "id": "pay_123",
        "status": "succeeded",
        "amount_total": 4999,
        "currency": "eur",
        "metadata": {"userId": "u1"},
        "line_items": {
            "data": [
                {"description": "Phone X", "amount_total": 4999, "quantity": 1,
                 "price": {"product": "prod_phone_x"}},
            ]
        },
        "shipping": {
            "name": "Ada Lovelace",
            "address": {"line1": "1 rue de Rivoli", "city": "Paris",
                        "postal_code": "75001", "country": "FR"},
        },
        "customer_details": {"email": "ada@example.com", "phone": "+33100000000"},
        "payment_method_details": {"type": "card"},
    }


@pytest.fixture
def other_db():
    """A second, independent session, as a concurrent worker would hold."""
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def catalog(db):
    db.add_all([
        Product(id="phone-x", name="Phone X", description="6.1 inch, 128 GB", price=Decimal("49.99"),
                image="https://cdn.example.com/x.png", features=["5G", "OLED"], category="phones", stock=5),
        Product(id="case", name="Silicone case", description="Fits Phone X", price=Decimal("5.00")),
    ])
    db.commit()
