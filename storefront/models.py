from sqlalchemy import Column, String, Numeric, Integer, Text, DateTime, JSON, func
from storefront.database import Base


class Order(Base):
    __tablename__ = "orders"

    id = Column(String, primary_key=True)          # derived from payment_id
    user_id = Column(String, nullable=False, index=True)
    items = Column(JSON, nullable=False, default=list)
    total = Column(Numeric(10, 2), nullable=False)
    currency = Column(String, nullable=False, default="")
    status = Column(String, nullable=False, default="paid")  # paid | processing | shipped | delivered
    payment_id = Column(String, nullable=False, unique=True, index=True)
    shipping_address = Column(JSON(none_as_null=True), nullable=True)
    billing_address = Column(JSON(none_as_null=True), nullable=True)
    phone = Column(String, nullable=False, default="")
    email = Column(String, nullable=False, default="")
    payment_method = Column(String, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )


class Product(Base):
    __tablename__ = "products"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Numeric(10, 2), nullable=False)
    image = Column(String, nullable=False, default="")
    features = Column(JSON, nullable=False, default=list)
    category = Column(String, nullable=True, index=True)
    stock = Column(Integer, nullable=True)                 # untracked when NULL
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )


class Customer(Base):
    __tablename__ = "customers"

    user_id = Column(String, primary_key=True)
    stripe_customer_id = Column(String, nullable=False, index=True)
    email = Column(String, nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )
