from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from storefront.models import Product
from storefront.schemas import CartItem


class UnknownProductError(Exception):
    """Raised when a cart references a product missing from the catalog."""

    def __init__(self, product_id: str):
        super().__init__(f"Unknown product {product_id}")
        self.product_id = product_id


def list_products(db: Session, query: Optional[str] = None) -> List[Product]:
    stmt = select(Product).order_by(Product.name, Product.id)
    if query:
        pattern = f"%{query.strip()}%"
        stmt = stmt.where(or_(Product.name.ilike(pattern), Product.description.ilike(pattern)))
    return list(db.scalars(stmt))


def popular_products(db: Session, count: int = 4) -> List[Product]:
    # No sales ranking yet; the first products of the catalog stand in
    stmt = select(Product).order_by(Product.created_at, Product.id).limit(count)
    return list(db.scalars(stmt))


def get_product(db: Session, product_id: str) -> Optional[Product]:
    return db.get(Product, product_id)


def price_cart(db: Session, items: List[CartItem]) -> List[CartItem]:
    """Rebuild cart lines from the catalog so the client cannot set prices."""
    priced = []
    for item in items:
        product = get_product(db, item.id)
        if product is None:
            raise UnknownProductError(item.id)
        priced.append(
            CartItem(
                id=product.id,
                name=product.name,
                price=product.price,
                quantity=item.quantity,
                description=product.description or "",
                image=product.image or "",
            )
        )
    return priced
