from typing import List, Optional, Sequence

from storefront.models.product import Product
from sqlalchemy import func
from sqlalchemy.orm import Session


class ProductRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, product_id: str) -> Optional[Product]:
        return self.db.query(Product).filter(Product.id == product_id).first()

    def list(
        self, category: Optional[str] = None, brands: Sequence[str] = ()
    ) -> List[Product]:
        """
        Server-side predicates only: exact category match and brand set
        membership. Price range and ordering are applied by the caller.
        """
        query = self.db.query(Product)
        if category:
            query = query.filter(Product.category == category)
        if brands:
            query = query.filter(Product.brand.in_(list(brands)))
        return query.order_by(Product.created_at, Product.id).all()

    def categories(self) -> List[str]:
        rows = self.db.query(Product.category).distinct().order_by(Product.category).all()
        return [r[0] for r in rows]

    def count(self) -> int:
        return self.db.query(func.count(Product.id)).scalar() or 0

    def create_or_update(
        self,
        name: str,
        category: str,
        price_cents: int,
        brand: str = None,
        description: str = None,
        image: str = None,
        attributes: dict = None,
    ) -> Product:
        p = self.db.query(Product).filter(Product.name == name).first()
        if p:
            p.category = category
            p.price_cents = price_cents
            p.brand = brand
            p.description = description
            p.image = image
            p.attributes = attributes or None
        else:
            p = Product(
                name=name,
                category=category,
                price_cents=price_cents,
                brand=brand,
                description=description,
                image=image,
                attributes=attributes or None,
            )
            self.db.add(p)
        self.db.flush()
        return p
