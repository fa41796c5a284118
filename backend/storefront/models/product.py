from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy import JSON, Column, DateTime, Integer, String, Text
from storefront.db import Base


def _new_id() -> str:
    return uuid4().hex


class Product(Base):
    __tablename__ = "products"

    id = Column(String(32), primary_key=True, default=_new_id)
    name = Column(String(256), nullable=False, index=True)
    category = Column(String(64), nullable=False, index=True)
    brand = Column(String(128), nullable=True, index=True)
    price_cents = Column(Integer, nullable=False, default=0)
    description = Column(Text, nullable=True)
    image = Column(String(512), nullable=True)
    attributes = Column(JSON, nullable=True)  # capacity / size / material, per category
    created_at = Column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )

    def __repr__(self):
        return f"<Product id={self.id} name={self.name}>"
