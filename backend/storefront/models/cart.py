from datetime import datetime, timezone

from storefront.db import Base
from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship


def _utcnow():
    return datetime.now(timezone.utc)


class Cart(Base):
    __tablename__ = "carts"
    id = Column(Integer, primary_key=True, index=True)
    cart_uuid = Column(
        String(64), unique=True, index=True, nullable=False
    )  # anonymous session identifier
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=_utcnow, nullable=False, index=True
    )

    items = relationship(
        "CartItem",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItem.id",
    )
