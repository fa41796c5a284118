# backend/storefront/schemas/product_schema.py
from decimal import Decimal
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


class ProductDocument(BaseModel):
    """A catalogue document as written by the seeding path (no id yet)."""

    name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    brand: Optional[str] = None
    price_cents: int = Field(ge=0)
    description: Optional[str] = None
    image: Optional[str] = None
    attributes: Dict[str, str] = Field(default_factory=dict)

    @field_validator("attributes", mode="before")
    @classmethod
    def _none_as_empty(cls, v):
        return v if v is not None else {}


class ProductRecord(ProductDocument):
    """A product as read back from the store; rows that fail validation are rejected."""

    model_config = ConfigDict(from_attributes=True)
    id: str = Field(min_length=1)

    @computed_field
    @property
    def price(self) -> Decimal:
        return (Decimal(self.price_cents) / 100).quantize(Decimal("0.01"))
