from typing import List, Optional

from pydantic import BaseModel, ConfigDict


class AddItemIn(BaseModel):
    product_id: str
    quantity: int = 1


class SetQuantityIn(BaseModel):
    quantity: int


class CartLineOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    product_id: str
    name: str
    price_cents: int
    image: Optional[str] = None
    quantity: int
    subtotal_cents: int


class CartOut(BaseModel):
    cart_uuid: str
    items: List[CartLineOut]
    item_count: int
    subtotal_cents: int
    empty: bool
    saved: bool = True
