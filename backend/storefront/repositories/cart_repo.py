from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from storefront.models.cart import Cart
from storefront.models.cart_item import CartItem
from storefront.schemas.product_schema import ProductRecord


class CartRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_uuid(self, cart_uuid: str) -> Optional[Cart]:
        return self.db.query(Cart).filter(Cart.cart_uuid == cart_uuid).first()

    def create_guest_cart(self, cart_uuid: str) -> Cart:
        c = Cart(cart_uuid=cart_uuid)
        self.db.add(c)
        self.db.flush()
        return c

    def get_item(self, cart: Cart, product_id: str) -> Optional[CartItem]:
        return (
            self.db.query(CartItem)
            .filter(CartItem.cart_id == cart.id, CartItem.product_id == product_id)
            .first()
        )

    def increment_item(self, cart: Cart, product: ProductRecord, qty: int) -> None:
        """
        Add `qty` units of `product`. An existing line is bumped with a single
        UPDATE ... SET quantity = quantity + :qty so concurrent adds never lose
        units; a missing line is inserted with the product snapshot.
        """
        updated = (
            self.db.query(CartItem)
            .filter(CartItem.cart_id == cart.id, CartItem.product_id == product.id)
            .update(
                {CartItem.quantity: CartItem.quantity + qty},
                synchronize_session=False,
            )
        )
        if not updated:
            self.db.add(
                CartItem(
                    cart_id=cart.id,
                    product_id=product.id,
                    name=product.name,
                    price_cents=product.price_cents,
                    image=product.image,
                    quantity=qty,
                )
            )
        self.touch(cart)
        self.db.flush()

    def set_quantity(self, item: CartItem, qty: int) -> None:
        item.quantity = qty
        self.touch(item.cart)
        self.db.flush()

    def remove_item(self, item: CartItem) -> None:
        cart = item.cart
        self.db.delete(item)
        self.touch(cart)
        self.db.flush()

    def touch(self, cart: Cart) -> None:
        cart.updated_at = datetime.now(timezone.utc)

    def stale_carts(self, ttl_seconds: int) -> List[Cart]:
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=ttl_seconds)
        return self.db.query(Cart).filter(Cart.updated_at < cutoff).all()

    def delete_cart(self, cart: Cart) -> None:
        self.db.delete(cart)
        self.db.flush()
