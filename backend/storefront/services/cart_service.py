import os
import tempfile
import uuid
from typing import Optional

from filelock import FileLock, Timeout
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.config import settings
from storefront.models.cart import Cart
from storefront.repositories.cart_repo import CartRepository
from storefront.schemas.cart_schema import CartLineOut, CartOut
from storefront.services.catalog_service import CatalogService
from storefront.utils.logging import get_logger

log = get_logger("cart")

CART_LOCKS_DIR = os.path.join(tempfile.gettempdir(), "storefront_cart_locks")


class CartException(Exception):
    pass


class CartLineNotFound(CartException):
    pass


class ConfirmationRequired(CartException):
    pass


class CartService:
    def __init__(self, db: Session):
        self.db = db
        self.cart_repo = CartRepository(db)
        self.catalog = CatalogService(db)

    def get_or_create_cart_for_guest(self, cart_uuid: Optional[str] = None) -> Cart:
        if cart_uuid:
            c = self.cart_repo.get_by_uuid(cart_uuid)
            if c:
                return c
        # unknown or missing session: start a fresh cart
        c = self.cart_repo.create_guest_cart(uuid.uuid4().hex)
        self.db.commit()
        return c

    def _check_quantity(self, qty: int, allow_zero: bool = False):
        low = 0 if allow_zero else 1
        if qty < low or qty > settings.MAX_LINE_QUANTITY:
            raise CartException(
                f"Quantity must be between {low} and {settings.MAX_LINE_QUANTITY}"
            )

    def _line_lock(self, product_id: str) -> FileLock:
        # one lock file per product, so the directory never outgrows the catalogue
        os.makedirs(CART_LOCKS_DIR, exist_ok=True)
        return FileLock(os.path.join(CART_LOCKS_DIR, f"cart_line_{product_id}.lock"))

    def add_item(self, cart: Cart, product_id: str, qty: int = 1) -> bool:
        """
        Add `qty` units of a product to the cart. Returns False when the write
        could not be stored; the failure is logged and the cart left unchanged.
        Raises ProductNotFound for unknown products and CartException for a
        quantity outside the stepper bounds.
        """
        self._check_quantity(qty)
        product = self.catalog.get_product(product_id)

        lock = self._line_lock(product.id)
        try:
            with lock.acquire(timeout=settings.CART_LOCK_TIMEOUT_SECONDS):
                try:
                    self.cart_repo.increment_item(cart, product, qty)
                    self.db.commit()
                except SQLAlchemyError:
                    self.db.rollback()
                    log.exception(
                        f"Cart write failed cart={cart.cart_uuid} product={product.id}"
                    )
                    return False
        except Timeout:
            log.error(f"Timed out waiting for cart line lock cart={cart.cart_uuid} product={product.id}")
            return False
        return True

    def _get_line(self, cart: Cart, product_id: str):
        item = self.cart_repo.get_item(cart, product_id)
        if not item:
            raise CartLineNotFound(f"Product {product_id} is not in the cart")
        return item

    def set_quantity(self, cart: Cart, product_id: str, qty: int) -> bool:
        """Setting the quantity to zero removes the line."""
        self._check_quantity(qty, allow_zero=True)
        item = self._get_line(cart, product_id)
        try:
            if qty == 0:
                self.cart_repo.remove_item(item)
            else:
                self.cart_repo.set_quantity(item, qty)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            log.exception(f"Cart write failed cart={cart.cart_uuid} product={product_id}")
            return False
        return True

    def remove_item(self, cart: Cart, product_id: str, confirm: bool = False) -> bool:
        """
        Remove the whole line, whatever its quantity. The caller must pass
        confirm=True; otherwise ConfirmationRequired carries the prompt.
        """
        item = self._get_line(cart, product_id)
        if not confirm:
            raise ConfirmationRequired(
                f'Are you sure you want to remove "{item.name}" from the cart?'
            )
        try:
            self.cart_repo.remove_item(item)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            log.exception(f"Cart write failed cart={cart.cart_uuid} product={product_id}")
            return False
        return True

    def summarize(self, cart: Cart, saved: bool = True) -> CartOut:
        self.db.expire(cart)
        lines = [
            CartLineOut(
                product_id=it.product_id,
                name=it.name,
                price_cents=it.price_cents,
                image=it.image,
                quantity=it.quantity,
                subtotal_cents=it.price_cents * it.quantity,
            )
            for it in cart.items
        ]
        return CartOut(
            cart_uuid=cart.cart_uuid,
            items=lines,
            item_count=sum(line.quantity for line in lines),
            subtotal_cents=sum(line.subtotal_cents for line in lines),
            empty=not lines,
            saved=saved,
        )

    def purge_stale(self, ttl_seconds: Optional[int] = None) -> int:
        """Delete carts untouched for longer than the TTL; returns how many."""
        ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.CART_TTL_SECONDS
        carts = self.cart_repo.stale_carts(ttl_seconds)
        for c in carts:
            self.cart_repo.delete_cart(c)
        self.db.commit()
        if carts:
            log.info(f"Purged {len(carts)} stale carts")
        return len(carts)
