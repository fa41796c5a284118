import concurrent.futures
import os
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import SQLAlchemyError

from conftest import insert_products
from storefront.db import SessionLocal
from storefront.main import app
from storefront.models.cart import Cart
from storefront.models.product import Product
from storefront.repositories.cart_repo import CartRepository
from storefront.services.cart_service import CART_LOCKS_DIR, CartService

ids = {}


def setup_module(module):
    mug, plate, bowl = insert_products(
        {"name": "Cart Test Mug", "category": "cart-test", "brand": "Potter", "price_cents": 1250},
        {"name": "Cart Test Plate", "category": "cart-test", "brand": "Potter", "price_cents": 800},
        {"name": "Cart Test Bowl", "category": "cart-test", "brand": "Potter", "price_cents": 500},
    )
    ids.update(mug=mug, plate=plate, bowl=bowl)


@pytest.fixture
def client():
    # fresh cookie jar, so every test gets its own cart
    return TestClient(app)


def _add(client, product_id, quantity=1):
    return client.post("/api/cart/items", json={"product_id": product_id, "quantity": quantity})


def test_new_session_gets_empty_cart(client):
    res = client.get("/api/cart")
    assert res.status_code == 200
    body = res.json()
    assert body["empty"] is True
    assert body["items"] == []
    assert body["subtotal_cents"] == 0
    assert res.cookies.get("cart_uuid") == body["cart_uuid"]


def test_cart_is_kept_across_requests(client):
    first = client.get("/api/cart").json()["cart_uuid"]
    _add(client, ids["mug"])
    body = client.get("/api/cart").json()
    assert body["cart_uuid"] == first
    assert body["item_count"] == 1


def test_adding_same_product_twice_gives_one_line(client):
    _add(client, ids["mug"])
    res = _add(client, ids["mug"])
    assert res.status_code == 200
    body = res.json()
    assert body["saved"] is True
    assert len(body["items"]) == 1
    line = body["items"][0]
    assert line["product_id"] == ids["mug"]
    assert line["quantity"] == 2
    assert line["subtotal_cents"] == 2500


def test_totals_across_lines(client):
    _add(client, ids["mug"], 2)
    body = _add(client, ids["plate"], 3).json()
    assert body["item_count"] == 5
    assert body["subtotal_cents"] == 2 * 1250 + 3 * 800
    assert {line["product_id"]: line["subtotal_cents"] for line in body["items"]} == {
        ids["mug"]: 2500,
        ids["plate"]: 2400,
    }


def test_add_unknown_product_is_not_found(client):
    res = _add(client, "no-such-product")
    assert res.status_code == 404


@pytest.mark.parametrize("quantity", [0, -1, 100])
def test_add_quantity_outside_stepper_bounds(client, quantity):
    res = _add(client, ids["mug"], quantity)
    assert res.status_code == 400


def test_snapshot_taken_at_first_add(client):
    _add(client, ids["bowl"])
    db = SessionLocal()
    try:
        db.query(Product).filter(Product.id == ids["bowl"]).update({Product.price_cents: 999})
        db.commit()
        body = _add(client, ids["bowl"]).json()
        line = body["items"][0]
        assert line["quantity"] == 2
        assert line["price_cents"] == 500
    finally:
        db.query(Product).filter(Product.id == ids["bowl"]).update({Product.price_cents: 500})
        db.commit()
        db.close()


def test_remove_requires_confirmation(client):
    _add(client, ids["mug"])
    res = client.delete(f"/api/cart/items/{ids['mug']}")
    assert res.status_code == 409
    assert "Cart Test Mug" in res.json()["detail"]
    assert client.get("/api/cart").json()["item_count"] == 1


def test_remove_deletes_whole_line(client):
    _add(client, ids["mug"], 3)
    _add(client, ids["plate"])
    res = client.delete(f"/api/cart/items/{ids['mug']}", params={"confirm": "true"})
    assert res.status_code == 200
    body = res.json()
    assert [line["product_id"] for line in body["items"]] == [ids["plate"]]


def test_remove_last_line_empties_cart(client):
    _add(client, ids["mug"])
    body = client.delete(f"/api/cart/items/{ids['mug']}", params={"confirm": "true"}).json()
    assert body["empty"] is True


def test_remove_unknown_line_is_not_found(client):
    res = client.delete(f"/api/cart/items/{ids['plate']}", params={"confirm": "true"})
    assert res.status_code == 404


def test_set_quantity(client):
    _add(client, ids["plate"])
    res = client.put(f"/api/cart/items/{ids['plate']}", json={"quantity": 4})
    assert res.status_code == 200
    assert res.json()["items"][0]["quantity"] == 4


def test_set_quantity_to_zero_removes_line(client):
    _add(client, ids["plate"], 2)
    res = client.put(f"/api/cart/items/{ids['plate']}", json={"quantity": 0})
    assert res.status_code == 200
    assert res.json()["items"] == []


def test_storage_failure_degrades_silently(client, monkeypatch):
    def broken(self, cart, product, qty):
        raise SQLAlchemyError("disk I/O error")

    monkeypatch.setattr(CartRepository, "increment_item", broken)
    res = _add(client, ids["mug"])
    assert res.status_code == 200
    body = res.json()
    assert body["saved"] is False
    assert body["items"] == []


def test_concurrent_adds_do_not_lose_units():
    db = SessionLocal()
    try:
        cart_uuid = CartService(db).get_or_create_cart_for_guest(None).cart_uuid
    finally:
        db.close()

    def add_one(_):
        s = SessionLocal()
        try:
            svc = CartService(s)
            cart = svc.get_or_create_cart_for_guest(cart_uuid)
            return svc.add_item(cart, ids["plate"], 1)
        finally:
            s.close()

    with concurrent.futures.ThreadPoolExecutor(max_workers=8) as ex:
        results = list(ex.map(add_one, range(8)))
    assert all(results)

    db = SessionLocal()
    try:
        cart = CartRepository(db).get_by_uuid(cart_uuid)
        assert [it.quantity for it in cart.items] == [8]
    finally:
        db.close()


def test_purge_stale_carts():
    db = SessionLocal()
    try:
        svc = CartService(db)
        old = svc.get_or_create_cart_for_guest(None)
        svc.add_item(old, ids["mug"], 1)
        fresh = svc.get_or_create_cart_for_guest(None)
        old.updated_at = datetime.now(timezone.utc) - timedelta(days=30)
        db.commit()
        old_uuid, fresh_uuid = old.cart_uuid, fresh.cart_uuid

        assert svc.purge_stale(ttl_seconds=24 * 3600) >= 1
        assert db.query(Cart).filter(Cart.cart_uuid == old_uuid).first() is None
        assert db.query(Cart).filter(Cart.cart_uuid == fresh_uuid).first() is not None
    finally:
        db.close()


def _lock_files():
    if not os.path.isdir(CART_LOCKS_DIR):
        return set()
    return set(os.listdir(CART_LOCKS_DIR))


def test_lock_files_do_not_grow_with_carts():
    db = SessionLocal()
    try:
        svc = CartService(db)
        before = _lock_files()
        carts = [svc.get_or_create_cart_for_guest(None) for _ in range(20)]
        for cart in carts:
            assert svc.add_item(cart, ids["bowl"], 1)
        created = _lock_files() - before
        assert created <= {f"cart_line_{ids['bowl']}.lock"}

        for cart in carts:
            cart.updated_at = datetime.now(timezone.utc) - timedelta(days=30)
        db.commit()
        assert svc.purge_stale(ttl_seconds=24 * 3600) >= 20
        assert _lock_files() - before <= {f"cart_line_{ids['bowl']}.lock"}
    finally:
        db.close()
