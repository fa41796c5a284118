from typing import Optional

from storefront.api.deps import require_store
from storefront.db import get_db
from storefront.schemas.cart_schema import AddItemIn, SetQuantityIn
from storefront.services.cart_service import (
    CartException,
    CartLineNotFound,
    CartService,
    ConfirmationRequired,
)
from storefront.services.catalog_service import CatalogQueryError, ProductNotFound
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.orm import Session

router = APIRouter(prefix="/api/cart", tags=["cart"], dependencies=[Depends(require_store)])

CART_COOKIE = "cart_uuid"


def _get_cart_uuid_cookie(request: Request) -> Optional[str]:
    return request.cookies.get(CART_COOKIE)


def _session_cart(svc: CartService, request: Request, response: Response):
    cart = svc.get_or_create_cart_for_guest(_get_cart_uuid_cookie(request))
    response.set_cookie(CART_COOKIE, cart.cart_uuid, httponly=False, samesite="Lax")
    return cart


@router.get("", summary="Get cart")
def get_cart(request: Request, response: Response, db: Session = Depends(get_db)):
    svc = CartService(db)
    cart = _session_cart(svc, request, response)
    return svc.summarize(cart).model_dump()


@router.post("/items", summary="Add item to cart")
def add_item(
    payload: AddItemIn,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    svc = CartService(db)
    cart = _session_cart(svc, request, response)
    try:
        saved = svc.add_item(cart, payload.product_id, payload.quantity)
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CartException as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CatalogQueryError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return svc.summarize(cart, saved=saved).model_dump()


@router.put("/items/{product_id}", summary="Set line quantity")
def set_quantity(
    product_id: str,
    payload: SetQuantityIn,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    svc = CartService(db)
    cart = _session_cart(svc, request, response)
    try:
        saved = svc.set_quantity(cart, product_id, payload.quantity)
    except CartLineNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CartException as e:
        raise HTTPException(status_code=400, detail=str(e))
    return svc.summarize(cart, saved=saved).model_dump()


@router.delete("/items/{product_id}", summary="Remove line")
def remove_item(
    product_id: str,
    request: Request,
    response: Response,
    confirm: bool = Query(False),
    db: Session = Depends(get_db),
):
    svc = CartService(db)
    cart = _session_cart(svc, request, response)
    try:
        saved = svc.remove_item(cart, product_id, confirm=confirm)
    except CartLineNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConfirmationRequired as e:
        raise HTTPException(status_code=409, detail=str(e))
    return svc.summarize(cart, saved=saved).model_dump()
