from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from sqlalchemy.orm import Session

from storefront.api.deps import require_store
from storefront.db import SessionLocal, get_db
from storefront.db.readiness import StoreNotReady, store_readiness
from storefront.schemas.catalog_schema import CatalogFilters
from storefront.services.catalog_service import (
    CatalogQueryError,
    CatalogService,
    ProductNotFound,
)
from storefront.services.catalog_subscription import CatalogSubscription

router = APIRouter(tags=["catalogue"], dependencies=[Depends(require_store)])

# websocket routes report readiness themselves
live_router = APIRouter(tags=["catalogue"])


@router.get("", summary="List products")
def list_products(
    category: str = Query("all", description="category tag, or 'all'"),
    brand: List[str] = Query([], description="repeat to select several brands"),
    min_price_cents: int = Query(0),
    max_price_cents: Optional[int] = Query(None),
    sort: str = Query("default"),
    db: Session = Depends(get_db),
):
    try:
        filters = CatalogFilters(
            category=category,
            brands=brand,
            min_price_cents=min_price_cents,
            max_price_cents=max_price_cents,
            sort=sort,
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))

    try:
        listing = CatalogService(db).list_products(filters)
    except CatalogQueryError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return listing.model_dump(mode="json")


@router.get("/categories", summary="List categories")
def list_categories(db: Session = Depends(get_db)):
    try:
        categories = CatalogService(db).list_categories()
    except CatalogQueryError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return [c.model_dump() for c in categories]


@router.get("/{product_id}", summary="Get product by id")
def get_product(product_id: str, db: Session = Depends(get_db)):
    try:
        product = CatalogService(db).get_product(product_id)
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except CatalogQueryError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return product.model_dump(mode="json")


def _query_listing(filters: CatalogFilters):
    db = SessionLocal()
    try:
        return CatalogService(db).list_products(filters)
    finally:
        db.close()


@live_router.websocket("/live")
async def live_products(websocket: WebSocket):
    """
    Each text message received is a JSON set of filters; the reply is
    the listing for it, tagged with `seq`. A newer message supersedes any
    listing still being computed for an older one.
    """
    await websocket.accept()
    try:
        await store_readiness.wait()
    except StoreNotReady as e:
        await websocket.send_json({"error": str(e)})
        await websocket.close(code=1011)
        return

    subscription = CatalogSubscription(_query_listing, websocket.send_json)
    try:
        while True:
            message = await websocket.receive_text()
            try:
                filters = CatalogFilters.model_validate_json(message)
            except ValidationError as e:
                await websocket.send_json(
                    {"error": e.errors(include_url=False, include_context=False)}
                )
                continue
            subscription.replace(filters)
    except WebSocketDisconnect:
        pass
    finally:
        await subscription.close()
