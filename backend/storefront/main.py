from contextlib import asynccontextmanager

import uvicorn
from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.api.health import router as health_router
from storefront.api.routes_cart import router as cart_router
from storefront.api.routes_catalogue import live_router as catalogue_live_router
from storefront.api.routes_catalogue import router as catalogue_router
from storefront.config import settings
from storefront.db import SessionLocal
from storefront.db.readiness import StoreNotReady, store_readiness
from storefront.services.cart_service import CartService
from storefront.utils.logging import get_logger

log = get_logger("app")


def purge_stale_carts_job():
    db = SessionLocal()
    try:
        CartService(db).purge_stale()
    except Exception:
        log.exception("Stale cart purge failed")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    try:
        await store_readiness.wait()
    except StoreNotReady:
        log.error("Store not ready at startup; views will answer 503")

    scheduler = BackgroundScheduler()
    scheduler.add_job(
        purge_stale_carts_job,
        "interval",
        seconds=settings.CART_PURGE_INTERVAL_SECONDS,
        id="purge_stale_carts",
    )
    scheduler.start()

    try:
        yield
    finally:
        scheduler.shutdown(wait=False)


app = FastAPI(title="Storefront - Backend", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router, prefix="/api", tags=["health"])

app.include_router(catalogue_router, prefix="/api/products", tags=["catalogue"])

app.include_router(catalogue_live_router, prefix="/api/products", tags=["catalogue"])

app.include_router(cart_router, tags=["cart"])


if __name__ == "__main__":
    uvicorn.run("storefront.main:app", host=settings.APP_HOST, port=settings.APP_PORT)
