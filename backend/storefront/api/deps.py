from fastapi import HTTPException

from storefront.db.readiness import StoreNotReady, store_readiness


async def require_store() -> None:
    """Block the request until the store is usable; fail fast once it is known not to be."""
    try:
        await store_readiness.wait()
    except StoreNotReady as e:
        raise HTTPException(status_code=503, detail=str(e))
