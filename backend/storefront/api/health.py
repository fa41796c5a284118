from fastapi import APIRouter

from storefront.db import ping
from storefront.db.readiness import store_readiness

router = APIRouter()


@router.get("/health", tags=["health"])
def health():
    db_ok = False
    try:
        ping()
        db_ok = True
    except Exception:
        db_ok = False

    ready = store_readiness.is_ready
    return {
        "status": "ok" if db_ok and ready else "degraded",
        "db": db_ok,
        "ready": ready,
    }
