import os
import tempfile

# must be set before storefront.config is imported
_db_dir = tempfile.mkdtemp(prefix="storefront-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_db_dir, 'test.db')}"
os.environ["RESET_DB"] = "1"
os.environ["SEED_DEMO_CATALOG"] = "1"

import pytest

from storefront.db import SessionLocal
from storefront.db.readiness import store_readiness
from storefront.models.product import Product


@pytest.fixture(autouse=True, scope="session")
def ready_store():
    # reset + demo seed happen exactly once, before any test writes data
    store_readiness.initialize()
    yield


def insert_products(*rows):
    """Insert Product rows directly and return their ids in order."""
    db = SessionLocal()
    try:
        products = [Product(**row) for row in rows]
        db.add_all(products)
        db.commit()
        return [p.id for p in products]
    finally:
        db.close()
