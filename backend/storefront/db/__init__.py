import importlib

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, declarative_base

from storefront.config import settings
from storefront.utils.logging import get_logger

log = get_logger("store")

DATABASE_URL = settings.DATABASE_URL
engine = create_engine(DATABASE_URL, future=True, echo=False)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# model modules imported before create_all so metadata is populated
MODEL_MODULES = [
    "storefront.models.product",
    "storefront.models.cart",
    "storefront.models.cart_item",
]


def ping():
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))


def init_db(reset: bool = False):
    """
    Initialize DB schema.

    Behavior:
      - If `reset` is true, drop & recreate tables.
      - Otherwise, leave existing tables in place.
      - When the products table is empty and SEED_DEMO_CATALOG is on, insert
        the demo catalogue so the listing pages have something to show.
    """
    for mod in MODEL_MODULES:
        importlib.import_module(mod)

    if reset:
        log.info("Resetting database...")
        Base.metadata.drop_all(bind=engine)

    Base.metadata.create_all(bind=engine)
    log.info("Database initialized.")

    if settings.SEED_DEMO_CATALOG:
        from storefront.db.seed import DEMO_CATALOGUE, seed_catalogue
        from storefront.repositories.product_repo import ProductRepository

        s = SessionLocal()
        try:
            if ProductRepository(s).count():
                log.info("Catalogue already populated, demo seeding skipped.")
            else:
                created = seed_catalogue(s, DEMO_CATALOGUE)
                log.info(f"Seeded {created} demo products.")
        finally:
            s.close()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
