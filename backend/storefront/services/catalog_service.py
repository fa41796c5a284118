from typing import List, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from storefront.models.product import Product
from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.catalog_schema import (
    AttributeFacet,
    CatalogFacets,
    CatalogFilters,
    CatalogListing,
    CategoryOut,
)
from storefront.schemas.product_schema import ProductRecord
from storefront.services.catalog_filters import (
    CATEGORY_FACET_ATTRIBUTE,
    apply_price_range,
    attribute_values,
    available_brands,
    category_title,
    sort_products,
)
from storefront.utils.logging import get_logger

log = get_logger("catalog")

EMPTY_LISTING_MESSAGE = "No products match the selected filters."


class CatalogException(Exception):
    pass


class ProductNotFound(CatalogException):
    pass


class CatalogQueryError(CatalogException):
    pass


class CatalogService:
    def __init__(self, db: Session):
        self.db = db
        self.product_repo = ProductRepository(db)

    def _to_record(self, row: Product) -> Optional[ProductRecord]:
        try:
            return ProductRecord.model_validate(row)
        except ValidationError as e:
            log.warning(f"Rejecting malformed product {row.id!r}: {e.errors()}")
            return None

    def list_products(self, filters: CatalogFilters) -> CatalogListing:
        category = None if filters.category == "all" else filters.category
        try:
            rows = self.product_repo.list(category=category, brands=filters.brands)
        except SQLAlchemyError as e:
            log.exception("Product listing query failed")
            raise CatalogQueryError("Could not load products") from e

        products = [r for r in map(self._to_record, rows) if r is not None]
        products = apply_price_range(
            products, filters.min_price_cents, filters.max_price_cents
        )
        products = sort_products(products, filters.sort)

        facet_key = CATEGORY_FACET_ATTRIBUTE.get(filters.category)
        facets = CatalogFacets(
            brands=available_brands(products),
            attribute=(
                AttributeFacet(key=facet_key, values=attribute_values(products, facet_key))
                if facet_key
                else None
            ),
        )
        return CatalogListing(
            category=filters.category,
            title=category_title(filters.category),
            items=products,
            total=len(products),
            facets=facets,
            message=None if products else EMPTY_LISTING_MESSAGE,
        )

    def get_product(self, product_id: str) -> ProductRecord:
        try:
            row = self.product_repo.get_by_id(product_id)
        except SQLAlchemyError as e:
            log.exception(f"Product lookup failed for {product_id!r}")
            raise CatalogQueryError("Could not load product") from e
        if row is None:
            raise ProductNotFound(f"Product {product_id} does not exist")
        record = self._to_record(row)
        if record is None:
            raise CatalogQueryError("Could not load product")
        return record

    def list_categories(self) -> List[CategoryOut]:
        try:
            categories = self.product_repo.categories()
        except SQLAlchemyError as e:
            log.exception("Category query failed")
            raise CatalogQueryError("Could not load categories") from e
        return [CategoryOut(category=c, title=category_title(c)) for c in categories]
