from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from storefront.schemas.product_schema import ProductRecord

SortOrder = Literal["default", "price_asc", "price_desc", "name_asc"]


class CatalogFilters(BaseModel):
    """Per-view filter state; a new instance replaces the previous one on every change."""

    category: str = "all"
    brands: List[str] = Field(default_factory=list)
    min_price_cents: int = Field(0, ge=0)
    max_price_cents: Optional[int] = Field(None, ge=0)
    sort: SortOrder = "default"

    @model_validator(mode="after")
    def _check_price_range(self):
        if self.max_price_cents is not None and self.max_price_cents < self.min_price_cents:
            raise ValueError("max_price_cents must be greater than or equal to min_price_cents")
        return self


class AttributeFacet(BaseModel):
    key: str
    values: List[str]


class CatalogFacets(BaseModel):
    brands: List[str]
    attribute: Optional[AttributeFacet] = None


class CatalogListing(BaseModel):
    category: str
    title: str
    items: List[ProductRecord]
    total: int
    facets: CatalogFacets
    message: Optional[str] = None


class CategoryOut(BaseModel):
    category: str
    title: str
