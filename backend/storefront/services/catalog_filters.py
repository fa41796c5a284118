from typing import Iterable, List, Optional

from storefront.schemas.product_schema import ProductRecord

CATEGORY_TITLES = {
    "all": "All Products",
    "technology": "Category: Technology",
    "clothing": "Category: Clothing",
    "home": "Category: Home",
    "other": "Other Products",
}

# category-specific attribute offered as a facet
CATEGORY_FACET_ATTRIBUTE = {
    "technology": "capacity",
    "clothing": "size",
    "home": "material",
}


def category_title(category: str) -> str:
    return CATEGORY_TITLES.get(category, f"Category: {category}")


def apply_price_range(
    products: Iterable[ProductRecord], min_cents: int = 0, max_cents: Optional[int] = None
) -> List[ProductRecord]:
    """Inclusive on both ends; an unset upper bound applies only the lower one."""
    return [
        p
        for p in products
        if p.price_cents >= min_cents and (max_cents is None or p.price_cents <= max_cents)
    ]


def sort_products(products: Iterable[ProductRecord], sort: str = "default") -> List[ProductRecord]:
    products = list(products)
    if sort == "price_asc":
        return sorted(products, key=lambda p: p.price_cents)
    if sort == "price_desc":
        return sorted(products, key=lambda p: p.price_cents, reverse=True)
    if sort == "name_asc":
        return sorted(products, key=lambda p: p.name.casefold())
    return products


def available_brands(products: Iterable[ProductRecord]) -> List[str]:
    return sorted({p.brand for p in products if p.brand})


def attribute_values(products: Iterable[ProductRecord], key: str) -> List[str]:
    return sorted({p.attributes[key] for p in products if p.attributes.get(key)})
