"""
Demo catalogue and helpers to load catalogue documents into the store.

Documents are normalized from a few key spellings (English keys, and the
Spanish keys used by older catalogue exports: nombre, precio, categoria,
marca, descripcion, talla, capacidad) and validated before any write.
"""
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from storefront.repositories.product_repo import ProductRepository
from storefront.schemas.product_schema import ProductDocument
from storefront.utils.logging import get_logger

log = get_logger("store")

ATTRIBUTE_KEYS = {
    "capacity": "capacity",
    "capacidad": "capacity",
    "size": "size",
    "talla": "size",
    "material": "material",
}

DEMO_CATALOGUE = [
    # technology
    {"name": "Nova 10 Smartphone", "category": "technology", "brand": "TechCore", "price": "599.99",
     "description": "Latest model with a 108MP camera.", "attributes": {"capacity": "128GB"},
     "image": "https://placehold.co/300x300/1e40af/ffffff?text=Smartphone"},
    {"name": "P3 Bluetooth Headphones", "category": "technology", "brand": "SoundMax", "price": "79.50",
     "description": "Active noise cancelling.", "attributes": {"capacity": "24h battery"},
     "image": "https://placehold.co/300x300/10b981/ffffff?text=Headphones"},
    {"name": "Curved Monitor 27 Pro", "category": "technology", "brand": "ViewMaster", "price": "349.00",
     "description": "Built for gaming and work.", "attributes": {"capacity": "4K"},
     "image": "https://placehold.co/300x300/f59e0b/ffffff?text=Monitor"},
    # clothing
    {"name": "Classic Slim Fit Jeans", "category": "clothing", "brand": "DenimX", "price": "45.99",
     "description": "Organic cotton, dark blue.", "attributes": {"size": "L"},
     "image": "https://placehold.co/300x300/ef4444/ffffff?text=Jeans"},
    {"name": "Alpine Winter Jacket", "category": "clothing", "brand": "Climber", "price": "129.99",
     "description": "Waterproof and thermal for low temperatures.", "attributes": {"size": "XL"},
     "image": "https://placehold.co/300x300/a855f7/ffffff?text=Jacket"},
    {"name": "DRI-FIT Sports Shirt", "category": "clothing", "brand": "Athletica", "price": "25.00",
     "description": "Breathable, lightweight fabric.", "attributes": {"size": "M"},
     "image": "https://placehold.co/300x300/06b6d4/ffffff?text=Shirt"},
    # home
    {"name": "Automatic Espresso Machine", "category": "home", "brand": "HomePro", "price": "199.90",
     "description": "Coffee at the touch of a button.", "attributes": {"material": "Stainless steel"},
     "image": "https://placehold.co/300x300/fbbf24/333?text=Espresso"},
    {"name": "Linen Bed Sheet Set", "category": "home", "brand": "DreamSleep", "price": "85.00",
     "description": "Maximum comfort for a good night's rest.", "attributes": {"material": "Linen"},
     "image": "https://placehold.co/300x300/16a34a/ffffff?text=Sheets"},
    {"name": "Smart Robot Vacuum", "category": "home", "brand": "CleanBot", "price": "250.50",
     "description": "Smart mapping and app control.", "attributes": {"material": "ABS plastic"},
     "image": "https://placehold.co/300x300/4f46e5/ffffff?text=Vacuum"},
    {"name": "LED Desk Lamp", "category": "home", "brand": "HomePro", "price": "40.00",
     "description": "Adjustable light with 3 colour modes.", "attributes": {"material": "Aluminium"},
     "image": "https://placehold.co/300x300/f97316/ffffff?text=Lamp"},
]


def _price_cents(entry: Dict) -> Optional[int]:
    if entry.get("price_cents") is not None:
        raw, scale = entry["price_cents"], 1
    else:
        raw, scale = entry.get("price", entry.get("precio")), 100
    if raw is None:
        return None
    try:
        return int((Decimal(str(raw)) * scale).quantize(Decimal("1")))
    except InvalidOperation:
        return None


def normalize_entry(entry: Dict) -> Dict:
    """Return a dict shaped like ProductDocument; missing fields stay None."""
    attributes = {}
    for key, value in (entry.get("attributes") or {}).items():
        attributes[ATTRIBUTE_KEYS.get(key, key)] = str(value)
    for key, target in ATTRIBUTE_KEYS.items():
        if entry.get(key) is not None:
            attributes[target] = str(entry[key])

    image = entry.get("image") or entry.get("imagenUrl")
    if not image:
        imgs = entry.get("images") or []
        image = imgs[0] if isinstance(imgs, (list, tuple)) and imgs else None

    return {
        "name": entry.get("name") or entry.get("nombre"),
        "category": entry.get("category") or entry.get("categoria"),
        "brand": entry.get("brand") or entry.get("marca"),
        "price_cents": _price_cents(entry),
        "description": entry.get("description") or entry.get("descripcion"),
        "image": image,
        "attributes": attributes,
    }


def seed_catalogue(db: Session, entries: Iterable[Dict]) -> int:
    """
    Validate and upsert catalogue entries (keyed by product name). Entries
    missing required fields are logged and skipped. Commits on success.
    """
    repo = ProductRepository(db)
    written = 0
    try:
        for entry in entries:
            try:
                doc = ProductDocument.model_validate(normalize_entry(entry))
            except ValidationError as e:
                log.warning(f"Skipping invalid catalogue entry {entry!r}: {e.errors()}")
                continue
            repo.create_or_update(**doc.model_dump())
            written += 1
        db.commit()
    except Exception:
        db.rollback()
        raise
    return written
