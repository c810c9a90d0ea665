# module clinic.products.service
"""
Cas d'usage 'products' (Product Store).
- Lecture catalogue: seuls les produits actifs sont exposés au public.
- Écritures admin: validation minimale (nom requis, prix >= 0) puis repository.
- price_of(): conversion stricte du prix en Decimal (source de vérité des montants).
"""
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional
import logging

from clinic.products import repository

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "description", "price", "image", "active")


def price_of(product: Dict[str, Any]) -> Decimal:
    """Prix du produit en Decimal; ValueError si absent, illisible ou négatif."""
    raw = product.get("price")
    try:
        price = Decimal(str(raw))
    except (InvalidOperation, TypeError):
        raise ValueError(f"Invalid price: {raw!r}")
    if not price.is_finite() or price < 0:
        raise ValueError(f"Invalid price: {raw!r}")
    return price


def is_available(product: Optional[Dict[str, Any]]) -> bool:
    return bool(product) and bool(product.get("active"))


def to_public(product: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "id": str(product.get("id") or ""),
        "name": product.get("name") or "",
        "description": product.get("description") or "",
        "price": float(price_of(product)),
        "image": product.get("image") or "",
        "active": bool(product.get("active")),
    }


def list_catalog() -> List[Dict[str, Any]]:
    return [to_public(p) for p in repository.list_products(active_only=True)]


def get_available_product(product_id: str) -> Optional[Dict[str, Any]]:
    product = repository.get_product(product_id)
    return product if is_available(product) else None


def _clean_product_data(data: Dict[str, Any], partial: bool) -> Dict[str, Any]:
    cleaned: Dict[str, Any] = {}
    for field in EDITABLE_FIELDS:
        if field not in data:
            continue
        value = data[field]
        if field == "name":
            value = (value or "").strip()
            if not value:
                raise ValueError("Name is required")
        elif field == "price":
            value = str(price_of({"price": value}))
        elif field in ("description", "image"):
            value = (value or "").strip()
        elif field == "active":
            value = bool(value)
        cleaned[field] = value
    if not partial:
        if "name" not in cleaned:
            raise ValueError("Name is required")
        if "price" not in cleaned:
            raise ValueError("Price is required")
    return cleaned


def create_product(data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    return repository.create_product(_clean_product_data(data, partial=False))


def update_product(product_id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    changes = _clean_product_data(data, partial=True)
    if not changes:
        raise ValueError("No data to update")
    return repository.update_product(product_id, changes)


def toggle_active(product_id: str) -> Optional[Dict[str, Any]]:
    """Inverse le drapeau 'active'. None si le produit n'existe pas ou si l'écriture échoue."""
    product = repository.get_product(product_id)
    if not product:
        return None
    new_state = not bool(product.get("active"))
    logger.info("products.toggle_active id=%s active=%s", product_id, new_state)
    return repository.update_product(product_id, {"active": new_state})


def delete_product(product_id: str) -> bool:
    return repository.delete_product(product_id)
