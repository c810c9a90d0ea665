from typing import Any, Dict

from fastapi import APIRouter, HTTPException

from clinic.products import service as products_service

router = APIRouter(prefix="/api/v1/products", tags=["Products API"])

# module clinic.products.views
@router.get("")
def list_products() -> Dict[str, Any]:
    """Catalogue public: produits actifs uniquement."""
    return {"items": products_service.list_catalog()}

@router.get("/{product_id}")
def get_product(product_id: str) -> Dict[str, Any]:
    product = products_service.get_available_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return products_service.to_public(product)
