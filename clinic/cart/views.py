import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field

from clinic.cart import service as cart_service
from clinic.utils.rate_limit import optional_rate_limit

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/cart", tags=["Cart API"])

class AddItemRequest(BaseModel):
    product_id: str = Field(min_length=1)
    quantity: int = Field(default=1, ge=1)

class UpdateItemRequest(BaseModel):
    quantity: int = Field(ge=0)

# module clinic.cart.views
@router.get("")
def view_cart(request: Request) -> Dict[str, Any]:
    """Panier enrichi (nom/prix/image courants, sous-totaux, total)."""
    return cart_service.view(request.session).to_dict()

@router.post("/items", dependencies=[Depends(optional_rate_limit(times=30, seconds=60))])
def add_item(req: AddItemRequest, request: Request) -> Dict[str, Any]:
    count = cart_service.add(request.session, req.product_id, req.quantity)
    return {"ok": True, "count": count}

@router.patch("/items/{product_id}")
def update_item(product_id: str, req: UpdateItemRequest, request: Request) -> Dict[str, Any]:
    count = cart_service.update(request.session, product_id, req.quantity)
    return {"ok": True, "count": count}

@router.delete("/items/{product_id}")
def remove_item(product_id: str, request: Request) -> Dict[str, Any]:
    count = cart_service.remove(request.session, product_id)
    return {"ok": True, "count": count}

@router.delete("")
def clear_cart(request: Request) -> Dict[str, Any]:
    cart_service.clear(request.session)
    return {"ok": True, "count": 0}
