import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from clinic.admin import service as admin_service
from clinic.utils.rate_limit import optional_rate_limit
from clinic.utils.security import login_admin, logout_admin, require_admin, verify_admin_credentials

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["Admin"])

class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)

class ProductCreate(BaseModel):
    name: str
    price: float = Field(ge=0)
    description: str = ""
    image: str = ""
    active: bool = True

class ProductUpdate(BaseModel):
    name: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0)
    description: Optional[str] = None
    image: Optional[str] = None
    active: Optional[bool] = None

# module clinic.admin.views
@router.post("/login", dependencies=[Depends(optional_rate_limit(times=5, seconds=60))])
def admin_login(req: LoginRequest, request: Request):
    if not verify_admin_credentials(req.username, req.password):
        logger.warning("admin.login refused username=%s", req.username)
        raise HTTPException(status_code=401, detail="Identifiants invalides")
    login_admin(request.session, req.username)
    logger.info("admin.login ok username=%s", req.username)
    return {"ok": True, "username": req.username}

@router.post("/logout")
def admin_logout(request: Request):
    logout_admin(request.session)
    return {"ok": True}

@router.get("/api/me")
def admin_me(admin: dict = Depends(require_admin)):
    return admin

# API JSON: stats dashboard
@router.get("/api/stats")
def admin_stats(admin: dict = Depends(require_admin)):
    return JSONResponse(admin_service.get_stats())

# API JSON: produits
@router.get("/api/products")
def admin_list_products(admin: dict = Depends(require_admin)):
    return JSONResponse({"items": admin_service.list_products()})

@router.post("/api/products", status_code=201)
def admin_create_product(req: ProductCreate, admin: dict = Depends(require_admin)) -> Dict[str, Any]:
    try:
        created = admin_service.create_product(req.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not created:
        raise HTTPException(status_code=400, detail="Création du produit impossible")
    return created

@router.patch("/api/products/{product_id}")
def admin_update_product(product_id: str, req: ProductUpdate, admin: dict = Depends(require_admin)) -> Dict[str, Any]:
    try:
        updated = admin_service.update_product(product_id, req.model_dump(exclude_none=True))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not updated:
        raise HTTPException(status_code=400, detail="Mise à jour du produit impossible")
    return updated

@router.post("/api/products/{product_id}/toggle")
def admin_toggle_product(product_id: str, admin: dict = Depends(require_admin)) -> Dict[str, Any]:
    updated = admin_service.toggle_product(product_id)
    if not updated:
        raise HTTPException(status_code=400, detail="Produit introuvable ou mise à jour impossible")
    return updated

@router.delete("/api/products/{product_id}")
def admin_delete_product(product_id: str, admin: dict = Depends(require_admin)):
    if not admin_service.delete_product(product_id):
        raise HTTPException(status_code=400, detail="Suppression impossible")
    return {"ok": True}

# API JSON: commandes
@router.get("/api/orders")
def admin_list_orders(
    status: Optional[str] = Query(default=None),
    limit: int = Query(default=100, ge=1, le=500),
    admin: dict = Depends(require_admin),
):
    try:
        items = admin_service.list_orders(status=status, limit=limit)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return JSONResponse({"items": items})

@router.get("/api/orders/{order_id}")
def admin_get_order(order_id: str, admin: dict = Depends(require_admin)):
    order = admin_service.get_order(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Commande introuvable")
    return JSONResponse(order)
