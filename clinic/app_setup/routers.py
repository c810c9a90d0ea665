"""
Registre central des routers.
- API v1: products, cart, checkout
- Contact: /api/contact
- Admin: /admin
- Health: /health, /ready
"""
from fastapi import FastAPI

from clinic.admin.views import router as admin_router
from clinic.cart.views import router as cart_router
from clinic.contact.views import router as contact_router
from clinic.health.router import router as health_router
from clinic.payments.views import router as checkout_router
from clinic.products.views import router as products_router

def register_routers(app: FastAPI) -> None:
    app.include_router(products_router)
    app.include_router(cart_router)
    app.include_router(checkout_router)
    app.include_router(contact_router)
    app.include_router(admin_router)
    app.include_router(health_router)
