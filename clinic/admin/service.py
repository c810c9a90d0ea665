# module clinic.admin.service

from typing import Any, Dict, List, Optional
import logging

from clinic.orders import repository as orders_repo
from clinic.orders.repository import STATUSES, STATUS_PAID
from clinic.products import repository as products_repo
from clinic.products import service as products_service

logger = logging.getLogger(__name__)

def get_stats() -> Dict[str, Any]:
    return {
        "products_count": products_repo.count_products(),
        "orders_count": orders_repo.count_orders(),
        "paid_orders_count": orders_repo.count_orders(STATUS_PAID),
        "paid_revenue": orders_repo.sum_paid_amount(),
    }

def list_products() -> List[dict]:
    # L'admin voit aussi les produits désactivés
    return products_repo.list_products(active_only=False)

def create_product(data: Dict[str, Any]) -> Optional[dict]:
    return products_service.create_product(data)

def update_product(product_id: str, data: Dict[str, Any]) -> Optional[dict]:
    return products_service.update_product(product_id, data)

def toggle_product(product_id: str) -> Optional[dict]:
    return products_service.toggle_active(product_id)

def delete_product(product_id: str) -> bool:
    return products_service.delete_product(product_id)

def list_orders(status: Optional[str] = None, limit: int = 100) -> List[dict]:
    """Commandes récentes; ValueError si le filtre de statut est inconnu."""
    if status and status not in STATUSES:
        raise ValueError(f"Unknown status: {status}")
    return orders_repo.list_orders(limit=limit, status=status)

def get_order(order_id: str) -> Optional[dict]:
    return orders_repo.get_order(order_id)
