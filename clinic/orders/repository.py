"""
Accès aux données pour le registre des commandes (table 'orders').
Écritures via le client service-role: une commande doit survivre à la session qui l'a créée.
"""
from typing import Any, Dict, List, Optional
import logging
from datetime import datetime, timezone

import clinic.infra.supabase_client as supabase_client
from clinic.config import ORDERS_TABLE

logger = logging.getLogger(__name__)

STATUS_CREATED = "created"
STATUS_PAID = "paid"
STATUS_FAILED = "failed"
STATUSES = (STATUS_CREATED, STATUS_PAID, STATUS_FAILED)

# module clinic.orders.repository
def _now() -> str:
    return datetime.now(timezone.utc).isoformat()

def insert_order(order: Dict[str, Any]) -> dict:
    """
    Insère une commande (une seule écriture atomique, document complet).
    Les erreurs base sont propagées: l'orchestrateur ne doit pas croire à une commande fantôme.
    """
    row = dict(order)
    row["created_at"] = row["updated_at"] = _now()
    try:
        res = supabase_client.get_service_supabase().table(ORDERS_TABLE).insert(row).execute()
        rows = getattr(res, "data", None) or []
        return rows[0] if isinstance(rows, list) and rows else row
    except Exception:
        logger.exception("orders.repository.insert_order failed id=%s", order.get("id"))
        raise

def get_order(order_id: str) -> Optional[dict]:
    if not order_id:
        return None
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(ORDERS_TABLE)
            .select("*")
            .eq("id", str(order_id))
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("orders.repository.get_order failed id=%s", order_id)
        raise

def get_order_by_gateway_order_id(gateway_order_id: str) -> Optional[dict]:
    if not gateway_order_id:
        return None
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(ORDERS_TABLE)
            .select("*")
            .eq("gateway_order_id", gateway_order_id)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("orders.repository.get_order_by_gateway_order_id failed gateway_order_id=%s", gateway_order_id)
        raise

def update_order(order_id: str, changes: Dict[str, Any], expected_status: Optional[str] = None) -> Optional[dict]:
    """
    Met à jour une commande.
    - expected_status: n'écrit que si le statut courant correspond (transition conditionnelle).
    Retour: la ligne mise à jour, ou None si aucune ligne ne correspond.
    """
    data = dict(changes)
    data["updated_at"] = _now()
    try:
        query = (
            supabase_client.get_service_supabase()
            .table(ORDERS_TABLE)
            .update(data)
            .eq("id", str(order_id))
        )
        if expected_status:
            query = query.eq("status", expected_status)
        res = query.execute()
        rows = getattr(res, "data", None) or []
        return rows[0] if isinstance(rows, list) and rows else None
    except Exception:
        logger.exception("orders.repository.update_order failed id=%s changes=%s", order_id, changes)
        raise

def list_orders(limit: int = 100, status: Optional[str] = None) -> List[dict]:
    """Commandes pour l'admin, les plus récentes d'abord."""
    try:
        query = supabase_client.get_service_supabase().table(ORDERS_TABLE).select("*")
        if status:
            query = query.eq("status", status)
        res = query.order("created_at", desc=True).limit(limit).execute()
        return res.data or []
    except Exception:
        logger.exception("orders.repository.list_orders failed status=%s", status)
        return []

def count_orders(status: Optional[str] = None) -> int:
    try:
        query = supabase_client.get_service_supabase().table(ORDERS_TABLE).select("id", count="exact")
        if status:
            query = query.eq("status", status)
        res = query.execute()
        if getattr(res, "count", None) is not None:
            return int(res.count)
        return len(res.data or [])
    except Exception:
        logger.exception("orders.repository.count_orders failed status=%s", status)
        return 0

def sum_paid_amount() -> float:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(ORDERS_TABLE)
            .select("amount")
            .eq("status", STATUS_PAID)
            .execute()
        )
        return float(sum(float(r.get("amount") or 0) for r in (res.data or [])))
    except Exception:
        logger.exception("orders.repository.sum_paid_amount failed")
        return 0.0
