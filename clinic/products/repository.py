from typing import Any, Dict, Iterable, List, Optional
import logging
from datetime import datetime, timezone
from uuid import uuid4

import clinic.infra.supabase_client as supabase_client
from clinic.config import PRODUCTS_TABLE

logger = logging.getLogger(__name__)

# module clinic.products.repository
# Lectures: les erreurs base sont journalisées puis propagées (pas de "produit introuvable" masquant une panne).
# Écritures admin: journalisées, retour None/False (l'API admin répond 400).

def _now() -> str:
    return datetime.now(timezone.utc).isoformat()

def list_products(active_only: bool = True) -> List[dict]:
    """
    Liste les produits (table 'products'), du plus récent au plus ancien.
    - active_only: exclut les produits désactivés (catalogue public).
    """
    try:
        query = supabase_client.get_supabase().table(PRODUCTS_TABLE).select("*")
        if active_only:
            query = query.eq("active", True)
        res = query.order("created_at", desc=True).execute()
        return res.data or []
    except Exception:
        logger.exception("products.repository.list_products failed active_only=%s", active_only)
        raise

def get_product(product_id: str) -> Optional[dict]:
    """Retourne le produit ou None s'il n'existe pas (actif ou non)."""
    if not product_id:
        return None
    try:
        res = (
            supabase_client.get_supabase()
            .table(PRODUCTS_TABLE)
            .select("*")
            .eq("id", str(product_id))
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("products.repository.get_product failed id=%s", product_id)
        raise

def get_products_map(ids: Iterable[str]) -> Dict[str, dict]:
    """
    Retourne un dict {id: produit} pour une liste d'IDs (une seule requête).
    Les IDs inconnus sont simplement absents du résultat.
    """
    id_list = [str(i) for i in ids if i]
    if not id_list:
        return {}
    try:
        res = (
            supabase_client.get_supabase()
            .table(PRODUCTS_TABLE)
            .select("*")
            .in_("id", id_list)
            .execute()
        )
        return {str(p.get("id")): p for p in (res.data or [])}
    except Exception:
        logger.exception("products.repository.get_products_map failed ids=%s", id_list)
        raise

def create_product(data: Dict[str, Any]) -> Optional[dict]:
    row = dict(data)
    row.setdefault("id", str(uuid4()))
    row.setdefault("active", True)
    row["created_at"] = row["updated_at"] = _now()
    try:
        res = supabase_client.get_service_supabase().table(PRODUCTS_TABLE).insert(row).execute()
        rows = getattr(res, "data", None) or []
        if isinstance(rows, list) and rows:
            return rows[0]
        return row
    except Exception:
        logger.exception("products.repository.create_product failed data=%s", data)
        return None

def update_product(product_id: str, data: Dict[str, Any]) -> Optional[dict]:
    changes = dict(data)
    changes["updated_at"] = _now()
    try:
        res = (
            supabase_client.get_service_supabase()
            .table(PRODUCTS_TABLE)
            .update(changes)
            .eq("id", str(product_id))
            .execute()
        )
        rows = getattr(res, "data", None) or []
        if isinstance(rows, list) and rows:
            return rows[0]
        return None
    except Exception:
        logger.exception("products.repository.update_product failed id=%s data=%s", product_id, data)
        return None

def delete_product(product_id: str) -> bool:
    try:
        supabase_client.get_service_supabase().table(PRODUCTS_TABLE).delete().eq("id", str(product_id)).execute()
        return True
    except Exception:
        logger.exception("products.repository.delete_product failed id=%s", product_id)
        return False

def count_products() -> int:
    try:
        res = supabase_client.get_service_supabase().table(PRODUCTS_TABLE).select("id", count="exact").execute()
        if getattr(res, "count", None) is not None:
            return int(res.count)
        return len(res.data or [])
    except Exception:
        logger.exception("products.repository.count_products failed")
        return 0
