# module clinic.health.service
from datetime import datetime, timezone
from typing import Any, Dict
from urllib.parse import urlparse
import logging
import socket
import time

from clinic import config
import clinic.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

_STARTED_AT = time.monotonic()

def uptime_seconds() -> float:
    return round(time.monotonic() - _STARTED_AT, 3)

def health_info() -> Dict[str, Any]:
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": uptime_seconds(),
        "environment": config.APP_ENV,
        "version": config.APP_VERSION,
    }

def _check_table(client, name: str) -> Dict[str, Any]:
    try:
        res = client.table(name).select("id").limit(1).execute()
        return {"ok": True, "rows": len(res.data or [])}
    except Exception as e:
        return {"ok": False, "error": str(e)}

def database_ready() -> bool:
    try:
        client = supabase_client.get_service_supabase()
        client.table(config.PRODUCTS_TABLE).select("id").limit(1).execute()
        return True
    except Exception as e:
        logger.warning("health.database_ready failed: %s", e)
        return False

def database_info() -> Dict[str, Any]:
    """Diagnostic Supabase: résolution DNS de l'hôte puis sonde de chaque table."""
    parsed = urlparse(config.SUPABASE_URL) if config.SUPABASE_URL else None
    hostname = parsed.hostname if parsed else None
    dns_ok = None
    dns_error = None
    if hostname:
        try:
            socket.getaddrinfo(hostname, 443)
            dns_ok = True
        except OSError as e:
            dns_ok = False
            dns_error = str(e)

    info: Dict[str, Any] = {
        "supabase_url": config.SUPABASE_URL,
        "hostname": hostname,
        "dns_ok": dns_ok,
        "dns_error": dns_error,
        "connect_ok": False,
        "error": None,
        "tables": {},
    }
    try:
        client = supabase_client.get_service_supabase()
        for t in (config.PRODUCTS_TABLE, config.ORDERS_TABLE):
            info["tables"][t] = _check_table(client, t)
        info["connect_ok"] = True
    except Exception as e:
        info["error"] = str(e)
    return info
