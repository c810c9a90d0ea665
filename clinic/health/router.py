from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from clinic import config
from clinic.contact.service import mail_ready
from clinic.health.service import database_info, database_ready, health_info
from clinic.utils.rate_limit import rate_limit_health_info

router = APIRouter(tags=["Health"])

@router.get("/health")
def health_root():
    return health_info()

@router.get("/ready")
def ready(request: Request):
    """200 si la base répond (et le SMTP quand il est configuré), 503 sinon."""
    services = {"database": "operational" if database_ready() else "failed"}
    if config.mail_configured():
        services["mail"] = "operational" if mail_ready() else "failed"
    ok = all(v == "operational" for v in services.values())
    body = {
        "status": "ready" if ok else "not ready",
        "services": services,
        "rate_limit": rate_limit_health_info(request),
    }
    return JSONResponse(body, status_code=200 if ok else 503)

@router.get("/health/database")
def health_database():
    return JSONResponse(database_info())
