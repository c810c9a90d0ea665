"""
Gestionnaires d'exceptions de l'application.
- ShopError (erreurs métier): {"error": kind, "detail": message} avec le code porté par l'erreur.
- HTTPException: corps FastAPI standard {"detail": ...}.
- Toute autre exception: journalisée avec un identifiant d'erreur et le request id, 500 générique
  (détail de l'exception renvoyé en développement uniquement).
"""
import logging
import uuid

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from clinic.config import IS_PRODUCTION
from clinic.errors import ShopError
from .middlewares import REQUEST_ID_HEADER

logger = logging.getLogger(__name__)

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ShopError)
    async def shop_error_handler(request: Request, exc: ShopError):
        logger.info("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.kind)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        # Réponse construite hors des middlewares http: reporter l'en-tête X-Request-ID ici
        request_id = getattr(request.state, "request_id", None) or uuid.uuid4().hex
        error_id = uuid.uuid4().hex[:12]
        logger.error(
            "Unhandled error error_id=%s request_id=%s %s %s", error_id, request_id, request.method, request.url.path,
            exc_info=(type(exc), exc, exc.__traceback__),
        )
        content = {"detail": "Internal server error", "error_id": error_id}
        if not IS_PRODUCTION:
            content["error"] = str(exc)
        return JSONResponse(status_code=500, content=content, headers={REQUEST_ID_HEADER: request_id})
