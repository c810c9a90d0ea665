"""
Factory d'application utilisée par les entrypoints (clinic.asgi, python -m clinic, tests).
"""
from fastapi import FastAPI

from clinic import config
from .exceptions import register_exception_handlers
from .lifespan import lifespan
from .middlewares import register_basic_middlewares, register_no_cache_middleware, register_request_id_middleware
from .routers import register_routers
from .security import register_security_middleware

def check_environment() -> None:
    """En production, refuse de démarrer avec des variables requises absentes ou d'exemple."""
    if not config.IS_PRODUCTION:
        return
    report = config.validate_environment()
    problems = report["missing"] + report["placeholders"]
    if problems:
        raise RuntimeError(f"Missing or placeholder environment variables: {', '.join(problems)}")

def create_app() -> FastAPI:
    """
    Construit l'app FastAPI avec le lifespan et enregistre:
      - sécurité, no-cache /admin, request-id puis middlewares de base (session, CORS, hosts)
      - gestionnaires d'exceptions
      - tous les routers (API, admin, health)
    RuntimeError en production si l'environnement est incomplet (cf. check_environment).
    """
    check_environment()
    app = FastAPI(
        title="Clinic Website",
        version=config.APP_VERSION,
        lifespan=lifespan,
        docs_url=None if config.IS_PRODUCTION else "/docs",
        redoc_url=None,
    )
    register_security_middleware(app)
    register_no_cache_middleware(app)
    register_request_id_middleware(app)
    register_basic_middlewares(app)
    register_exception_handlers(app)
    register_routers(app)
    return app
