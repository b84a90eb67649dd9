"""
Factory d'application pour les entrypoints (ex: backend.asgi).
Ordonne les étapes d'initialisation de manière lisible et testable.
"""
from fastapi import FastAPI

from backend.config import ARTIST_NAME, COOKIE_SECURE
from .lifespan import lifespan
from .middlewares import register_basic_middlewares, register_no_cache_middleware, register_force_https_middleware
from .security import register_security_middleware
from .exceptions import register_exception_handlers
from .routers import register_routers

def create_app() -> FastAPI:
    """
    Construit l'app FastAPI avec le lifespan et enregistre:
      - middlewares de base, sécurité, no-cache
      - gestionnaires d'exceptions
      - tous les routers (API v1, health)
      - redirection HTTPS en dernier (exécutée en premier) lorsque COOKIE_SECURE
    """
    app = FastAPI(title=f"{ARTIST_NAME} API", lifespan=lifespan)
    register_basic_middlewares(app)
    register_security_middleware(app)
    register_no_cache_middleware(app)
    register_exception_handlers(app)
    register_routers(app)
    if COOKIE_SECURE:
        register_force_https_middleware(app)
    return app
