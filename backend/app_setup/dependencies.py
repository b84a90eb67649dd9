"""
Dépendances FastAPI vers les clients construits au démarrage (voir lifespan.build_services).
Les tests remplacent ces fonctions via app.dependency_overrides.
"""
from fastapi import Request

from backend.utils.errors import ConfigurationError


def _state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise ConfigurationError(f"Service '{name}' non initialisé")
    return value


def get_mailer(request: Request):
    return _state(request, "mailer")


def get_payment_service(request: Request):
    return _state(request, "payment_service")


def get_stripe_gateway(request: Request):
    return _state(request, "stripe_gateway")


def get_catalog(request: Request):
    return _state(request, "catalog")
