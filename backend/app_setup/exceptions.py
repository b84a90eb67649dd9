"""
Gestionnaires d'exceptions utilisés par la factory.
- AppError: statut porté par l'erreur; message exposé pour validation/introuvable/conflit,
  message générique (et log masqué) pour les erreurs fournisseur et de configuration.
- RequestValidationError: 400 avec le détail des champs.
- HTTPException: JSON {"detail": ...}.
"""
import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from backend.utils.errors import AppError, redact_secrets

logger = logging.getLogger(__name__)

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if not exc.expose:
            logger.error(
                "%s %s failed error=%s code=%s detail=%s",
                request.method, request.url.path, type(exc).__name__, exc.code, redact_secrets(exc.message),
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "detail": exc.client_message, "code": exc.code},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"success": False, "detail": "Requête invalide", "code": "invalid", "errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"success": False, "detail": exc.detail}, headers=getattr(exc, "headers", None))
