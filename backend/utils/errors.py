"""
Taxonomie d'erreurs applicatives.

- ValidationError (400), NotFoundError (404), ConflictError (409): messages montrés tels quels au client.
- UpstreamError (502) et ses variantes NetworkError / ServerError: échec d'un fournisseur externe.
- ConfigurationError (500): variable d'environnement requise absente ou invalide.
Les erreurs non exposées (upstream/config) sont journalisées après masquage des secrets
(redact_secrets) et remplacées par un message générique côté client.
"""
import base64
import re
from typing import Iterable, Optional

from backend import config


class AppError(Exception):
    status_code = 500
    code = "internal_error"
    public_message = "Une erreur interne est survenue"
    expose = False

    def __init__(self, message: Optional[str] = None, *, code: Optional[str] = None):
        self.message = message or self.public_message
        super().__init__(self.message)
        if code:
            self.code = code

    @property
    def client_message(self) -> str:
        return self.message if self.expose else self.public_message


class ValidationError(AppError):
    status_code = 400
    code = "invalid"
    public_message = "Requête invalide"
    expose = True


class NotFoundError(AppError):
    status_code = 404
    code = "not_found"
    public_message = "Ressource introuvable"
    expose = True


class ConflictError(AppError):
    status_code = 409
    code = "conflict"
    public_message = "Conflit avec l'état actuel"
    expose = True


class UpstreamError(AppError):
    status_code = 502
    code = "upstream_error"
    public_message = "Service externe indisponible, veuillez réessayer plus tard"


class NetworkError(UpstreamError):
    code = "network_error"


class ServerError(UpstreamError):
    code = "server_error"


class ConfigurationError(AppError):
    status_code = 500
    code = "configuration_error"
    public_message = "Service temporairement indisponible"


_TOKEN_PATTERNS = [
    re.compile(r"\b(sk|rk|whsec)_(test|live)?_?[A-Za-z0-9]+"),
    re.compile(r"(?i)\b(bearer|basic)\s+[A-Za-z0-9._~+/=-]+"),
]


def _configured_secrets() -> list:
    values = [
        config.STRIPE_SECRET_KEY,
        config.STRIPE_WEBHOOK_SECRET,
        config.PAYPAL_CLIENT_SECRET,
        config.SUPABASE_SERVICE_KEY,
        config.EMAIL_PASS,
        config.CRYPTO_WEBHOOK_SECRET,
    ]
    if config.PAYPAL_CLIENT_ID and config.PAYPAL_CLIENT_SECRET:
        pair = f"{config.PAYPAL_CLIENT_ID}:{config.PAYPAL_CLIENT_SECRET}".encode("utf-8")
        values.append(base64.b64encode(pair).decode("ascii"))
    return [v for v in values if v]


def redact_secrets(text: str, secrets: Optional[Iterable[str]] = None) -> str:
    """
    Masque les secrets connus (clés Stripe/PayPal, mot de passe SMTP, clé service Supabase)
    ainsi que les jetons ressemblant à des clés API ou en-têtes d'authentification.
    """
    out = str(text or "")
    for secret in list(secrets or []) + _configured_secrets():
        if secret:
            out = out.replace(secret, "***")
    for pattern in _TOKEN_PATTERNS:
        out = pattern.sub("***", out)
    return out
