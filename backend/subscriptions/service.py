"""
Cas d'usage 'subscriptions': inscription avec jeton de vérification à usage unique.
"""
import logging
import secrets
from typing import Any, Dict, Optional

from backend.infra.mailer import Mailer
from backend.notifications import service as notifications
from backend.utils.errors import ConflictError, NotFoundError, UpstreamError, ValidationError

from . import repository

logger = logging.getLogger(__name__)

def new_token() -> str:
    return secrets.token_hex(32)

def subscribe(email: str, source: str, mailer: Mailer) -> Dict[str, Any]:
    """
    - Abonné vérifié: ConflictError
    - Abonné non vérifié: renvoi du MÊME jeton
    - Nouvel abonné: nouveau jeton, enregistrement non vérifié, e-mail de vérification
    """
    email = (email or "").strip().lower()
    existing = repository.get_subscriber_by_email(email)
    if existing:
        if existing.get("is_verified"):
            raise ConflictError("Cette adresse est déjà inscrite")
        token = existing.get("verification_token")
        if not token:
            raise ConflictError("Cette adresse est déjà inscrite")
        if notifications.send_verification_email(mailer, email, token):
            repository.touch_last_email_sent(existing["id"])
        logger.info("subscriptions.subscribe resent id=%s", existing.get("id"))
        return {"status": "verification_resent"}

    token = new_token()
    created = repository.insert_subscriber(email=email, source=source, token=token)
    if not created:
        raise UpstreamError("Enregistrement de l'inscription impossible")
    if notifications.send_verification_email(mailer, email, token):
        repository.touch_last_email_sent(created["id"])
    logger.info("subscriptions.subscribe created id=%s source=%s", created.get("id"), source)
    return {"status": "verification_sent"}

def verify_email(token: Optional[str], mailer: Mailer) -> Dict[str, Any]:
    """
    Consomme un jeton de vérification puis envoie l'e-mail de bienvenue.
    Un jeton absent, inconnu ou déjà consommé ne modifie aucun état.
    """
    token = (token or "").strip()
    if not token:
        raise ValidationError("Jeton de vérification manquant")
    subscriber = repository.get_subscriber_by_token(token)
    if not subscriber:
        raise NotFoundError("Jeton de vérification invalide ou expiré")
    if subscriber.get("is_verified"):
        raise ConflictError("Adresse déjà vérifiée")
    updated = repository.mark_verified(subscriber["id"], token)
    if not updated:
        raise NotFoundError("Jeton de vérification invalide ou expiré")
    if notifications.send_welcome_email(mailer, subscriber["email"]):
        repository.touch_last_email_sent(subscriber["id"])
    logger.info("subscriptions.verified id=%s", subscriber.get("id"))
    return {"status": "verified", "email": subscriber["email"]}
