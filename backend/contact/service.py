"""
Cas d'usage 'contact': enregistre le message puis notifie l'admin et répond à l'expéditeur.
"""
import logging
from typing import Any, Dict

from backend.infra.mailer import Mailer
from backend.notifications import service as notifications
from backend.utils.errors import UpstreamError

from . import repository
from .models import ContactRequest

logger = logging.getLogger(__name__)

def submit_contact(payload: ContactRequest, mailer: Mailer) -> Dict[str, Any]:
    row = payload.model_dump()
    row["subject"] = row["subject"].strip()
    created = repository.insert_message(row)
    if not created:
        raise UpstreamError("Enregistrement du message impossible")
    contact = {**row, **created}
    notifications.notify_contact_admin(mailer, contact)
    notifications.send_contact_auto_reply(mailer, contact)
    logger.info("contact.submitted id=%s type=%s", created.get("id"), payload.inquiry_type)
    return {"id": created.get("id")}
