# module backend.contact.views
from fastapi import APIRouter, Depends

from backend.app_setup.dependencies import get_mailer
from backend.infra.mailer import Mailer
from backend.utils.rate_limit import optional_rate_limit

from . import service as contact_service
from .models import ContactRequest

router = APIRouter(prefix="/api/v1/contact", tags=["Contact API"])

@router.post("", status_code=201, dependencies=[Depends(optional_rate_limit(times=5, seconds=60))])
def submit_contact(payload: ContactRequest, mailer: Mailer = Depends(get_mailer)):
    result = contact_service.submit_contact(payload, mailer)
    return {"success": True, "message": "Votre message a bien été envoyé", **result}
