# module backend.subscriptions.views
from typing import Optional

from fastapi import APIRouter, Depends

from backend.app_setup.dependencies import get_mailer
from backend.infra.mailer import Mailer
from backend.utils.rate_limit import optional_rate_limit

from . import service as subscriptions_service
from .models import SubscribeRequest

router = APIRouter(prefix="/api/v1", tags=["Newsletter API"])

@router.post("/subscribe", status_code=201, dependencies=[Depends(optional_rate_limit(times=5, seconds=60))])
def subscribe(payload: SubscribeRequest, mailer: Mailer = Depends(get_mailer)):
    result = subscriptions_service.subscribe(payload.email, payload.source, mailer)
    return {
        "success": True,
        "message": "Vérifiez votre boîte mail pour confirmer votre inscription",
        **result,
    }

@router.get("/verify-email", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def verify_email(token: Optional[str] = None, mailer: Mailer = Depends(get_mailer)):
    result = subscriptions_service.verify_email(token, mailer)
    return {"success": True, "message": "Adresse e-mail confirmée", **result}
