# module backend.booking.views
from fastapi import APIRouter, Depends

from backend.app_setup.dependencies import get_mailer
from backend.infra.mailer import Mailer
from backend.utils.rate_limit import optional_rate_limit

from . import service as booking_service
from .models import BookingRequest

router = APIRouter(prefix="/api/v1/booking", tags=["Booking API"])

@router.get("/packages")
def list_packages():
    packages = []
    for name in booking_service.PACKAGE_PRICES:
        total, deposit = booking_service.quote_package(name)
        packages.append({"type": name, "price": str(total), "deposit": str(deposit)})
    return {"packages": packages}

@router.post("", status_code=201, dependencies=[Depends(optional_rate_limit(times=5, seconds=60))])
def submit_booking(payload: BookingRequest, mailer: Mailer = Depends(get_mailer)):
    """
    Enregistre une demande de réservation.
    - 201: {success, booking_id, total_amount, deposit_amount, status}
    - 400: formule inconnue ou champ manquant
    """
    return {"success": True, **booking_service.submit_booking(payload, mailer)}

@router.get("/{booking_id}")
def get_booking(booking_id: str):
    return booking_service.get_booking_status(booking_id)
