"""
Cas d'usage 'booking': tarif fixe par formule, acompte de 50 %, enregistrement puis notifications.
"""
from decimal import Decimal
from typing import Any, Dict, Tuple
import logging

from backend.cart.models import to_money
from backend.infra.mailer import Mailer
from backend.notifications import service as notifications
from backend.utils.errors import NotFoundError, UpstreamError, ValidationError

from . import repository
from .models import BookingRequest, BookingStatus

logger = logging.getLogger(__name__)

PACKAGE_PRICES = {
    "Guest Speaker": Decimal("500"),
    "15-minute Performance": Decimal("500"),
    "30-minute Performance": Decimal("1000"),
    "60-minute Performance": Decimal("2000"),
    "Radio/Internet VoiceOver": Decimal("500"),
    "Custom Produced Instrumental": Decimal("1500"),
}
DEPOSIT_RATE = Decimal("0.5")

def quote_package(package_type: str) -> Tuple[Decimal, Decimal]:
    """Retourne (total, acompte) pour une formule; ValidationError si la formule est inconnue."""
    price = PACKAGE_PRICES.get((package_type or "").strip())
    if price is None:
        raise ValidationError(f"Formule inconnue: {package_type}")
    total = to_money(price)
    return total, to_money(total * DEPOSIT_RATE)

def submit_booking(payload: BookingRequest, mailer: Mailer) -> Dict[str, Any]:
    """
    Valide la formule, calcule total/acompte, enregistre la demande ('pending', acompte non payé),
    puis notifie l'admin et le client. Les e-mails n'annulent jamais l'enregistrement.
    """
    total, deposit = quote_package(payload.package_type)
    row = {
        **payload.model_dump(mode="json"),
        "package_price": str(total),
        "total_amount": str(total),
        "deposit_amount": str(deposit),
        "status": BookingStatus.PENDING.value,
        "deposit_paid": False,
    }
    created = repository.insert_booking(row)
    if not created:
        raise UpstreamError("Enregistrement de la réservation impossible")

    booking = {**row, **created}
    notifications.notify_booking_admin(mailer, booking)
    notifications.notify_booking_client(mailer, booking)
    logger.info("booking.submitted id=%s package=%s", created.get("id"), payload.package_type)
    return {
        "booking_id": created.get("id"),
        "total_amount": str(total),
        "deposit_amount": str(deposit),
        "status": BookingStatus.PENDING.value,
    }

def get_booking_status(booking_id: str) -> Dict[str, Any]:
    booking = repository.get_booking(booking_id)
    if not booking:
        raise NotFoundError("Réservation introuvable")
    return {
        "booking_id": booking.get("id"),
        "status": booking.get("status"),
        "deposit_paid": bool(booking.get("deposit_paid")),
    }
