"""
Accès aux données pour la feature 'booking' (table 'bookings').
"""
from typing import Any, Dict, Optional
import logging

import backend.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

def insert_booking(row: Dict[str, Any]) -> Optional[dict]:
    """
    Insère une demande de réservation via service-role.
    - Retourne la ligne créée (incluant id), ou None en cas d'erreur.
    """
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("bookings")
            .insert(row)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("booking.repository.insert_booking failed email=%s", row.get("email"))
        return None

def get_booking(booking_id: str) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("bookings")
            .select("id, status, deposit_paid, total_amount, deposit_amount, event_date, package_type")
            .eq("id", booking_id)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("booking.repository.get_booking failed id=%s", booking_id)
        return None
