"""
Accès aux données pour la feature 'subscriptions' (table 'subscribers', email unique en minuscules).
"""
from datetime import datetime, timezone
from typing import Optional
import logging

import backend.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

def _now() -> str:
    return datetime.now(timezone.utc).isoformat()

def get_subscriber_by_email(email: str) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("subscribers")
            .select("*")
            .eq("email", email)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("subscriptions.repository.get_subscriber_by_email failed")
        return None

def get_subscriber_by_token(token: str) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("subscribers")
            .select("*")
            .eq("verification_token", token)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("subscriptions.repository.get_subscriber_by_token failed")
        return None

def insert_subscriber(*, email: str, source: str, token: str) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("subscribers")
            .insert({
                "email": email,
                "source": source,
                "verification_token": token,
                "is_verified": False,
                "subscribed_at": _now(),
            })
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("subscriptions.repository.insert_subscriber failed source=%s", source)
        return None

def mark_verified(subscriber_id: str, token: str) -> Optional[dict]:
    """
    Marque l'abonné vérifié et consomme le jeton, à condition que le jeton corresponde
    et que l'abonné ne soit pas déjà vérifié. Retourne la ligne mise à jour ou None.
    """
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("subscribers")
            .update({"is_verified": True, "verification_token": None, "verified_at": _now()})
            .eq("id", subscriber_id)
            .eq("verification_token", token)
            .eq("is_verified", False)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("subscriptions.repository.mark_verified failed id=%s", subscriber_id)
        return None

def touch_last_email_sent(subscriber_id: str) -> bool:
    try:
        (
            supabase_client.get_service_supabase()
            .table("subscribers")
            .update({"last_email_sent": _now()})
            .eq("id", subscriber_id)
            .execute()
        )
        return True
    except Exception:
        logger.exception("subscriptions.repository.touch_last_email_sent failed id=%s", subscriber_id)
        return False
