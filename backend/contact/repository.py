"""
Accès aux données pour la feature 'contact' (table 'contact_messages').
"""
from typing import Any, Dict, Optional
import logging

import backend.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

def insert_message(row: Dict[str, Any]) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("contact_messages")
            .insert(row)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("contact.repository.insert_message failed inquiry_type=%s", row.get("inquiry_type"))
        return None
