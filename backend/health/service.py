from typing import Any, Dict
import logging

import backend.infra.supabase_client as supabase_client
from backend.config import SUPABASE_URL, SUPABASE_ANON, SUPABASE_SERVICE_KEY

logger = logging.getLogger(__name__)

def health_supabase_info() -> Dict[str, Any]:
    """Présence des variables Supabase + requête minimale sur 'products'."""
    info: Dict[str, Any] = {
        "url_set": bool(SUPABASE_URL),
        "anon_key_set": bool(SUPABASE_ANON),
        "service_key_set": bool(SUPABASE_SERVICE_KEY),
        "connect_ok": False,
    }
    try:
        supabase_client.get_supabase().table("products").select("id").limit(1).execute()
        info["connect_ok"] = True
    except Exception as e:
        logger.warning("health.supabase failed error=%s", type(e).__name__)
        info["error"] = type(e).__name__
    return info
