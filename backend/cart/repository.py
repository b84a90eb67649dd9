"""
Accès aux données pour la feature 'cart' (table 'carts', une ligne par session).

Comme pour le catalogue, les erreurs de stockage sont typées (NetworkError / ServerError):
un panier illisible ne doit jamais être confondu avec un panier absent.
L'écriture est conditionnée par la colonne 'version' (concurrence optimiste).
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import logging

import httpx
from postgrest.exceptions import APIError

import backend.infra.supabase_client as supabase_client
from backend.utils.errors import NetworkError, ServerError

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"

def load_cart(cart_id: str) -> Optional[Dict[str, Any]]:
    """
    Charge le panier sérialisé {items, total, version} d'une session.
    - Retourne None uniquement si aucune ligne n'existe.
    - Lève NetworkError / ServerError si le stockage est indisponible.
    """
    if not cart_id:
        return None
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("carts")
            .select("items, total, version")
            .eq("cart_id", cart_id)
            .limit(1)
            .execute()
        )
    except httpx.TransportError as e:
        logger.exception("cart.repository.load_cart unreachable cart_id=%s", cart_id)
        raise NetworkError(f"Stockage des paniers injoignable: {type(e).__name__}")
    except APIError:
        logger.exception("cart.repository.load_cart failed cart_id=%s", cart_id)
        raise ServerError("Lecture du panier impossible")
    rows = res.data or []
    return rows[0] if rows else None

def save_cart(cart_id: str, payload: Dict[str, Any], version: Optional[int] = None) -> bool:
    """
    Enregistre le panier de la session.
    - version None: première écriture (insert); sinon update conditionné par la version lue.
    - Retourne False si une autre requête a écrit entre-temps (rien n'est écrit).
    - Lève NetworkError / ServerError si le stockage est indisponible.
    """
    row = {
        "items": payload.get("items") or [],
        "total": payload.get("total") or "0.00",
        "updated_at": datetime.now(timezone.utc).isoformat(),
    }
    table = supabase_client.get_service_supabase().table("carts")
    try:
        if version is None:
            table.insert({**row, "cart_id": cart_id, "version": 1}).execute()
            return True
        res = (
            table.update({**row, "version": version + 1})
            .eq("cart_id", cart_id)
            .eq("version", version)
            .execute()
        )
        return bool(res.data)
    except httpx.TransportError as e:
        logger.exception("cart.repository.save_cart unreachable cart_id=%s", cart_id)
        raise NetworkError(f"Stockage des paniers injoignable: {type(e).__name__}")
    except APIError as e:
        if getattr(e, "code", None) == UNIQUE_VIOLATION:
            logger.warning("cart.repository.save_cart concurrent insert cart_id=%s", cart_id)
            return False
        logger.exception("cart.repository.save_cart failed cart_id=%s", cart_id)
        raise ServerError("Enregistrement du panier impossible")
