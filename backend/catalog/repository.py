"""
Accès aux données pour la feature 'catalog' (table 'products' + RPC decrement_product_stock).

Contrairement aux autres repositories, les erreurs sont typées plutôt qu'avalées:
un catalogue injoignable (NetworkError) se distingue d'une réponse en erreur (ServerError).
"""
from typing import Any, Dict, List, Optional
import logging

import httpx
from postgrest.exceptions import APIError

import backend.infra.supabase_client as supabase_client
from backend.utils.errors import NetworkError, ServerError

logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = "id, name, description, price, stock, image, images, sizes, category"

def fetch_products() -> List[Dict[str, Any]]:
    try:
        res = (
            supabase_client.get_supabase()
            .table("products")
            .select(PRODUCT_COLUMNS)
            .order("name")
            .execute()
        )
        return res.data or []
    except httpx.TransportError as e:
        logger.exception("catalog.repository.fetch_products unreachable")
        raise NetworkError(f"Catalogue injoignable: {type(e).__name__}")
    except APIError as e:
        logger.exception("catalog.repository.fetch_products failed code=%s", getattr(e, "code", None))
        raise ServerError("Le catalogue a répondu en erreur")

def get_product(product_id: str) -> Optional[Dict[str, Any]]:
    try:
        res = (
            supabase_client.get_supabase()
            .table("products")
            .select(PRODUCT_COLUMNS)
            .eq("id", product_id)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except httpx.TransportError as e:
        logger.exception("catalog.repository.get_product unreachable id=%s", product_id)
        raise NetworkError(f"Catalogue injoignable: {type(e).__name__}")
    except APIError:
        logger.exception("catalog.repository.get_product failed id=%s", product_id)
        raise ServerError("Le catalogue a répondu en erreur")

def decrement_stock(product_id: str, quantity: int) -> Optional[int]:
    """
    Décrément atomique et conditionnel (stock >= quantity) côté Postgres.
    Retourne le nouveau stock, ou None si le stock était insuffisant / produit inconnu.
    """
    try:
        res = (
            supabase_client.get_service_supabase()
            .rpc("decrement_product_stock", {"p_product_id": product_id, "p_quantity": int(quantity)})
            .execute()
        )
    except httpx.TransportError as e:
        logger.exception("catalog.repository.decrement_stock unreachable id=%s", product_id)
        raise NetworkError(f"Catalogue injoignable: {type(e).__name__}")
    except APIError:
        logger.exception("catalog.repository.decrement_stock failed id=%s qty=%s", product_id, quantity)
        raise ServerError("La mise à jour du stock a échoué")
    return _rpc_stock(res.data, "decrement_product_stock")

def _rpc_stock(data: Any, fn: str) -> Optional[int]:
    if isinstance(data, list):
        data = data[0] if data else None
    if isinstance(data, dict):
        data = data.get(fn, data.get("stock"))
    return int(data) if data is not None else None

def increment_stock(product_id: str, quantity: int) -> Optional[int]:
    """Restitue `quantity` unités (RPC increment_product_stock); None si produit inconnu."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .rpc("increment_product_stock", {"p_product_id": product_id, "p_quantity": int(quantity)})
            .execute()
        )
    except httpx.TransportError as e:
        logger.exception("catalog.repository.increment_stock unreachable id=%s", product_id)
        raise NetworkError(f"Catalogue injoignable: {type(e).__name__}")
    except APIError:
        logger.exception("catalog.repository.increment_stock failed id=%s qty=%s", product_id, quantity)
        raise ServerError("La mise à jour du stock a échoué")
    return _rpc_stock(res.data, "increment_product_stock")
