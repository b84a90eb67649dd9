# module backend.payments.repository
"""
Accès aux données pour la feature 'payments' (tables 'orders' et 'crypto_payments').
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import logging

import backend.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

def _now() -> str:
    return datetime.now(timezone.utc).isoformat()

def insert_crypto_payment(record: Dict[str, Any]) -> Optional[dict]:
    """
    Enregistre un paiement crypto 'pending' (référence, adresse, montants).
    - Retourne la ligne créée, ou None en cas d'erreur.
    """
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("crypto_payments")
            .insert({**record, "status": "pending", "created_at": _now()})
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("payments.repository.insert_crypto_payment failed reference=%s", record.get("reference"))
        return None

def get_crypto_payment(reference: str) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("crypto_payments")
            .select("*")
            .eq("reference", reference)
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("payments.repository.get_crypto_payment failed reference=%s", reference)
        return None

def settle_crypto_payment(reference: str, status: str, tx_hash: Optional[str] = None) -> Optional[dict]:
    """
    Passe un paiement crypto de 'pending' à `status` (confirmed|failed).
    La condition status='pending' rend l'opération idempotente: None si déjà réglé ou inconnu.
    """
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("crypto_payments")
            .update({"status": status, "tx_hash": tx_hash, "settled_at": _now()})
            .eq("reference", reference)
            .eq("status", "pending")
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("payments.repository.settle_crypto_payment failed reference=%s", reference)
        return None

def insert_order(order: Dict[str, Any]) -> Optional[dict]:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("orders")
            .insert({**order, "created_at": _now()})
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("payments.repository.insert_order failed transaction_id=%s", order.get("transaction_id"))
        return None

def update_order_status(transaction_id: str, status: str) -> bool:
    """Met à jour le statut d'une commande; True si au moins une ligne modifiée."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("orders")
            .update({"status": status, "updated_at": _now()})
            .eq("transaction_id", transaction_id)
            .execute()
        )
        return bool(res.data)
    except Exception:
        logger.exception("payments.repository.update_order_status failed transaction_id=%s", transaction_id)
        return False
