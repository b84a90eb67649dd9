"""
Cas d'usage 'cart': panier serveur rattaché à la session Starlette.
"""
from contextlib import contextmanager
from typing import Any, Dict, Iterator, MutableMapping, Optional, Tuple
from uuid import uuid4
import logging

from backend.catalog.service import CatalogAccessor
from backend.utils.errors import AppError, ConflictError

from . import repository
from .models import CartItem
from .store import CartStore

logger = logging.getLogger(__name__)

SESSION_CART_KEY = "cart_id"

def get_or_create_cart_id(session: MutableMapping[str, Any]) -> str:
    """Retourne l'identifiant de panier de la session, en le créant au besoin."""
    cart_id = session.get(SESSION_CART_KEY)
    if not cart_id:
        cart_id = uuid4().hex
        session[SESSION_CART_KEY] = cart_id
    return cart_id

def _flush(cart_id: str, store: CartStore, version: Optional[int]) -> None:
    if not repository.save_cart(cart_id, store.to_dict(), version):
        raise ConflictError("Le panier a été modifié par une autre requête, veuillez réessayer")

@contextmanager
def cart_session(cart_id: str) -> Iterator[CartStore]:
    """
    Charge le panier, le prête au bloc appelant, puis l'enregistre en sortie s'il a changé,
    y compris lorsque le bloc lève une exception.
    - Une lecture en échec lève NetworkError / ServerError: rien n'est écrit.
    - Un enregistrement en échec lève NetworkError / ServerError (stockage) ou ConflictError (écriture
      concurrente sur la même session); si le bloc a déjà levé, son exception est conservée.
    """
    row = repository.load_cart(cart_id)
    version = row.get("version") if row else None
    store = CartStore.from_dict(row)
    before = store.to_dict()
    try:
        yield store
    except Exception:
        if store.to_dict() != before:
            try:
                _flush(cart_id, store, version)
            except AppError:
                logger.exception("cart.service.cart_session flush failed cart_id=%s", cart_id)
        raise
    if store.to_dict() != before:
        _flush(cart_id, store, version)

def add_product(
    cart_id: str,
    catalog: CatalogAccessor,
    product_id: str,
    quantity: int = 1,
    size: Optional[str] = None,
) -> Tuple[CartItem, Dict[str, Any]]:
    """
    Réserve le stock et ajoute la ligne au panier de la session.
    Si le panier ne peut pas être enregistré, la réservation est restituée avant de relever l'erreur.
    """
    reserved: Optional[CartItem] = None
    try:
        with cart_session(cart_id) as store:
            item = catalog.add_to_cart(store, product_id, quantity, size)
            reserved = item
            return item, store.to_dict()
    except AppError:
        if reserved is not None:
            _release(catalog, reserved.product_id or product_id, quantity)
        raise

def _release(catalog: CatalogAccessor, product_id: str, quantity: int) -> None:
    try:
        catalog.release_stock(product_id, quantity)
    except AppError:
        logger.exception("cart.service.add_product release failed id=%s qty=%s", product_id, quantity)
