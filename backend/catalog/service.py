"""
Cas d'usage 'catalog': lecture du catalogue (avec cache TTL) et ajout au panier
conditionné par un décrément de stock atomique.
"""
import logging
import threading
import time
from typing import Callable, List, Optional

from backend.cart.models import CartItem
from backend.cart.store import CartStore
from backend.utils.errors import ConflictError, NotFoundError, ValidationError

from . import repository
from .models import Product

logger = logging.getLogger(__name__)


def line_id_for(product: Product, size: Optional[str]) -> str:
    """Une taille différente du même produit forme une ligne distincte du panier."""
    return f"{product.id}:{size}" if size else product.id


class CatalogAccessor:
    def __init__(self, ttl_seconds: float = 60.0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._products: Optional[List[Product]] = None
        self._fetched_at = 0.0

    def fetch_products(self, force: bool = False) -> List[Product]:
        """
        Retourne le catalogue complet.
        Lève NetworkError / ServerError (UpstreamError) si la source est indisponible.
        """
        with self._lock:
            fresh = self._products is not None and (self._clock() - self._fetched_at) < self.ttl_seconds
            if fresh and not force:
                return list(self._products)
        rows = repository.fetch_products()
        products = [Product.model_validate(r) for r in rows]
        with self._lock:
            self._products = products
            self._fetched_at = self._clock()
        return list(products)

    def invalidate(self) -> None:
        with self._lock:
            self._products = None

    def get_product(self, product_id: str) -> Product:
        row = repository.get_product(product_id)
        if not row:
            raise NotFoundError("Produit introuvable")
        return Product.model_validate(row)

    def reserve_stock(self, product_id: str, quantity: int) -> int:
        """Décrémente le stock si suffisant; retourne le stock restant, sinon ConflictError."""
        if quantity < 1:
            raise ValidationError("La quantité doit être au moins 1")
        remaining = repository.decrement_stock(product_id, quantity)
        if remaining is None:
            raise ConflictError("Stock insuffisant pour ce produit")
        self.invalidate()
        logger.info("catalog.reserve_stock id=%s qty=%s remaining=%s", product_id, quantity, remaining)
        return remaining

    def release_stock(self, product_id: str, quantity: int) -> Optional[int]:
        """Restitue une réservation dont le panier n'a pas pu être enregistré."""
        remaining = repository.increment_stock(product_id, quantity)
        self.invalidate()
        logger.warning("catalog.release_stock id=%s qty=%s remaining=%s", product_id, quantity, remaining)
        return remaining

    def add_to_cart(self, store: CartStore, product_id: str, quantity: int = 1, size: Optional[str] = None) -> CartItem:
        """
        Valide la demande, réserve le stock puis ajoute la ligne au panier.
        Le panier n'est modifié que si la réservation a réussi (au plus une mutation).
        """
        if quantity < 1:
            raise ValidationError("La quantité doit être au moins 1")
        product = self.get_product(product_id)
        size = (size or "").strip() or None
        if product.has_sizes:
            if not size:
                raise ValidationError("Veuillez choisir une taille")
            if size not in product.sizes:
                raise ValidationError(f"Taille indisponible: {size}")
        elif size:
            raise ValidationError("Ce produit n'existe pas en plusieurs tailles")
        if quantity > product.stock:
            raise ConflictError(f"Stock insuffisant: {product.stock} disponible(s)")

        self.reserve_stock(product.id, quantity)
        return store.add_item(
            CartItem(
                id=line_id_for(product, size),
                product_id=product.id,
                name=product.name,
                price=product.price,
                quantity=quantity,
                image=product.cover_image,
                size=size,
            )
        )
