"""
Panier en mémoire: lignes + total courant.

Invariant: après chaque mutation, total == somme(prix unitaire x quantité) sur les lignes.
Une seule entité mute un panier donné (une session), aucun verrou n'est nécessaire.
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional

from .models import CartItem, to_money

ZERO = Decimal("0.00")


class CartStore:
    def __init__(self, items: Optional[List[CartItem]] = None):
        self._items: List[CartItem] = []
        self._total: Decimal = ZERO
        for item in items or []:
            self.add_item(item)

    @property
    def items(self) -> List[CartItem]:
        return list(self._items)

    @property
    def total(self) -> Decimal:
        return self._total

    def is_empty(self) -> bool:
        return not self._items

    def get(self, item_id: str) -> Optional[CartItem]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def add_item(self, item: CartItem) -> CartItem:
        """
        Ajoute une ligne. Si l'identifiant existe déjà, la quantité entrante s'ajoute
        à la ligne existante (le prix existant est conservé).
        """
        for idx, existing in enumerate(self._items):
            if existing.id == item.id:
                merged = existing.model_copy(update={"quantity": existing.quantity + item.quantity})
                self._items[idx] = merged
                self._recompute()
                return merged
        self._items.append(item)
        self._recompute()
        return item

    def remove_item(self, item_id: str) -> bool:
        """Supprime la ligne; retourne False (sans effet) si l'identifiant est absent."""
        before = len(self._items)
        self._items = [i for i in self._items if i.id != item_id]
        if len(self._items) == before:
            return False
        self._recompute()
        return True

    def update_quantity(self, item_id: str, quantity: int) -> bool:
        """
        Remplace la quantité d'une ligne.
        - quantity < 1: la ligne est supprimée
        - identifiant absent: aucun effet, retourne False
        """
        if quantity < 1:
            return self.remove_item(item_id)
        for idx, existing in enumerate(self._items):
            if existing.id == item_id:
                self._items[idx] = existing.model_copy(update={"quantity": int(quantity)})
                self._recompute()
                return True
        return False

    def clear(self) -> None:
        self._items = []
        self._total = ZERO

    def _recompute(self) -> None:
        self._total = to_money(sum((i.price * i.quantity for i in self._items), ZERO))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": [i.model_dump(mode="json") for i in self._items],
            "total": str(self._total),
            "count": sum(i.quantity for i in self._items),
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "CartStore":
        # Le total stocké est ignoré: il est toujours recalculé depuis les lignes
        rows = (data or {}).get("items") or []
        return cls([CartItem.model_validate(r) for r in rows])
