# module backend.cart.models
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from pydantic import BaseModel, Field

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Convertit un montant (str/int/float/Decimal) en Decimal arrondi au centime."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


class CartItem(BaseModel):
    id: str = Field(min_length=1)
    name: str
    price: Decimal = Field(ge=0)
    quantity: int = Field(ge=1)
    image: Optional[str] = None
    size: Optional[str] = None
    product_id: Optional[str] = None

    @property
    def subtotal(self) -> Decimal:
        return to_money(self.price * self.quantity)


class AddCartItemRequest(BaseModel):
    product_id: str = Field(min_length=1)
    quantity: int = Field(default=1, ge=1)
    size: Optional[str] = None


class UpdateQuantityRequest(BaseModel):
    quantity: int
