# module backend.checkout.models
from enum import Enum

from pydantic import BaseModel

from backend.payments.models import PaymentMethod


class CheckoutStep(str, Enum):
    CART_REVIEW = "cart_review"
    SHIPPING = "shipping"
    PAYMENT = "payment"
    CONFIRMATION = "confirmation"


SHIPPING_FIELDS = ("first_name", "last_name", "email", "address", "city", "state", "zip_code", "country")


class ShippingInfo(BaseModel):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = ""

    def missing_fields(self) -> list:
        return [f for f in SHIPPING_FIELDS if not str(getattr(self, f) or "").strip()]

    @property
    def full_name(self) -> str:
        return f"{self.first_name.strip()} {self.last_name.strip()}".strip()


class PaymentChoice(BaseModel):
    payment_method: PaymentMethod
