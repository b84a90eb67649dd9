# module backend.payments.models
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from backend.config import DEFAULT_CURRENCY


class PaymentMethod(str, Enum):
    CARD = "card"
    BITCOIN = "bitcoin"
    ETHEREUM = "ethereum"
    PAYPAL = "paypal"

    @property
    def is_crypto(self) -> bool:
        return self in (PaymentMethod.BITCOIN, PaymentMethod.ETHEREUM)


class PaymentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Address(BaseModel):
    line1: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = ""
    postal_code: str = Field(min_length=1)
    country: str = Field(min_length=2)


class BillingDetails(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    address: Address


class PaymentDetails(BaseModel):
    amount: Decimal = Field(gt=0)
    currency: str = DEFAULT_CURRENCY
    payment_method: PaymentMethod
    billing_details: BillingDetails

    @field_validator("currency")
    @classmethod
    def _currency_code(cls, v: str) -> str:
        code = (v or "").strip().upper()
        if len(code) != 3 or not code.isalpha():
            raise ValueError("Code devise ISO à 3 lettres attendu")
        return code

    @property
    def minor_units(self) -> int:
        return int((self.amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentResult(BaseModel):
    success: bool
    status: PaymentStatus
    transaction_id: Optional[str] = None
    payment_url: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[str] = None
    crypto_amount: Optional[str] = None
    qr_code: Optional[str] = None

    @classmethod
    def failed(cls, error: str, code: str = "payment_failed", transaction_id: Optional[str] = None) -> "PaymentResult":
        return cls(success=False, status=PaymentStatus.FAILED, error=error, error_code=code, transaction_id=transaction_id)

    @classmethod
    def pending(cls, transaction_id: str, payment_url: Optional[str] = None, **extra: Any) -> "PaymentResult":
        return cls(success=True, status=PaymentStatus.PENDING, transaction_id=transaction_id, payment_url=payment_url, **extra)

    @classmethod
    def completed(cls, transaction_id: str) -> "PaymentResult":
        return cls(success=True, status=PaymentStatus.COMPLETED, transaction_id=transaction_id)


class OrderDetails(BaseModel):
    items: List[Dict[str, Any]] = Field(default_factory=list)
    total: Optional[Decimal] = None
    shipping_address: Optional[Dict[str, Any]] = None


class ProcessPaymentRequest(BaseModel):
    payment_details: PaymentDetails
    order_details: OrderDetails


class VerifyPaymentRequest(BaseModel):
    transaction_id: str = Field(min_length=1)
    payment_method: PaymentMethod


class CryptoConfirmation(BaseModel):
    reference: str = Field(min_length=1)
    status: str
    tx_hash: Optional[str] = None

    @field_validator("status")
    @classmethod
    def _known_status(cls, v: str) -> str:
        v = (v or "").strip().lower()
        if v not in ("confirmed", "failed"):
            raise ValueError("status doit valoir 'confirmed' ou 'failed'")
        return v
