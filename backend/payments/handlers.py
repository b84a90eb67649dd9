"""
Un handler par variante de paiement {Card, Crypto(kind), PayPal}, derrière une interface commune.

Chaque handler produit un PaymentResult normalisé; les erreurs fournisseur remontent
en UpstreamError / ConfigurationError et sont converties par PaymentService.
"""
import logging
import secrets
import time
from abc import ABC, abstractmethod
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Dict, Optional

from backend.utils.errors import ConfigurationError, UpstreamError
from backend.utils.qrcode_utils import generate_qr_code

from . import repository
from .models import PaymentDetails, PaymentMethod, PaymentResult, PaymentStatus
from .paypal_client import PayPalClient
from .price_feed import CoinGeckoPriceFeed
from .stripe_client import StripeGateway

logger = logging.getLogger(__name__)

CRYPTO_PLACES = Decimal("0.00000001")


class PaymentHandler(ABC):
    method: PaymentMethod

    @abstractmethod
    def create(self, details: PaymentDetails) -> PaymentResult:
        """Initie le paiement auprès du fournisseur."""

    @abstractmethod
    def verify(self, transaction_id: str) -> PaymentResult:
        """Interroge le fournisseur et retourne le statut courant."""


class CardHandler(PaymentHandler):
    method = PaymentMethod.CARD

    _STATUS_MAP = {
        "succeeded": PaymentStatus.COMPLETED,
        "canceled": PaymentStatus.FAILED,
    }

    def __init__(self, gateway: StripeGateway):
        self.gateway = gateway

    def create(self, details: PaymentDetails) -> PaymentResult:
        billing = details.billing_details
        intent = self.gateway.create_payment_intent(
            amount_minor=details.minor_units,
            currency=details.currency,
            receipt_email=billing.email,
            metadata={"customer_email": billing.email, "customer_name": billing.name},
            shipping={
                "name": billing.name,
                "address": {
                    "line1": billing.address.line1,
                    "city": billing.address.city,
                    "state": billing.address.state,
                    "postal_code": billing.address.postal_code,
                    "country": billing.address.country,
                },
            },
        )
        if not intent.get("id") or not intent.get("client_secret"):
            raise UpstreamError("Stripe: PaymentIntent sans id/client_secret")
        return PaymentResult.pending(intent["id"], payment_url=intent["client_secret"])

    def verify(self, transaction_id: str) -> PaymentResult:
        intent = self.gateway.retrieve_payment_intent(transaction_id)
        status = self._STATUS_MAP.get(intent.get("status") or "", PaymentStatus.PENDING)
        if status is PaymentStatus.FAILED:
            return PaymentResult.failed("Paiement par carte annulé", transaction_id=transaction_id)
        return PaymentResult(success=True, status=status, transaction_id=transaction_id)


class CryptoHandler(PaymentHandler):
    """
    Paiement crypto: conversion au cours du marché, adresse de dépôt statique, enregistrement 'pending'.
    La confirmation ne vient que du webhook de confirmation (voir PaymentService.settle_crypto_payment).
    """

    _COINS = {
        PaymentMethod.BITCOIN: ("bitcoin", "bitcoin:{address}?amount={amount}"),
        PaymentMethod.ETHEREUM: ("ethereum", "ethereum:{address}?value={amount}"),
    }

    def __init__(
        self,
        method: PaymentMethod,
        price_feed: CoinGeckoPriceFeed,
        address: str,
        clock: Callable[[], float] = time.time,
    ):
        if not method.is_crypto:
            raise ValueError(f"{method.value} n'est pas une méthode crypto")
        self.method = method
        self.price_feed = price_feed
        self.address = address
        self._clock = clock

    def _reference(self) -> str:
        return f"{self.method.value}_{int(self._clock() * 1000)}_{secrets.token_hex(4)}"

    def create(self, details: PaymentDetails) -> PaymentResult:
        if not self.address:
            raise ConfigurationError(f"{self.method.value.capitalize()} payment address not configured")
        coin_id, uri_template = self._COINS[self.method]
        price = self.price_feed.get_price(coin_id, details.currency)
        crypto_amount = (details.amount / price).quantize(CRYPTO_PLACES, rounding=ROUND_HALF_UP)
        reference = self._reference()
        row = repository.insert_crypto_payment({
            "reference": reference,
            "crypto_type": self.method.value,
            "address": self.address,
            "crypto_amount": str(crypto_amount),
            "fiat_amount": str(details.amount),
            "currency": details.currency,
            "customer_email": details.billing_details.email,
        })
        if not row:
            raise UpstreamError("Enregistrement du paiement crypto impossible")
        logger.info("payments.crypto.create reference=%s amount=%s %s", reference, crypto_amount, coin_id)
        return PaymentResult.pending(
            reference,
            payment_url=self.address,
            crypto_amount=str(crypto_amount),
            qr_code=generate_qr_code(uri_template.format(address=self.address, amount=crypto_amount)),
        )

    def verify(self, transaction_id: str) -> PaymentResult:
        record = repository.get_crypto_payment(transaction_id)
        if not record:
            return PaymentResult.failed("Paiement crypto introuvable", code="not_found", transaction_id=transaction_id)
        status = (record.get("status") or "").lower()
        if status == "confirmed":
            return PaymentResult.completed(transaction_id)
        if status == "failed":
            return PaymentResult.failed("Paiement crypto non confirmé", transaction_id=transaction_id)
        return PaymentResult(success=True, status=PaymentStatus.PENDING, transaction_id=transaction_id)


class PayPalHandler(PaymentHandler):
    method = PaymentMethod.PAYPAL

    def __init__(self, client: PayPalClient, return_base_url: str):
        self.client = client
        self.return_base_url = return_base_url.rstrip("/")

    def build_order(self, details: PaymentDetails) -> Dict:
        billing = details.billing_details
        return {
            "intent": "CAPTURE",
            "purchase_units": [{
                "amount": {"currency_code": details.currency, "value": f"{details.amount:.2f}"},
                "shipping": {
                    "name": {"full_name": billing.name},
                    "address": {
                        "address_line_1": billing.address.line1,
                        "admin_area_2": billing.address.city,
                        "admin_area_1": billing.address.state,
                        "postal_code": billing.address.postal_code,
                        "country_code": billing.address.country.upper()[:2],
                    },
                },
            }],
            "application_context": {
                "return_url": f"{self.return_base_url}/api/v1/payment/paypal/success",
                "cancel_url": f"{self.return_base_url}/api/v1/payment/paypal/cancel",
            },
        }

    @staticmethod
    def approve_link(order: Dict) -> Optional[str]:
        for link in order.get("links") or []:
            if link.get("rel") == "approve" and link.get("href"):
                return link["href"]
        return None

    def create(self, details: PaymentDetails) -> PaymentResult:
        order = self.client.create_order(self.build_order(details))
        href = self.approve_link(order)
        if not href:
            raise UpstreamError("PayPal approval URL not found", code="paypal_no_approve_link")
        return PaymentResult.pending(order.get("id") or "", payment_url=href)

    def verify(self, transaction_id: str) -> PaymentResult:
        order = self.client.get_order(transaction_id)
        status = (order.get("status") or "").upper()
        if status == "COMPLETED":
            return PaymentResult.completed(transaction_id)
        if status == "VOIDED":
            return PaymentResult.failed("Commande PayPal annulée", transaction_id=transaction_id)
        return PaymentResult(success=True, status=PaymentStatus.PENDING, transaction_id=transaction_id)

    def capture(self, order_id: str) -> Dict:
        return self.client.capture_order(order_id)
