"""
Cas d'usage 'payments': point d'entrée unique process_payment / verify_payment.

- Contrôle du montant minimum par méthode AVANT tout appel fournisseur.
- Dispatch par table {méthode -> handler}, sans retry.
- Les UpstreamError / ConfigurationError sont journalisées (secrets masqués) puis converties
  en PaymentResult 'failed' avec un message générique: aucune exception fournisseur ne sort du service.
"""
import logging
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional

from backend.config import MIN_PAYMENT_AMOUNTS
from backend.utils.errors import AppError, ConfigurationError, UpstreamError, redact_secrets

from . import repository
from .handlers import PaymentHandler, PayPalHandler
from .models import OrderDetails, PaymentDetails, PaymentMethod, PaymentResult, PaymentStatus
from .notifier import FailureNotifier

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Le paiement n'a pas pu être traité, veuillez réessayer ou choisir un autre moyen de paiement"


class PaymentService:
    def __init__(
        self,
        handlers: Mapping[PaymentMethod, PaymentHandler],
        notifier: Optional[FailureNotifier] = None,
        minimums: Optional[Mapping[str, Decimal]] = None,
    ):
        self.handlers = dict(handlers)
        self.notifier = notifier or FailureNotifier()
        self.minimums = dict(minimums if minimums is not None else MIN_PAYMENT_AMOUNTS)

    def _handler(self, method: PaymentMethod) -> PaymentHandler:
        handler = self.handlers.get(method)
        if handler is None:
            raise ConfigurationError(f"Aucun handler configuré pour {method.value}")
        return handler

    def _fail(self, action: str, method: PaymentMethod, exc: AppError, transaction_id: Optional[str] = None) -> PaymentResult:
        logger.error(
            "payments.%s failed method=%s error=%s detail=%s",
            action, method.value, type(exc).__name__, redact_secrets(exc.message),
        )
        self.notifier.notify(GENERIC_FAILURE)
        return PaymentResult.failed(GENERIC_FAILURE, code=exc.code, transaction_id=transaction_id)

    def minimum_for(self, method: PaymentMethod) -> Decimal:
        return self.minimums.get(method.value, Decimal("0"))

    def process_payment(self, details: PaymentDetails) -> PaymentResult:
        method = details.payment_method
        minimum = self.minimum_for(method)
        if details.amount < minimum:
            message = f"Montant minimum pour {method.value}: {minimum} {details.currency}"
            self.notifier.notify(message)
            return PaymentResult.failed(message, code="below_minimum")
        try:
            result = self._handler(method).create(details)
        except (UpstreamError, ConfigurationError) as e:
            return self._fail("process", method, e)
        logger.info("payments.process method=%s status=%s tx=%s", method.value, result.status.value, result.transaction_id)
        return result

    def verify_payment(self, transaction_id: str, method: PaymentMethod) -> PaymentResult:
        try:
            result = self._handler(method).verify(transaction_id)
        except (UpstreamError, ConfigurationError) as e:
            return self._fail("verify", method, e, transaction_id=transaction_id)
        if result.status is not PaymentStatus.PENDING:
            repository.update_order_status(transaction_id, result.status.value)
        return result

    def capture_paypal_order(self, order_id: str) -> PaymentResult:
        """Capture une commande PayPal approuvée (retour utilisateur), puis vérifie son statut."""
        handler = self._handler(PaymentMethod.PAYPAL)
        if not isinstance(handler, PayPalHandler):
            raise ConfigurationError("Handler PayPal invalide")
        try:
            handler.capture(order_id)
        except (UpstreamError, ConfigurationError) as e:
            return self._fail("capture", PaymentMethod.PAYPAL, e, transaction_id=order_id)
        return self.verify_payment(order_id, PaymentMethod.PAYPAL)

    def settle_crypto_payment(self, reference: str, status: str, tx_hash: Optional[str] = None) -> bool:
        """Applique une confirmation (ou un échec) reçue du webhook crypto; False si déjà réglé/inconnu."""
        row = repository.settle_crypto_payment(reference, status, tx_hash)
        if not row:
            return False
        repository.update_order_status(reference, "completed" if status == "confirmed" else "failed")
        logger.info("payments.crypto.settled reference=%s status=%s", reference, status)
        return True

    def process_order_payment(self, details: PaymentDetails, order: OrderDetails) -> PaymentResult:
        """Initie le paiement puis enregistre la commande associée (best-effort)."""
        result = self.process_payment(details)
        if result.success and result.transaction_id:
            record_order(result, details, order)
        return result


def record_order(result: PaymentResult, details: PaymentDetails, order: OrderDetails) -> Optional[Dict[str, Any]]:
    row = repository.insert_order({
        "transaction_id": result.transaction_id,
        "payment_method": details.payment_method.value,
        "status": result.status.value,
        "amount": str(details.amount),
        "currency": details.currency,
        "customer_email": details.billing_details.email,
        "customer_name": details.billing_details.name,
        "items": order.items,
        "shipping_address": order.shipping_address or details.billing_details.address.model_dump(),
    })
    if not row:
        logger.warning("payments.record_order not stored tx=%s", result.transaction_id)
    return row
