"""
Tunnel de commande en quatre étapes: cart_review -> shipping -> payment -> confirmation.

Retours arrière autorisés: shipping -> cart_review et payment -> shipping.
Un paiement 'pending' est résolu par un polling borné (nombre d'essais et intervalle fixes,
sans backoff); l'épuisement des essais est traité comme un échec.
À l'entrée en confirmation, le panier est vidé et la fermeture du tunnel est programmée
après un délai d'affichage fixe.
"""
import logging
import threading
import time
from decimal import Decimal
from typing import Any, Callable, Dict, Optional, Union

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from backend import config
from backend.cart.store import CartStore
from backend.payments.models import (
    Address,
    BillingDetails,
    PaymentDetails,
    PaymentMethod,
    PaymentResult,
    PaymentStatus,
)
from backend.payments.service import PaymentService
from backend.utils.errors import ValidationError

from .models import CheckoutStep, ShippingInfo

logger = logging.getLogger(__name__)

TIMEOUT_MESSAGE = "Délai de confirmation du paiement dépassé"
_EMAIL = TypeAdapter(EmailStr)

_BACK = {
    CheckoutStep.SHIPPING: CheckoutStep.CART_REVIEW,
    CheckoutStep.PAYMENT: CheckoutStep.SHIPPING,
}


class CheckoutFlow:
    def __init__(
        self,
        cart: CartStore,
        payments: PaymentService,
        *,
        max_attempts: int = config.CHECKOUT_POLL_MAX_ATTEMPTS,
        interval: float = config.CHECKOUT_POLL_INTERVAL_SECONDS,
        close_delay: float = config.CHECKOUT_CLOSE_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
        on_close: Optional[Callable[[], None]] = None,
        timer_factory: Callable[..., Any] = threading.Timer,
    ):
        self.cart = cart
        self.payments = payments
        self.max_attempts = max_attempts
        self.interval = interval
        self.close_delay = close_delay
        self._sleep = sleep
        self._clock = clock
        self._on_close = on_close
        self._timer_factory = timer_factory

        self.step = CheckoutStep.CART_REVIEW
        self.shipping: Optional[ShippingInfo] = None
        self.error: Optional[str] = None
        self.pending_transaction: Optional[str] = None
        self.pending_method: Optional[PaymentMethod] = None
        self.last_result: Optional[PaymentResult] = None
        self.order_total: Optional[Decimal] = None
        self.confirmed_at: Optional[float] = None
        self.last_details: Optional[PaymentDetails] = None

    # --- transitions -------------------------------------------------------

    def proceed_to_shipping(self) -> None:
        if self.step is not CheckoutStep.CART_REVIEW:
            raise ValidationError(f"Transition impossible depuis l'étape {self.step.value}")
        if self.cart.is_empty():
            raise ValidationError("Votre panier est vide")
        self.error = None
        self.step = CheckoutStep.SHIPPING

    def submit_shipping(self, info: Union[ShippingInfo, Dict[str, Any]]) -> None:
        if self.step is not CheckoutStep.SHIPPING:
            raise ValidationError(f"Transition impossible depuis l'étape {self.step.value}")
        if not isinstance(info, ShippingInfo):
            info = ShippingInfo.model_validate(info or {})
        missing = info.missing_fields()
        if missing:
            raise ValidationError(f"Champs de livraison manquants: {', '.join(missing)}")
        try:
            _EMAIL.validate_python(info.email.strip())
        except PydanticValidationError:
            raise ValidationError("Adresse e-mail de livraison invalide")
        self.shipping = info
        self.error = None
        self.step = CheckoutStep.PAYMENT

    def back(self) -> None:
        previous = _BACK.get(self.step)
        if previous is None:
            raise ValidationError(f"Retour impossible depuis l'étape {self.step.value}")
        self.error = None
        self.step = previous

    # --- paiement ----------------------------------------------------------

    def payment_details(self, method: PaymentMethod) -> PaymentDetails:
        info = self.shipping
        return PaymentDetails(
            amount=self.cart.total,
            currency=config.DEFAULT_CURRENCY,
            payment_method=method,
            billing_details=BillingDetails(
                name=info.full_name,
                email=info.email,
                address=Address(
                    line1=info.address,
                    city=info.city,
                    state=info.state,
                    postal_code=info.zip_code,
                    country=info.country,
                ),
            ),
        )

    def submit_payment(self, method: PaymentMethod, wait: bool = True) -> PaymentResult:
        """
        Lance le paiement du panier.
        - completed: passage en confirmation
        - failed: reste en paiement, l'erreur est exposée
        - pending: mémorise la transaction; si wait, polling borné jusqu'à completed/failed/timeout
        """
        if self.step is not CheckoutStep.PAYMENT or self.shipping is None:
            raise ValidationError("Les informations de livraison doivent être validées avant le paiement")
        if self.cart.total <= 0:
            raise ValidationError("Le montant du panier doit être positif")

        try:
            details = self.payment_details(method)
        except PydanticValidationError:
            raise ValidationError("Informations de facturation invalides")
        self.last_details = details
        result = self.payments.process_payment(details)
        return self._apply(result, method, wait)

    def confirm_pending(self) -> PaymentResult:
        """Vérifie une seule fois la transaction en attente (retour carte/PayPal)."""
        if self.step is not CheckoutStep.PAYMENT or not self.pending_transaction:
            raise ValidationError("Aucun paiement en attente")
        result = self.payments.verify_payment(self.pending_transaction, self.pending_method)
        return self._apply(result, self.pending_method, wait=False)

    def await_confirmation(self, transaction_id: str, method: PaymentMethod) -> PaymentResult:
        for attempt in range(1, self.max_attempts + 1):
            result = self.payments.verify_payment(transaction_id, method)
            if result.status is not PaymentStatus.PENDING:
                return result
            if attempt < self.max_attempts:
                self._sleep(self.interval)
        logger.warning("checkout.await_confirmation timeout tx=%s attempts=%s", transaction_id, self.max_attempts)
        return PaymentResult.failed(TIMEOUT_MESSAGE, code="timeout", transaction_id=transaction_id)

    def _apply(self, result: PaymentResult, method: PaymentMethod, wait: bool) -> PaymentResult:
        if result.status is PaymentStatus.PENDING:
            self.pending_transaction = result.transaction_id
            self.pending_method = method
            self.error = None
            if not wait:
                self.last_result = result
                return result
            result = self.await_confirmation(result.transaction_id, method)

        self.last_result = result
        if result.status is PaymentStatus.COMPLETED:
            self._enter_confirmation()
        else:
            self.error = result.error or "Le paiement a échoué"
        return result

    def _enter_confirmation(self) -> None:
        self.order_total = self.cart.total
        self.cart.clear()
        self.error = None
        self.step = CheckoutStep.CONFIRMATION
        self.confirmed_at = self._clock()
        tx = self.last_result.transaction_id if self.last_result else None
        logger.info("checkout.confirmed tx=%s total=%s", tx, self.order_total)
        if self._on_close is not None:
            timer = self._timer_factory(self.close_delay, self._on_close)
            timer.daemon = True
            timer.start()

    # --- fermeture ---------------------------------------------------------

    def close_if_elapsed(self) -> bool:
        """Réinitialise le tunnel une fois le délai d'affichage de la confirmation écoulé."""
        if self.step is CheckoutStep.CONFIRMATION and self.confirmed_at is not None:
            if self._clock() - self.confirmed_at >= self.close_delay:
                self.reset()
                return True
        return False

    def reset(self) -> None:
        self.step = CheckoutStep.CART_REVIEW
        self.shipping = None
        self.error = None
        self.pending_transaction = None
        self.pending_method = None
        self.last_result = None
        self.order_total = None
        self.confirmed_at = None

    # --- sérialisation (session) -------------------------------------------

    def to_state(self) -> Dict[str, Any]:
        return {
            "step": self.step.value,
            "shipping": self.shipping.model_dump() if self.shipping else None,
            "error": self.error,
            "pending_transaction": self.pending_transaction,
            "pending_method": self.pending_method.value if self.pending_method else None,
            "last_result": self.last_result.model_dump(mode="json") if self.last_result else None,
            "order_total": str(self.order_total) if self.order_total is not None else None,
            "confirmed_at": self.confirmed_at,
        }

    def restore(self, state: Optional[Dict[str, Any]]) -> "CheckoutFlow":
        state = state or {}
        self.step = CheckoutStep(state.get("step") or CheckoutStep.CART_REVIEW.value)
        self.shipping = ShippingInfo.model_validate(state["shipping"]) if state.get("shipping") else None
        self.error = state.get("error")
        self.pending_transaction = state.get("pending_transaction")
        self.pending_method = PaymentMethod(state["pending_method"]) if state.get("pending_method") else None
        self.last_result = PaymentResult.model_validate(state["last_result"]) if state.get("last_result") else None
        self.order_total = Decimal(state["order_total"]) if state.get("order_total") else None
        self.confirmed_at = state.get("confirmed_at")
        return self

    def snapshot(self) -> Dict[str, Any]:
        data = self.to_state()
        data["cart"] = self.cart.to_dict()
        return data
