# module backend.payments.views
import logging
import secrets

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
import stripe

from backend.app_setup.dependencies import get_payment_service, get_stripe_gateway
from backend.checkout.models import CheckoutStep
from backend.checkout.service import checkout_session
from backend.config import CRYPTO_WEBHOOK_SECRET
from backend.utils.errors import ConfigurationError
from backend.utils.rate_limit import optional_rate_limit

from . import repository as payments_repo
from .models import CryptoConfirmation, PaymentMethod, PaymentStatus, ProcessPaymentRequest, VerifyPaymentRequest
from .service import PaymentService
from .stripe_client import StripeGateway

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/payment", tags=["Payments API"])

_STRIPE_EVENT_STATUS = {
    "payment_intent.succeeded": "completed",
    "payment_intent.payment_failed": "failed",
    "payment_intent.canceled": "failed",
}

@router.post("/process", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def process_payment(payload: ProcessPaymentRequest, payments: PaymentService = Depends(get_payment_service)):
    """
    Initie un paiement (carte, bitcoin, ethereum, PayPal).
    - Entrée JSON: { "payment_details": {...}, "order_details": {...} } (400 si absent/invalide)
    - Sortie: PaymentResult normalisé; 400 si le paiement n'a pas pu être initié
    - La commande est enregistrée (best-effort) dès qu'une transaction existe
    """
    result = payments.process_order_payment(payload.payment_details, payload.order_details)
    body = result.model_dump(mode="json")
    if not result.success:
        return JSONResponse(status_code=400, content=body)
    return body

@router.post("/verify", dependencies=[Depends(optional_rate_limit(times=30, seconds=60))])
def verify_payment(payload: VerifyPaymentRequest, payments: PaymentService = Depends(get_payment_service)):
    result = payments.verify_payment(payload.transaction_id, payload.payment_method)
    return result.model_dump(mode="json")

@router.get("/paypal/success", include_in_schema=False)
def paypal_success(request: Request, token: str = "", PayerID: str = "", payments: PaymentService = Depends(get_payment_service)):
    """
    Retour PayPal après approbation: capture la commande, vérifie son statut puis redirige.
    - /checkout?status=success si COMPLETED
    - /checkout?error=missing_paypal_params | payment_failed | internal_error sinon
    """
    if not token or not PayerID:
        return RedirectResponse(url="/checkout?error=missing_paypal_params", status_code=303)
    try:
        result = payments.capture_paypal_order(token)
        if result.status is not PaymentStatus.COMPLETED:
            logger.info("payments.paypal.success not completed order=%s status=%s", token, result.status.value)
            return RedirectResponse(url="/checkout?error=payment_failed", status_code=303)
        with checkout_session(request.session, payments) as flow:
            if flow.step is CheckoutStep.PAYMENT and flow.pending_transaction == token:
                flow.confirm_pending()
        return RedirectResponse(url="/checkout?status=success", status_code=303)
    except Exception:
        logger.exception("Erreur paypal_success order=%s", token)
        return RedirectResponse(url="/checkout?error=internal_error", status_code=303)

@router.get("/paypal/cancel", include_in_schema=False)
def paypal_cancel(token: str = ""):
    if token:
        payments_repo.update_order_status(token, "failed")
    return RedirectResponse(url="/checkout?error=payment_cancelled", status_code=303)

@router.post("/webhook/stripe", include_in_schema=False)
async def webhook_stripe(request: Request, gateway: StripeGateway = Depends(get_stripe_gateway)):
    """
    Webhook Stripe (PaymentIntents): met à jour le statut de la commande associée.
    - Signature: Stripe-Signature + STRIPE_WEBHOOK_SECRET
    - Réponses: {"status": "ok"} ou {"status": "ignored"}; 400 si signature/payload invalide
    """
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature")
    try:
        event = gateway.parse_event(payload, sig_header)
    except (ValueError, stripe.SignatureVerificationError):
        logger.warning("payments.webhook.stripe invalid signature or payload")
        raise HTTPException(status_code=400, detail="Invalid Stripe webhook payload")
    event_type = (event or {}).get("type")
    status = _STRIPE_EVENT_STATUS.get(event_type)
    if not status:
        return JSONResponse({"status": "ignored"})
    intent_id = ((event.get("data") or {}).get("object") or {}).get("id")
    updated = payments_repo.update_order_status(intent_id, status) if intent_id else False
    logger.info("payments.webhook.stripe type=%s intent=%s updated=%s", event_type, intent_id, updated)
    return JSONResponse({"status": "ok"})

@router.post("/webhook/crypto", include_in_schema=False)
def webhook_crypto(
    payload: CryptoConfirmation,
    x_webhook_secret: str = Header(default=""),
    payments: PaymentService = Depends(get_payment_service),
):
    """
    Confirmation on-chain d'un paiement crypto (émise par le service de surveillance des adresses).
    - En-tête X-Webhook-Secret comparé à CRYPTO_WEBHOOK_SECRET (401 si invalide)
    - Seul un paiement encore 'pending' est réglé: {"status": "ok"} ou {"status": "ignored"}
    """
    if not CRYPTO_WEBHOOK_SECRET:
        raise ConfigurationError("CRYPTO_WEBHOOK_SECRET manquant")
    if not secrets.compare_digest(x_webhook_secret.encode("utf-8"), CRYPTO_WEBHOOK_SECRET.encode("utf-8")):
        raise HTTPException(status_code=401, detail="Signature de webhook invalide")
    settled = payments.settle_crypto_payment(payload.reference, payload.status, payload.tx_hash)
    return {"status": "ok" if settled else "ignored"}

@router.get("/methods")
def list_methods(payments: PaymentService = Depends(get_payment_service)):
    """Méthodes disponibles et montants minimums (USD)."""
    return {
        "methods": [
            {"method": m.value, "minimum": str(payments.minimum_for(m))}
            for m in PaymentMethod
            if m in payments.handlers
        ]
    }
