# module backend.checkout.views

"""Endpoints du tunnel de commande (état conservé dans la session).
- GET /api/v1/checkout: étape courante + panier
- POST /api/v1/checkout/shipping: cart_review -> shipping (refusé si panier vide)
- PUT /api/v1/checkout/shipping: saisie livraison, shipping -> payment
- POST /api/v1/checkout/back: retour à l'étape précédente
- POST /api/v1/checkout/payment: lance le paiement; crypto attend la confirmation (polling borné),
  carte et PayPal renvoient le résultat 'pending' (client_secret / lien d'approbation)
- POST /api/v1/checkout/confirm: vérifie la transaction en attente
"""
import logging

from fastapi import APIRouter, Depends, Request

from backend.app_setup.dependencies import get_payment_service
from backend.payments.models import OrderDetails, PaymentResult
from backend.payments.service import PaymentService, record_order
from backend.utils.rate_limit import optional_rate_limit

from .flow import CheckoutFlow
from .models import PaymentChoice, ShippingInfo
from .service import checkout_session

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/checkout", tags=["Checkout API"])

def _response(flow: CheckoutFlow, result: PaymentResult = None):
    body = flow.snapshot()
    if result is not None:
        body["payment"] = result.model_dump(mode="json")
        notice = flow.payments.notifier.current()
        if notice:
            body["notice"] = notice
    return body

@router.get("")
def get_checkout(request: Request, payments: PaymentService = Depends(get_payment_service)):
    with checkout_session(request.session, payments) as flow:
        return _response(flow)

@router.post("/shipping")
def start_shipping(request: Request, payments: PaymentService = Depends(get_payment_service)):
    with checkout_session(request.session, payments) as flow:
        flow.proceed_to_shipping()
        return _response(flow)

@router.put("/shipping")
def submit_shipping(request: Request, info: ShippingInfo, payments: PaymentService = Depends(get_payment_service)):
    with checkout_session(request.session, payments) as flow:
        flow.submit_shipping(info)
        return _response(flow)

@router.post("/back")
def go_back(request: Request, payments: PaymentService = Depends(get_payment_service)):
    with checkout_session(request.session, payments) as flow:
        flow.back()
        return _response(flow)

@router.post("/payment", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def submit_payment(request: Request, choice: PaymentChoice, payments: PaymentService = Depends(get_payment_service)):
    with checkout_session(request.session, payments) as flow:
        items = [i.model_dump(mode="json") for i in flow.cart.items]
        method = choice.payment_method
        result = flow.submit_payment(method, wait=method.is_crypto)
        if result.transaction_id and flow.last_details is not None:
            record_order(
                result,
                flow.last_details,
                OrderDetails(items=items, total=flow.last_details.amount, shipping_address=flow.shipping.model_dump()),
            )
        return _response(flow, result)

@router.post("/confirm")
def confirm_payment(request: Request, payments: PaymentService = Depends(get_payment_service)):
    with checkout_session(request.session, payments) as flow:
        result = flow.confirm_pending()
        return _response(flow, result)
