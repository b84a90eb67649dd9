import hashlib
import hmac
import json
import time
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from backend.app_setup.dependencies import get_payment_service, get_stripe_gateway
from backend.payments import CryptoHandler, PaymentMethod, PaymentService, StripeGateway
from backend.payments.models import Address, BillingDetails, PaymentDetails

pytestmark = pytest.mark.usefixtures("memory_db", "override_services")

WEBHOOK_SECRET = "whsec_test_secret"


def _signed(payload: dict, secret: str = WEBHOOK_SECRET):
    body = json.dumps(payload)
    ts = int(time.time())
    signature = hmac.new(secret.encode("utf-8"), f"{ts}.{body}".encode("utf-8"), hashlib.sha256).hexdigest()
    return body, f"t={ts},v1={signature}"


@pytest.fixture
def real_gateway(app, override_services):
    gateway = StripeGateway("sk_test_dummy", WEBHOOK_SECRET)
    app.dependency_overrides[get_stripe_gateway] = lambda: gateway
    return gateway


def _event(event_type, intent_id="pi_123"):
    return {
        "id": "evt_1",
        "object": "event",
        "type": event_type,
        "data": {"object": {"id": intent_id, "object": "payment_intent"}},
    }


def test_stripe_webhook_marks_order_completed(client, real_gateway, memory_db):
    memory_db.orders.append({"transaction_id": "pi_123", "status": "pending"})
    body, header = _signed(_event("payment_intent.succeeded"))

    res = client.post("/api/v1/payment/webhook/stripe", content=body, headers={"Stripe-Signature": header})

    assert res.status_code == 200
    assert res.json() == {"status": "ok"}
    assert memory_db.orders[0]["status"] == "completed"


def test_stripe_webhook_payment_failed(client, real_gateway, memory_db):
    memory_db.orders.append({"transaction_id": "pi_123", "status": "pending"})
    body, header = _signed(_event("payment_intent.payment_failed"))
    client.post("/api/v1/payment/webhook/stripe", content=body, headers={"Stripe-Signature": header})
    assert memory_db.orders[0]["status"] == "failed"


def test_stripe_webhook_ignores_other_events(client, real_gateway):
    body, header = _signed(_event("customer.created"))
    res = client.post("/api/v1/payment/webhook/stripe", content=body, headers={"Stripe-Signature": header})
    assert res.json() == {"status": "ignored"}


def test_stripe_webhook_bad_signature_is_400(client, real_gateway, memory_db):
    memory_db.orders.append({"transaction_id": "pi_123", "status": "pending"})
    body, header = _signed(_event("payment_intent.succeeded"), secret="whsec_other")

    res = client.post("/api/v1/payment/webhook/stripe", content=body, headers={"Stripe-Signature": header})

    assert res.status_code == 400
    assert memory_db.orders[0]["status"] == "pending"


def test_stripe_webhook_without_secret_is_500(client, app):
    app.dependency_overrides[get_stripe_gateway] = lambda: StripeGateway("sk_test_dummy", "")
    res = client.post("/api/v1/payment/webhook/stripe", content="{}", headers={"Stripe-Signature": "t=1,v1=x"})
    assert res.status_code == 500
    assert "STRIPE" not in res.json()["detail"]


@pytest.fixture
def crypto_reference(app, override_services, payment_handlers, memory_db):
    feed = MagicMock()
    feed.get_price.return_value = Decimal("50000")
    payment_handlers[PaymentMethod.BITCOIN] = CryptoHandler(PaymentMethod.BITCOIN, feed, "bc1qtestdepositaddress")
    service = PaymentService(payment_handlers)
    app.dependency_overrides[get_payment_service] = lambda: service
    details = PaymentDetails(
        amount=Decimal("54.99"),
        payment_method=PaymentMethod.BITCOIN,
        billing_details=BillingDetails(
            name="Jane Doe",
            email="jane@example.com",
            address=Address(line1="1 Main St", city="Atlanta", postal_code="30301", country="US"),
        ),
    )
    return service.process_payment(details).transaction_id


def test_crypto_webhook_requires_secret(client, crypto_reference, memory_db):
    res = client.post(
        "/api/v1/payment/webhook/crypto",
        json={"reference": crypto_reference, "status": "confirmed"},
        headers={"X-Webhook-Secret": "wrong"},
    )
    assert res.status_code == 401
    assert memory_db.crypto_payments[crypto_reference]["status"] == "pending"


def test_crypto_webhook_confirms_once(client, crypto_reference, memory_db):
    headers = {"X-Webhook-Secret": "crypto-hook-secret"}
    body = {"reference": crypto_reference, "status": "confirmed", "tx_hash": "0xfeed"}

    first = client.post("/api/v1/payment/webhook/crypto", json=body, headers=headers)
    assert first.json() == {"status": "ok"}
    assert memory_db.crypto_payments[crypto_reference]["tx_hash"] == "0xfeed"

    verify = client.post("/api/v1/payment/verify", json={"transaction_id": crypto_reference, "payment_method": "bitcoin"})
    assert verify.json()["status"] == "completed"

    again = client.post("/api/v1/payment/webhook/crypto", json={**body, "status": "failed"}, headers=headers)
    assert again.json() == {"status": "ignored"}
    assert memory_db.crypto_payments[crypto_reference]["status"] == "confirmed"


def test_crypto_webhook_rejects_unknown_status(client, crypto_reference):
    res = client.post(
        "/api/v1/payment/webhook/crypto",
        json={"reference": crypto_reference, "status": "maybe"},
        headers={"X-Webhook-Secret": "crypto-hook-secret"},
    )
    assert res.status_code == 400
