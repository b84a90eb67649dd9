import base64
from decimal import Decimal
from unittest.mock import MagicMock

import httpx
import pytest
import stripe

from backend.payments import CoinGeckoPriceFeed, PayPalClient, StripeGateway
from backend.utils.errors import ConfigurationError, NetworkError, ServerError, UpstreamError


def _paypal(handler, client_id="cid", secret="csecret"):
    http = httpx.Client(base_url="https://paypal.test", transport=httpx.MockTransport(handler))
    return PayPalClient(client_id, secret, "https://paypal.test", http=http)


def test_paypal_create_order_uses_basic_auth():
    seen = {}

    def handler(request: httpx.Request):
        seen["auth"] = request.headers.get("authorization")
        seen["path"] = request.url.path
        return httpx.Response(201, json={"id": "ORDER-1", "status": "CREATED"})

    order = _paypal(handler).create_order({"intent": "CAPTURE"})

    assert order["id"] == "ORDER-1"
    assert seen["path"] == "/v2/checkout/orders"
    assert seen["auth"] == "Basic " + base64.b64encode(b"cid:csecret").decode("ascii")


@pytest.mark.parametrize("status,error,code", [
    (500, ServerError, "server_error"),
    (503, ServerError, "server_error"),
    (422, UpstreamError, "paypal_rejected"),
])
def test_paypal_http_errors_are_typed(status, error, code):
    client = _paypal(lambda request: httpx.Response(status, json={"name": "ERR"}))
    with pytest.raises(error) as exc:
        client.get_order("ORDER-1")
    assert exc.value.code == code


def test_paypal_transport_error_is_network_error():
    def handler(request):
        raise httpx.ConnectError("connexion refusée", request=request)

    with pytest.raises(NetworkError):
        _paypal(handler).capture_order("ORDER-1")


def test_paypal_missing_credentials_is_configuration_error():
    handler = MagicMock()
    with pytest.raises(ConfigurationError):
        _paypal(handler, client_id="", secret="").get_order("ORDER-1")
    handler.assert_not_called()


def _feed(handler):
    return CoinGeckoPriceFeed("https://prices.test/simple/price", http=httpx.Client(transport=httpx.MockTransport(handler)))


def test_price_feed_returns_decimal():
    def handler(request):
        assert request.url.params["ids"] == "bitcoin"
        assert request.url.params["vs_currencies"] == "usd"
        return httpx.Response(200, json={"bitcoin": {"usd": 65000.5}})

    assert _feed(handler).get_price("bitcoin", "USD") == Decimal("65000.5")


@pytest.mark.parametrize("response", [
    httpx.Response(200, json={}),
    httpx.Response(200, json={"bitcoin": {"usd": 0}}),
    httpx.Response(429, json={"status": "rate limited"}),
])
def test_price_feed_bad_responses_are_server_errors(response):
    with pytest.raises(ServerError):
        _feed(lambda request: response).get_price("bitcoin", "USD")


def test_price_feed_unreachable_is_network_error():
    def handler(request):
        raise httpx.ReadTimeout("timeout", request=request)

    with pytest.raises(NetworkError):
        _feed(handler).get_price("ethereum", "USD")


def test_stripe_without_key_is_configuration_error():
    with pytest.raises(ConfigurationError):
        StripeGateway("").create_payment_intent(
            amount_minor=100, currency="USD", receipt_email="a@b.co", metadata={}, shipping={}
        )


def test_stripe_create_payment_intent_params():
    client = MagicMock()
    client.payment_intents.create.return_value = {"id": "pi_1", "client_secret": "cs", "status": "requires_payment_method"}
    gateway = StripeGateway("sk_test_x", client=client)

    intent = gateway.create_payment_intent(
        amount_minor=5499, currency="USD", receipt_email="jane@example.com", metadata={"k": "v"}, shipping={"name": "Jane"}
    )

    params = client.payment_intents.create.call_args.kwargs["params"]
    assert params["amount"] == 5499
    assert params["currency"] == "usd"
    assert params["automatic_payment_methods"] == {"enabled": True}
    assert intent["id"] == "pi_1"


@pytest.mark.parametrize("raised,error,code", [
    (stripe.APIConnectionError("réseau"), NetworkError, "network_error"),
    (stripe.CardError("refusée", None, "card_declined"), UpstreamError, "card_declined"),
    (stripe.InvalidRequestError("bad", None), ServerError, "server_error"),
])
def test_stripe_errors_are_typed(raised, error, code):
    client = MagicMock()
    client.payment_intents.retrieve.side_effect = raised
    with pytest.raises(error) as exc:
        StripeGateway("sk_test_x", client=client).retrieve_payment_intent("pi_1")
    assert exc.value.code == code


def test_stripe_parse_event_requires_webhook_secret():
    with pytest.raises(ConfigurationError):
        StripeGateway("sk_test_x").parse_event(b"{}", "t=1,v1=abc")


def test_stripe_parse_event_rejects_bad_signature():
    with pytest.raises(stripe.SignatureVerificationError):
        StripeGateway("sk_test_x", "whsec_test").parse_event(b'{"type": "x"}', "t=1,v1=bad")
