# module backend.payments.stripe_client
"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.
Une instance StripeGateway est créée au démarrage puis injectée (pas d'état global stripe.api_key).
"""
import json
import logging
from typing import Any, Dict, Optional

import stripe

from backend.utils.errors import ConfigurationError, NetworkError, ServerError, UpstreamError

logger = logging.getLogger(__name__)

WEBHOOK_TOLERANCE_SECONDS = 300

def _as_dict(obj) -> Dict[str, Any]:
    return dict(obj) if isinstance(obj, dict) else obj.to_dict()

class StripeGateway:
    def __init__(self, api_key: str, webhook_secret: str = "", client: Optional[stripe.StripeClient] = None):
        self._api_key = api_key
        self._webhook_secret = webhook_secret
        self._client = client

    def require_client(self) -> stripe.StripeClient:
        """
        Retourne le StripeClient prêt à l'emploi.
        - Sans STRIPE_SECRET_KEY: ConfigurationError (la requête échoue, pas le démarrage).
        """
        if self._client is None:
            if not self._api_key:
                raise ConfigurationError("STRIPE_SECRET_KEY manquant")
            self._client = stripe.StripeClient(self._api_key)
        return self._client

    def _call(self, action: str, fn, *args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except stripe.APIConnectionError as e:
            raise NetworkError(f"Stripe {action}: connexion impossible ({type(e).__name__})")
        except stripe.CardError as e:
            raise UpstreamError(f"Stripe {action}: carte refusée ({e.code})", code="card_declined")
        except stripe.StripeError as e:
            raise ServerError(f"Stripe {action}: {type(e).__name__} http_status={e.http_status}")

    def create_payment_intent(
        self,
        *,
        amount_minor: int,
        currency: str,
        receipt_email: str,
        metadata: Dict[str, str],
        shipping: Dict[str, Any],
    ) -> Dict[str, Any]:
        """
        Crée un PaymentIntent (confirmation côté client via client_secret).
        Retour: dict incluant "id", "client_secret", "status".
        """
        client = self.require_client()
        intent = self._call(
            "payment_intents.create",
            client.payment_intents.create,
            params={
                "amount": int(amount_minor),
                "currency": currency.lower(),
                "metadata": metadata,
                "receipt_email": receipt_email,
                "shipping": shipping,
                "automatic_payment_methods": {"enabled": True},
            },
        )
        return _as_dict(intent)

    def retrieve_payment_intent(self, intent_id: str) -> Dict[str, Any]:
        client = self.require_client()
        intent = self._call("payment_intents.retrieve", client.payment_intents.retrieve, intent_id)
        return _as_dict(intent)

    def parse_event(self, payload: bytes, sig_header: Optional[str]) -> Dict[str, Any]:
        """
        Valide la signature d'un événement Stripe (webhook) puis retourne son contenu JSON (dict).
        Lève ConfigurationError si STRIPE_WEBHOOK_SECRET est absent; les erreurs de signature
        (stripe.SignatureVerificationError) et de payload (ValueError) remontent à l'appelant.
        """
        if not self._webhook_secret:
            raise ConfigurationError("STRIPE_WEBHOOK_SECRET manquant")
        body = payload.decode("utf-8") if isinstance(payload, bytes) else payload
        stripe.WebhookSignature.verify_header(body, sig_header or "", self._webhook_secret, WEBHOOK_TOLERANCE_SECONDS)
        return json.loads(body)
