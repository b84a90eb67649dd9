"""
Client HTTP PayPal (API Orders v2), authentification Basic client_id:secret.
Construit une fois au démarrage (httpx.Client partagé), fermé au shutdown.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from backend.utils.errors import ConfigurationError, NetworkError, ServerError, UpstreamError

logger = logging.getLogger(__name__)


class PayPalClient:
    def __init__(
        self,
        client_id: str,
        client_secret: str,
        api_base: str,
        timeout: float = 10.0,
        http: Optional[httpx.Client] = None,
    ):
        self._client_id = client_id
        self._client_secret = client_secret
        self._http = http or httpx.Client(base_url=api_base, timeout=timeout)

    def close(self) -> None:
        self._http.close()

    def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        if not self._client_id or not self._client_secret:
            raise ConfigurationError("PAYPAL_CLIENT_ID / PAYPAL_CLIENT_SECRET manquants")
        try:
            resp = self._http.request(
                method,
                path,
                json=json,
                auth=(self._client_id, self._client_secret),
                headers={"Content-Type": "application/json"},
            )
        except httpx.TransportError as e:
            raise NetworkError(f"PayPal {method} {path}: {type(e).__name__}")
        if resp.status_code >= 500:
            raise ServerError(f"PayPal {method} {path}: HTTP {resp.status_code}")
        if resp.status_code >= 400:
            raise UpstreamError(f"PayPal {method} {path}: HTTP {resp.status_code}", code="paypal_rejected")
        try:
            return resp.json()
        except ValueError:
            raise ServerError(f"PayPal {method} {path}: réponse non JSON")

    def create_order(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/v2/checkout/orders", json=payload)

    def get_order(self, order_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/v2/checkout/orders/{order_id}")

    def capture_order(self, order_id: str) -> Dict[str, Any]:
        return self._request("POST", f"/v2/checkout/orders/{order_id}/capture", json={})
