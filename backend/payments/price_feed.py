"""
Cours crypto/fiat via l'API publique CoinGecko (/simple/price).
"""
from decimal import Decimal, InvalidOperation
from typing import Optional

import httpx

from backend.utils.errors import NetworkError, ServerError


class CoinGeckoPriceFeed:
    def __init__(self, url: str, timeout: float = 10.0, http: Optional[httpx.Client] = None):
        self._url = url
        self._http = http or httpx.Client(timeout=timeout)

    def close(self) -> None:
        self._http.close()

    def get_price(self, coin_id: str, currency: str) -> Decimal:
        """Prix d'une unité de `coin_id` (ex: bitcoin) dans la devise fiat `currency`."""
        vs = currency.lower()
        try:
            resp = self._http.get(self._url, params={"ids": coin_id, "vs_currencies": vs})
        except httpx.TransportError as e:
            raise NetworkError(f"Flux de prix injoignable: {type(e).__name__}")
        if resp.status_code != 200:
            raise ServerError(f"Flux de prix: HTTP {resp.status_code}")
        try:
            price = Decimal(str(resp.json()[coin_id][vs]))
        except (KeyError, TypeError, ValueError, InvalidOperation):
            raise ServerError(f"Flux de prix: cours {coin_id}/{vs} absent de la réponse")
        if price <= 0:
            raise ServerError(f"Flux de prix: cours {coin_id}/{vs} invalide")
        return price
