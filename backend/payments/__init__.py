"""
Module 'payments' (feature-first): point d'entrée public.
Réunit modèles, handlers par méthode, clients fournisseurs (Stripe, PayPal, CoinGecko),
repository BD et service de dispatch.
"""

from .models import (
    PaymentMethod,
    PaymentStatus,
    PaymentDetails,
    PaymentResult,
    OrderDetails,
)
from .handlers import PaymentHandler, CardHandler, CryptoHandler, PayPalHandler
from .stripe_client import StripeGateway
from .paypal_client import PayPalClient
from .price_feed import CoinGeckoPriceFeed
from .notifier import FailureNotifier
from .service import PaymentService, record_order

__all__ = [
    # models
    "PaymentMethod",
    "PaymentStatus",
    "PaymentDetails",
    "PaymentResult",
    "OrderDetails",
    # handlers
    "PaymentHandler",
    "CardHandler",
    "CryptoHandler",
    "PayPalHandler",
    # providers
    "StripeGateway",
    "PayPalClient",
    "CoinGeckoPriceFeed",
    # services
    "FailureNotifier",
    "PaymentService",
    "record_order",
]
