"""
Lifespan FastAPI: initialisation/arrêt des ressources partagées.
- Construit une seule fois les clients (Mailer SMTP, Stripe, PayPal, flux de prix crypto,
  catalogue, service de paiement) et les expose sur app.state pour l'injection de dépendances.
- Vérifie la configuration e-mail: échec immédiat du démarrage si elle est incomplète.
- Initialise FastAPILimiter (Redis) avec options de test (fakeredis).
- Variables d'environnement supportées:
  - DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS=1: désactive complètement (tests)
  - USE_FAKE_REDIS_FOR_TESTS=1: utilise fakeredis (tests)
  - LOCAL_RATE_LIMIT_FALLBACK=1: active un fallback local si l'init échoue
  - MAIL_VERIFY_CONNECTION=1: teste la connexion SMTP au démarrage
"""
import os
import logging
import redis.asyncio as aioredis
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi_limiter import FastAPILimiter

from backend import config
from backend.catalog.service import CatalogAccessor
from backend.infra.mailer import Mailer, MailSettings
from backend.payments import (
    CardHandler,
    CoinGeckoPriceFeed,
    CryptoHandler,
    FailureNotifier,
    PaymentMethod,
    PaymentService,
    PayPalClient,
    PayPalHandler,
    StripeGateway,
)

try:
    from fakeredis.aioredis import FakeRedis  # tests only
except ImportError:
    FakeRedis = None

logger = logging.getLogger("uvicorn.error")


def build_services(app: FastAPI) -> None:
    """Construit les clients partagés; lève ConfigurationError si la configuration mail est invalide."""
    mailer = Mailer(MailSettings.from_config(), timeout=config.HTTP_TIMEOUT_SECONDS)
    mailer.verify_config()
    if config.MAIL_VERIFY_CONNECTION:
        mailer.check_connection()
        logger.info("Mail transport verified")

    stripe_gateway = StripeGateway(config.STRIPE_SECRET_KEY, config.STRIPE_WEBHOOK_SECRET)
    paypal = PayPalClient(
        config.PAYPAL_CLIENT_ID,
        config.PAYPAL_CLIENT_SECRET,
        config.PAYPAL_API_BASE,
        timeout=config.HTTP_TIMEOUT_SECONDS,
    )
    price_feed = CoinGeckoPriceFeed(config.PRICE_FEED_URL, timeout=config.HTTP_TIMEOUT_SECONDS)
    handlers = {
        PaymentMethod.CARD: CardHandler(stripe_gateway),
        PaymentMethod.BITCOIN: CryptoHandler(PaymentMethod.BITCOIN, price_feed, config.BITCOIN_PAYMENT_ADDRESS),
        PaymentMethod.ETHEREUM: CryptoHandler(PaymentMethod.ETHEREUM, price_feed, config.ETHEREUM_PAYMENT_ADDRESS),
        PaymentMethod.PAYPAL: PayPalHandler(paypal, config.BASE_URL),
    }

    app.state.mailer = mailer
    app.state.stripe_gateway = stripe_gateway
    app.state.paypal_client = paypal
    app.state.price_feed = price_feed
    app.state.payment_service = PaymentService(handlers, FailureNotifier(config.PAYMENT_NOTICE_WINDOW_SECONDS))
    app.state.catalog = CatalogAccessor(ttl_seconds=config.CATALOG_CACHE_TTL_SECONDS)
    logger.info("Services initialised (mail, stripe, paypal, price feed, catalog)")


def close_services(app: FastAPI) -> None:
    for name in ("paypal_client", "price_feed"):
        client = getattr(app.state, name, None)
        if client is not None:
            client.close()
            setattr(app.state, name, None)


async def init_rate_limiter(app: FastAPI) -> None:
    """
    Configure le rate limiting et gère les fallbacks.
    - En cas d'échec de Redis et sans fallback, le rate limiting est désactivé proprement.
    - Les logs indiquent l'état effectif (enabled/disabled) pour observabilité.
    """
    if os.getenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS") == "1":
        app.state.rate_limit_enabled = False
        logger.info("Rate limiting disabled by DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS")
        return
    try:
        if os.getenv("USE_FAKE_REDIS_FOR_TESTS") == "1":
            if not FakeRedis:
                raise RuntimeError("USE_FAKE_REDIS_FOR_TESTS=1 mais fakeredis n'est pas installé.")
            r = FakeRedis(decode_responses=True)
        else:
            redis_url = os.getenv("RATE_LIMIT_REDIS_URL", "redis://127.0.0.1:6379/0")
            r = aioredis.from_url(redis_url, encoding="utf-8", decode_responses=True)

        await FastAPILimiter.init(r)
        app.state.rate_limit_enabled = True
        logger.info("Rate limiting enabled")
    except Exception as e:
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            app.state.rate_limit_enabled = True
            logger.warning("Rate limiting falling back to local in-memory due to init error: %s", e)
        else:
            app.state.rate_limit_enabled = False
            logger.warning("Rate limiting disabled due to init error: %s", e)


@asynccontextmanager
async def lifespan(app: FastAPI):
    build_services(app)
    await init_rate_limiter(app)
    try:
        yield
    finally:
        close_services(app)
        logger.info("Services closed")
