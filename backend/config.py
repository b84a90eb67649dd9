# backend.config
from decimal import Decimal
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=True)

TEMPLATES_DIR = Path(__file__).resolve().parent / "notifications" / "templates"

"""
Configuration centrale du backend.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, Stripe, PayPal, flux de prix crypto)
- Paramètres SMTP pour les notifications (booking, newsletter, contact)
- Réglages du tunnel de commande (polling, délai de fermeture) et du cache catalogue
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _env_int(name: str, default: int) -> int:
    raw = _clean_env(os.getenv(name) or "")
    try:
        return int(raw) if raw else default
    except ValueError:
        return default

def _env_float(name: str, default: float) -> float:
    raw = _clean_env(os.getenv(name) or "")
    try:
        return float(raw) if raw else default
    except ValueError:
        return default

def _env_flag(name: str, default: str = "false") -> bool:
    return _clean_env(os.getenv(name) or default).lower() in ("1", "true", "yes")

# Supabase: URLs et clés (public/anon/service)
# - SUPABASE_URL peut parfois être sans schéma: on préfixe en https:// si nécessaire
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or "")
SUPABASE_ANON = _clean_env(os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_KEY") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or "")

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Session / cookies
SESSION_SECRET_KEY = _clean_env(os.getenv("SESSION_SECRET_KEY") or "replace_me_with_a_long_random_secret")
COOKIE_SECURE = _env_flag("COOKIE_SECURE")

# CORS (dev)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if h.strip()]

# URL publique du site (liens de vérification, retours PayPal)
BASE_URL = _clean_env(os.getenv("BASE_URL") or "http://localhost:8000").rstrip("/")
ARTIST_NAME = _clean_env(os.getenv("ARTIST_NAME") or "Famous Arrel")

# Stripe: clé privée et secret webhook
STRIPE_PUBLIC_KEY = _clean_env(os.getenv("STRIPE_PUBLIC_KEY") or "")
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")
STRIPE_WEBHOOK_SECRET = _clean_env(os.getenv("STRIPE_WEBHOOK_SECRET") or "")

# PayPal (API Orders v2), sandbox par défaut
PAYPAL_CLIENT_ID = _clean_env(os.getenv("PAYPAL_CLIENT_ID") or "")
PAYPAL_CLIENT_SECRET = _clean_env(os.getenv("PAYPAL_CLIENT_SECRET") or "")
PAYPAL_API_BASE = _clean_env(os.getenv("PAYPAL_API_BASE") or "https://api-m.sandbox.paypal.com").rstrip("/")

# Crypto: flux de prix, adresses de dépôt, secret du webhook de confirmation
PRICE_FEED_URL = _clean_env(os.getenv("PRICE_FEED_URL") or "https://api.coingecko.com/api/v3/simple/price")
BITCOIN_PAYMENT_ADDRESS = _clean_env(os.getenv("BITCOIN_PAYMENT_ADDRESS") or "")
ETHEREUM_PAYMENT_ADDRESS = _clean_env(os.getenv("ETHEREUM_PAYMENT_ADDRESS") or "")
CRYPTO_WEBHOOK_SECRET = _clean_env(os.getenv("CRYPTO_WEBHOOK_SECRET") or "")

HTTP_TIMEOUT_SECONDS = _env_float("HTTP_TIMEOUT_SECONDS", 10.0)

# SMTP (obligatoire au démarrage)
EMAIL_HOST = _clean_env(os.getenv("EMAIL_HOST") or "")
EMAIL_PORT = _clean_env(os.getenv("EMAIL_PORT") or "")
EMAIL_USER = _clean_env(os.getenv("EMAIL_USER") or "")
EMAIL_PASS = _clean_env(os.getenv("EMAIL_PASS") or "")
EMAIL_FROM = _clean_env(os.getenv("EMAIL_FROM") or "")
ADMIN_EMAIL = _clean_env(os.getenv("ADMIN_EMAIL") or "")
# Test de connexion SMTP réel au démarrage (désactivé par défaut)
MAIL_VERIFY_CONNECTION = _env_flag("MAIL_VERIFY_CONNECTION")

# Paiements: minimums par méthode (USD)
MIN_PAYMENT_AMOUNTS = {
    "card": Decimal("1.00"),
    "bitcoin": Decimal("20.00"),
    "ethereum": Decimal("20.00"),
    "paypal": Decimal("1.00"),
}
DEFAULT_CURRENCY = _clean_env(os.getenv("DEFAULT_CURRENCY") or "USD").upper()
PAYMENT_NOTICE_WINDOW_SECONDS = _env_float("PAYMENT_NOTICE_WINDOW_SECONDS", 3.0)

# Tunnel de commande
CHECKOUT_POLL_MAX_ATTEMPTS = _env_int("CHECKOUT_POLL_MAX_ATTEMPTS", 30)
CHECKOUT_POLL_INTERVAL_SECONDS = _env_float("CHECKOUT_POLL_INTERVAL_SECONDS", 1.0)
CHECKOUT_CLOSE_DELAY_SECONDS = _env_float("CHECKOUT_CLOSE_DELAY_SECONDS", 3.0)

# Catalogue
CATALOG_CACHE_TTL_SECONDS = _env_float("CATALOG_CACHE_TTL_SECONDS", 60.0)
