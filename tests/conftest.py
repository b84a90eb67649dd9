import os

# Configuration de test: doit précéder tout import de backend (config lue à l'import)
os.environ.update({
    "EMAIL_HOST": "smtp.example.test",
    "EMAIL_PORT": "587",
    "EMAIL_USER": "mailer",
    "EMAIL_PASS": "smtp-test-password",
    "EMAIL_FROM": "noreply@example.com",
    "ADMIN_EMAIL": "admin@example.com",
    "DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS": "1",
    "ALLOWED_HOSTS": "testserver,localhost,127.0.0.1",
    "CRYPTO_WEBHOOK_SECRET": "crypto-hook-secret",
    "BITCOIN_PAYMENT_ADDRESS": "bc1qtestdepositaddress",
    "ETHEREUM_PAYMENT_ADDRESS": "0xTestDepositAddress",
    "CHECKOUT_POLL_MAX_ATTEMPTS": "3",
    "CHECKOUT_POLL_INTERVAL_SECONDS": "0",
    "BASE_URL": "http://testserver",
})

import copy
import uuid
from decimal import Decimal
from typing import Any, Dict, Generator, Optional
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from backend.app import app as fastapi_app
from backend.app_setup.dependencies import get_catalog, get_mailer, get_payment_service, get_stripe_gateway
from backend.catalog.service import CatalogAccessor
from backend.payments import FailureNotifier, PaymentMethod, PaymentService
from backend.payments.models import Address, BillingDetails, PaymentDetails

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)
        elif "tests/functional/" in nodeid:
            item.add_marker(pytest.mark.functional)

PRODUCTS = [
    {
        "id": "tee-black",
        "name": "T-shirt noir",
        "description": "Coton bio",
        "price": "54.99",
        "stock": 5,
        "image": "/img/tee-black.png",
        "images": [],
        "sizes": ["S", "M", "L"],
        "category": "apparel",
    },
    {
        "id": "vinyl-lp",
        "name": "Vinyle LP",
        "description": "Premier album",
        "price": "25.00",
        "stock": 2,
        "image": None,
        "images": ["/img/vinyl.png"],
        "sizes": None,
        "category": "music",
    },
]


class MemoryDB:
    """Remplace les repositories Supabase par des tables en mémoire."""

    def __init__(self):
        self.products: Dict[str, Dict[str, Any]] = {p["id"]: copy.deepcopy(p) for p in PRODUCTS}
        self.carts: Dict[str, Dict[str, Any]] = {}
        self.orders: list = []
        self.crypto_payments: Dict[str, Dict[str, Any]] = {}
        self.bookings: Dict[str, Dict[str, Any]] = {}
        self.subscribers: Dict[str, Dict[str, Any]] = {}
        self.contact_messages: list = []

    # cart
    def load_cart(self, cart_id: str) -> Optional[Dict[str, Any]]:
        return copy.deepcopy(self.carts.get(cart_id))

    def save_cart(self, cart_id: str, payload: Dict[str, Any], version: Optional[int] = None) -> bool:
        current = self.carts.get(cart_id)
        if version is None and current is not None:
            return False
        if version is not None and (current is None or current["version"] != version):
            return False
        self.carts[cart_id] = {**copy.deepcopy(payload), "version": (version or 0) + 1}
        return True

    # catalog
    def fetch_products(self):
        return [copy.deepcopy(p) for p in sorted(self.products.values(), key=lambda p: p["name"])]

    def get_product(self, product_id: str):
        return copy.deepcopy(self.products.get(product_id))

    def decrement_stock(self, product_id: str, quantity: int) -> Optional[int]:
        product = self.products.get(product_id)
        if not product or quantity < 1 or product["stock"] < quantity:
            return None
        product["stock"] -= quantity
        return product["stock"]

    def increment_stock(self, product_id: str, quantity: int) -> Optional[int]:
        product = self.products.get(product_id)
        if not product or quantity < 1:
            return None
        product["stock"] += quantity
        return product["stock"]

    # payments
    def insert_crypto_payment(self, record):
        row = {**record, "status": "pending"}
        self.crypto_payments[record["reference"]] = row
        return dict(row)

    def get_crypto_payment(self, reference):
        return copy.deepcopy(self.crypto_payments.get(reference))

    def settle_crypto_payment(self, reference, status, tx_hash=None):
        row = self.crypto_payments.get(reference)
        if not row or row["status"] != "pending":
            return None
        row.update({"status": status, "tx_hash": tx_hash})
        return dict(row)

    def insert_order(self, order):
        row = {**order, "id": uuid.uuid4().hex}
        self.orders.append(row)
        return dict(row)

    def update_order_status(self, transaction_id, status):
        updated = False
        for order in self.orders:
            if order["transaction_id"] == transaction_id:
                order["status"] = status
                updated = True
        return updated

    # booking
    def insert_booking(self, row):
        created = {**row, "id": uuid.uuid4().hex}
        self.bookings[created["id"]] = created
        return dict(created)

    def get_booking(self, booking_id):
        return copy.deepcopy(self.bookings.get(booking_id))

    # subscriptions
    def get_subscriber_by_email(self, email):
        for s in self.subscribers.values():
            if s["email"] == email:
                return dict(s)
        return None

    def get_subscriber_by_token(self, token):
        for s in self.subscribers.values():
            if s["verification_token"] == token:
                return dict(s)
        return None

    def insert_subscriber(self, *, email, source, token):
        row = {"id": uuid.uuid4().hex, "email": email, "source": source, "verification_token": token, "is_verified": False}
        self.subscribers[row["id"]] = row
        return dict(row)

    def mark_verified(self, subscriber_id, token):
        row = self.subscribers.get(subscriber_id)
        if not row or row["is_verified"] or row["verification_token"] != token:
            return None
        row.update({"is_verified": True, "verification_token": None})
        return dict(row)

    def touch_last_email_sent(self, subscriber_id):
        return subscriber_id in self.subscribers

    # contact
    def insert_message(self, row):
        created = {**row, "id": uuid.uuid4().hex}
        self.contact_messages.append(created)
        return dict(created)

    def install(self, monkeypatch) -> "MemoryDB":
        targets = {
            "backend.cart.repository": ("load_cart", "save_cart"),
            "backend.catalog.repository": ("fetch_products", "get_product", "decrement_stock", "increment_stock"),
            "backend.payments.repository": (
                "insert_crypto_payment", "get_crypto_payment", "settle_crypto_payment",
                "insert_order", "update_order_status",
            ),
            "backend.booking.repository": ("insert_booking", "get_booking"),
            "backend.subscriptions.repository": (
                "get_subscriber_by_email", "get_subscriber_by_token", "insert_subscriber",
                "mark_verified", "touch_last_email_sent",
            ),
            "backend.contact.repository": ("insert_message",),
        }
        for module, names in targets.items():
            for name in names:
                monkeypatch.setattr(f"{module}.{name}", getattr(self, name))
        return self


@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

# Évite tout accès réseau à Supabase (les tests de repository construisent leurs propres mocks)
@pytest.fixture(scope="function", autouse=True)
def mock_db_dependency(monkeypatch):
    monkeypatch.setattr("backend.infra.supabase_client.get_supabase", lambda: MagicMock())
    monkeypatch.setattr("backend.infra.supabase_client.get_service_supabase", lambda: MagicMock())
    monkeypatch.setattr("backend.health.service.health_supabase_info", lambda: {"connect_ok": True})

@pytest.fixture
def memory_db(monkeypatch) -> MemoryDB:
    return MemoryDB().install(monkeypatch)

@pytest.fixture
def mailer():
    m = MagicMock()
    m.admin_email = "admin@example.com"
    return m

@pytest.fixture
def payment_handlers():
    return {method: MagicMock(name=f"{method.value}_handler") for method in PaymentMethod}

@pytest.fixture
def payment_service(payment_handlers):
    return PaymentService(payment_handlers, FailureNotifier(window_seconds=3.0))

@pytest.fixture
def stripe_gateway():
    return MagicMock()

@pytest.fixture
def catalog():
    return CatalogAccessor(ttl_seconds=60)

@pytest.fixture
def override_services(app, mailer, payment_service, stripe_gateway, catalog):
    """Injecte les doubles de test à la place des clients construits par le lifespan."""
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_payment_service] = lambda: payment_service
    app.dependency_overrides[get_stripe_gateway] = lambda: stripe_gateway
    app.dependency_overrides[get_catalog] = lambda: catalog
    try:
        yield
    finally:
        app.dependency_overrides.clear()

@pytest.fixture
def billing() -> BillingDetails:
    return BillingDetails(
        name="Jane Doe",
        email="jane@example.com",
        address=Address(line1="1 Main St", city="Atlanta", state="GA", postal_code="30301", country="US"),
    )

@pytest.fixture
def make_details(billing):
    def _make(method: PaymentMethod, amount: str = "54.99") -> PaymentDetails:
        return PaymentDetails(amount=Decimal(amount), currency="USD", payment_method=method, billing_details=billing)
    return _make
