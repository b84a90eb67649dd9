# Scénarios de charge: navigation boutique (catalogue + panier) et formulaires artiste.
# Lancer: locust -f tests/load/locustfile.py --host http://localhost:8000
from locust import HttpUser, task, between
import os
import random
import uuid

LOCUST_PRODUCT_IDS = [p.strip() for p in os.getenv("LOCUST_PRODUCT_IDS", "").split(",") if p.strip()]
LOCUST_SUBSCRIBE = os.getenv("LOCUST_SUBSCRIBE", "0") == "1"


class ShopVisitor(HttpUser):
    wait_time = between(0.5, 2.0)

    def on_start(self):
        # Le cookie de session (panier) est conservé par le client HTTP de locust
        self.products = []
        with self.client.get("/api/v1/products", name="products:list", catch_response=True) as res:
            if res.status_code == 200:
                self.products = res.json().get("products", [])
                res.success()
            else:
                res.failure(f"catalogue indisponible: {res.status_code}")

    def _pick_product(self):
        candidates = [p for p in self.products if not LOCUST_PRODUCT_IDS or p["id"] in LOCUST_PRODUCT_IDS]
        return random.choice(candidates) if candidates else None

    @task(5)
    def browse_catalog(self):
        self.client.get("/api/v1/products", name="products:list")

    @task(3)
    def view_cart(self):
        self.client.get("/api/v1/cart", name="cart:get")

    @task(2)
    def add_to_cart(self):
        product = self._pick_product()
        if not product:
            return
        payload = {"product_id": product["id"], "quantity": 1}
        if product.get("sizes"):
            payload["size"] = random.choice(product["sizes"])
        with self.client.post("/api/v1/cart/items", json=payload, name="cart:add", catch_response=True) as res:
            # 409 (stock épuisé) et 429 (rate limit) sont des réponses attendues sous charge
            if res.status_code in (201, 409, 429):
                res.success()
            else:
                res.failure(f"ajout panier: {res.status_code}")

    @task(1)
    def checkout_state(self):
        self.client.get("/api/v1/checkout", name="checkout:get")

    @task(1)
    def booking_packages(self):
        self.client.get("/api/v1/booking/packages", name="booking:packages")

    @task(1)
    def subscribe(self):
        if not LOCUST_SUBSCRIBE:
            return
        email = f"load-{uuid.uuid4().hex[:12]}@example.com"
        with self.client.post("/api/v1/subscribe", json={"email": email, "source": "footer"}, name="newsletter:subscribe", catch_response=True) as res:
            if res.status_code in (201, 429):
                res.success()
            else:
                res.failure(f"inscription: {res.status_code}")

    @task(1)
    def health(self):
        self.client.get("/health", name="health")
