import pytest

from backend.utils.errors import NetworkError, ServerError

pytestmark = pytest.mark.usefixtures("memory_db", "override_services")


def _unreachable(*args):
    raise NetworkError("Stockage des paniers injoignable: ConnectError")


def test_read_failure_is_502_and_cart_survives(client, memory_db, monkeypatch):
    assert client.post("/api/v1/cart/items", json={"product_id": "vinyl-lp", "quantity": 2}).status_code == 201
    assert memory_db.products["vinyl-lp"]["stock"] == 0

    with monkeypatch.context() as m:
        m.setattr("backend.cart.repository.load_cart", _unreachable)
        res = client.get("/api/v1/cart")
        assert res.status_code == 502
        assert res.json()["code"] == "network_error"
        assert client.delete("/api/v1/cart").status_code == 502

    cart = client.get("/api/v1/cart").json()
    assert cart["count"] == 2
    assert cart["total"] == "50.00"


def test_flush_failure_after_reservation_gives_stock_back(client, memory_db, monkeypatch):
    def _down(*args):
        raise ServerError("Enregistrement du panier impossible")

    with monkeypatch.context() as m:
        m.setattr("backend.cart.repository.save_cart", _down)
        res = client.post("/api/v1/cart/items", json={"product_id": "vinyl-lp", "quantity": 2})

    assert res.status_code == 502
    assert res.json()["code"] == "server_error"
    assert memory_db.products["vinyl-lp"]["stock"] == 2
    assert client.get("/api/v1/cart").json()["count"] == 0


def test_concurrent_write_on_same_session_is_409_and_stock_restored(client, memory_db, monkeypatch):
    assert client.post("/api/v1/cart/items", json={"product_id": "tee-black", "size": "S"}).status_code == 201
    load = memory_db.load_cart

    def _load_then_other_request_writes(cart_id):
        row = load(cart_id)
        memory_db.save_cart(cart_id, {"items": [], "total": "0.00"}, row["version"])
        return row

    with monkeypatch.context() as m:
        m.setattr("backend.cart.repository.load_cart", _load_then_other_request_writes)
        res = client.post("/api/v1/cart/items", json={"product_id": "vinyl-lp"})

    assert res.status_code == 409
    assert memory_db.products["vinyl-lp"]["stock"] == 2
    assert client.get("/api/v1/cart").json()["items"] == []


def test_reading_cart_does_not_write(client, memory_db):
    client.get("/api/v1/cart")
    assert memory_db.carts == {}
