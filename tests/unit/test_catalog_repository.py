from unittest.mock import MagicMock

import httpx
import pytest
from postgrest.exceptions import APIError

from backend.catalog import repository
from backend.utils.errors import NetworkError, ServerError


def _service_client(monkeypatch, data=None, error=None):
    client = MagicMock()
    execute = client.rpc.return_value.execute
    if error is not None:
        execute.side_effect = error
    else:
        execute.return_value = MagicMock(data=data)
    monkeypatch.setattr("backend.infra.supabase_client.get_service_supabase", lambda: client)
    return client


@pytest.mark.parametrize("data,expected", [
    (3, 3),
    ([{"decrement_product_stock": 2}], 2),
    ([], None),
    (None, None),
])
def test_decrement_stock_parses_rpc_result(monkeypatch, data, expected):
    client = _service_client(monkeypatch, data=data)
    assert repository.decrement_stock("vinyl-lp", 1) == expected
    client.rpc.assert_called_once_with("decrement_product_stock", {"p_product_id": "vinyl-lp", "p_quantity": 1})


def test_decrement_stock_unreachable_is_network_error(monkeypatch):
    _service_client(monkeypatch, error=httpx.ConnectError("connexion refusée"))
    with pytest.raises(NetworkError):
        repository.decrement_stock("vinyl-lp", 1)


def test_decrement_stock_api_error_is_server_error(monkeypatch):
    _service_client(monkeypatch, error=APIError({"message": "boom", "code": "XX000", "hint": None, "details": None}))
    with pytest.raises(ServerError):
        repository.decrement_stock("vinyl-lp", 1)


def test_fetch_products_api_error_is_server_error(monkeypatch):
    client = MagicMock()
    client.table.return_value.select.return_value.order.return_value.execute.side_effect = APIError(
        {"message": "boom", "code": "XX000", "hint": None, "details": None}
    )
    monkeypatch.setattr("backend.infra.supabase_client.get_supabase", lambda: client)
    with pytest.raises(ServerError):
        repository.fetch_products()


def test_fetch_products_returns_rows(monkeypatch):
    client = MagicMock()
    rows = [{"id": "vinyl-lp", "name": "Vinyle LP", "price": "25.00", "stock": 2}]
    client.table.return_value.select.return_value.order.return_value.execute.return_value = MagicMock(data=rows)
    monkeypatch.setattr("backend.infra.supabase_client.get_supabase", lambda: client)
    assert repository.fetch_products() == rows
    client.table.assert_called_once_with("products")
