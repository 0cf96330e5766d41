import json

import httpx
import pytest

from exchanges.ramp_backend import RampBackendClient, RampBackendError
from execution.schemas import BasketAllocation


def _client(handler):
    return RampBackendClient("http://backend.test/", transport=httpx.MockTransport(handler))


def test_route_order_posts_camel_case_body():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True, "executionPlan": [], "txHashes": ["0x1"]})

    payload = _client(handler).route_order("0xToken", 1000, recipient="0xAlice")

    assert seen["path"] == "/api/route-order"
    assert seen["body"] == {"tokenAddress": "0xToken", "amountUsd": 1000, "doOnChain": False, "recipient": "0xAlice"}
    assert payload["txHashes"] == ["0x1"]


def test_execute_basket_serializes_allocations():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"success": True})

    _client(handler).execute_basket(
        [BasketAllocation("BTC", 60), BasketAllocation("ETH", 40)], 1000, fund_token_address="0xFund"
    )

    assert seen["body"]["allocations"] == [{"symbol": "BTC", "percent": 60}, {"symbol": "ETH", "percent": 40}]
    assert seen["body"]["fundTokenAddress"] == "0xFund"
    assert "recipient" not in seen["body"]


def test_list_txs_and_health():
    def handler(request):
        if request.url.path == "/api/txs":
            return httpx.Response(200, json={"txs": [{"id": 2}, {"id": 1}]})
        return httpx.Response(200, json={"ok": True, "time": 1})

    client = _client(handler)
    assert [tx["id"] for tx in client.list_txs()] == [2, 1]
    assert client.health()["ok"] is True


def test_error_status_raises_with_detail():
    def handler(request):
        return httpx.Response(400, json={"detail": "tokenAddress: Field required"})

    with pytest.raises(RampBackendError) as excinfo:
        _client(handler).route_order("0xToken", 10)

    assert "400" in str(excinfo.value)
    assert "tokenAddress" in str(excinfo.value)
    assert excinfo.value.payload["detail"] == "tokenAddress: Field required"


def test_transport_errors_are_wrapped():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(RampBackendError):
        _client(handler).quote(100)


def test_base_url_required():
    with pytest.raises(ValueError):
        RampBackendClient("")


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>gateway</html>", headers={"content-type": "text/html"}),
        httpx.Response(200, json=["not", "an", "object"]),
    ],
)
def test_unexpected_success_body_raises(response):
    with pytest.raises(RampBackendError):
        _client(lambda request: response).route_order("0xToken", 10)


def test_list_txs_rejects_non_list():
    def handler(request):
        return httpx.Response(200, json={"txs": "nope"})

    with pytest.raises(RampBackendError):
        _client(handler).list_txs()
