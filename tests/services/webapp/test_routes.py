import json
import re

import pytest
from fastapi.testclient import TestClient

from execution.basket_router import BasketRouter
from execution.ledger import SettlementLedger
from execution.smart_router import SmartOrderRouter
from services.storage import settings_store
from services.webapp import dependencies, routes
from services.webapp.main import app

HASH_PATTERN = re.compile(r"^0x[0-9a-f]{64}$")


class _RecordingExecutor:
    address = "0xRelayer"
    enabled = True

    def __init__(self):
        self.calls = []

    def mint(self, asset_id, to_address, amount):
        self.calls.append(("mint", asset_id, to_address, amount))
        return f"0xminted{len(self.calls)}"

    def transfer(self, asset_id, to_address, amount):
        raise AssertionError("transfer should not be needed")


@pytest.fixture
def service(monkeypatch, tmp_path):
    monkeypatch.setattr(settings_store, "SETTINGS_FILE", tmp_path / "settings_store.json")
    ledger = SettlementLedger()
    smart_router = SmartOrderRouter(threshold_usd=5000, ledger=ledger)
    basket_router = BasketRouter(smart_router, default_token="0xUnderlying")
    app.dependency_overrides[dependencies.get_settlement_ledger] = lambda: ledger
    app.dependency_overrides[dependencies.get_smart_router] = lambda: smart_router
    app.dependency_overrides[dependencies.get_basket_router] = lambda: basket_router
    monkeypatch.setattr(routes, "get_settlement_executor", lambda: None)
    client = TestClient(app)
    yield client, ledger, smart_router
    app.dependency_overrides.clear()


def test_health(service):
    client, _, _ = service
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json()["ok"] is True


def test_route_order_instant(service):
    client, ledger, _ = service
    response = client.post("/api/route-order", json={"tokenAddress": "0xToken", "amountUsd": 1000})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert len(body["txHashes"]) == 1
    assert HASH_PATTERN.match(body["txHashes"][0])
    assert body["executionPlan"][0].startswith("Instant route")
    assert any(step.startswith("(sim) Settled") for step in body["executionPlan"])
    assert body["txRecord"]["id"] == 1
    assert body["txRecord"]["tokenAddress"] == "0xToken"
    assert body["txRecord"]["amountUsd"] == 1000
    assert len(ledger) == 1


def test_route_order_smart(service):
    client, _, _ = service
    body = client.post("/api/route-order", json={"tokenAddress": "0xToken", "amountUsd": 20000}).json()

    assert body["executionPlan"][0] == "Smart routing engaged for $20,000.00"
    routes_taken = [step for step in body["executionPlan"] if step.startswith("→ Route ")]
    assert 1 <= len(routes_taken) <= 4
    assert body["success"] is True


@pytest.mark.parametrize(
    "payload",
    [
        {"amountUsd": 1000},
        {"tokenAddress": "0xToken"},
        {"tokenAddress": "", "amountUsd": 1000},
        {"tokenAddress": "0xToken", "amountUsd": 0},
        {"tokenAddress": "0xToken", "amountUsd": -10},
        {"tokenAddress": "0xToken", "amountUsd": "lots"},
    ],
)
def test_route_order_rejects_bad_requests(service, payload):
    client, ledger, _ = service
    response = client.post("/api/route-order", json=payload)
    assert response.status_code == 400
    assert response.json()["detail"]
    assert len(ledger) == 0


def test_route_order_on_chain_uses_relayer(service, monkeypatch):
    client, _, _ = service
    executor = _RecordingExecutor()
    monkeypatch.setattr(routes, "get_settlement_executor", lambda: executor)

    body = client.post(
        "/api/route-order",
        json={"tokenAddress": "0xToken", "amountUsd": 100, "recipient": "0xAlice", "doOnChain": True},
    ).json()

    assert executor.calls == [("mint", "0xToken", "0xAlice", "100.000000")]
    assert body["txHashes"] == ["0xminted1"]


def test_route_order_on_chain_without_relayer_is_simulated(service):
    client, _, _ = service
    body = client.post(
        "/api/route-order", json={"tokenAddress": "0xToken", "amountUsd": 100, "doOnChain": True}
    ).json()
    assert body["executionPlan"][-1].startswith("(sim) Settled")


def test_execute_basket(service):
    client, ledger, _ = service
    response = client.post(
        "/api/execute-basket",
        json={
            "allocations": [{"symbol": "btc", "percent": 60}, {"symbol": "ETH", "percent": 40}],
            "totalUsd": 1000,
        },
    )

    assert response.status_code == 200
    body = response.json()
    plan = body["executionPlan"]
    assert plan[0] == "Executing basket for $1,000.00 across 2 assets"
    first_eth = next(i for i, step in enumerate(plan) if step.startswith("ETH: "))
    assert all(not step.startswith("ETH: ") for step in plan[:first_eth])
    assert all(not step.startswith("BTC: ") for step in plan[first_eth:])
    assert body["fundTokenTx"] is None
    assert body["txRecord"]["type"] == "basket"
    assert len(ledger) == 3


def test_execute_basket_with_fund_token_on_chain(service, monkeypatch):
    client, _, _ = service
    executor = _RecordingExecutor()
    monkeypatch.setattr(routes, "get_settlement_executor", lambda: executor)

    body = client.post(
        "/api/execute-basket",
        json={
            "allocations": [{"symbol": "BTC", "percent": 100}],
            "totalUsd": 500,
            "fundTokenAddress": "0xFund",
            "doOnChain": True,
        },
    ).json()

    assert executor.calls[-1] == ("mint", "0xFund", "0xRelayer", "5.000000")
    assert body["fundTokenTx"] == "0xminted2"
    assert body["txRecord"]["fundTx"] == "0xminted2"


@pytest.mark.parametrize(
    "payload",
    [
        {"totalUsd": 1000},
        {"allocations": [], "totalUsd": 1000},
        {"allocations": [{"symbol": "BTC", "percent": 100}]},
        {"allocations": [{"symbol": "BTC", "percent": 100}], "totalUsd": 0},
        {"allocations": [{"percent": 100}], "totalUsd": 100},
    ],
)
def test_execute_basket_rejects_bad_requests(service, payload):
    client, _, _ = service
    assert client.post("/api/execute-basket", json=payload).status_code == 400


def test_txs_newest_first(service):
    client, _, _ = service
    client.post("/api/route-order", json={"tokenAddress": "0xA", "amountUsd": 10})
    client.post("/api/route-order", json={"tokenAddress": "0xB", "amountUsd": 20})

    txs = client.get("/api/txs").json()["txs"]
    assert [tx["tokenAddress"] for tx in txs] == ["0xB", "0xA"]
    assert [tx["id"] for tx in txs] == [2, 1]
    assert len(client.get("/api/txs", params={"limit": 1}).json()["txs"]) == 1
    assert client.get("/api/txs", params={"limit": -1}).status_code == 400


def test_quote(service):
    client, _, _ = service
    body = client.post("/api/quote", json={"amountUsd": 7500}).json()

    assert body["route"] == "smart"
    multipliers = [source["priceMultiplier"] for source in body["sources"]]
    assert len(multipliers) == 4
    assert multipliers == sorted(multipliers)
    assert client.post("/api/quote", json={}).status_code == 400


def test_routing_settings_update_is_applied_and_persisted(service):
    client, _, smart_router = service
    assert client.get("/api/settings/routing").json() == {"institutionalThresholdUsd": 5000}

    response = client.post("/api/settings/routing", json={"institutionalThresholdUsd": 500})
    assert response.status_code == 200
    assert smart_router.threshold_usd == 500
    stored = json.loads(settings_store.SETTINGS_FILE.read_text(encoding="utf-8"))
    assert stored["routing"] == {"institutional_threshold_usd": 500}

    body = client.post("/api/route-order", json={"tokenAddress": "0xToken", "amountUsd": 1000}).json()
    assert body["executionPlan"][0].startswith("Smart routing engaged")


@pytest.mark.parametrize("threshold", [0, -1, 2e9])
def test_routing_settings_validation(service, threshold):
    client, _, smart_router = service
    response = client.post("/api/settings/routing", json={"institutionalThresholdUsd": threshold})
    assert response.status_code == 400
    assert smart_router.threshold_usd == 5000
