import json

import pytest

from services.storage import settings_store
from services.webapp import dependencies


@pytest.fixture
def fresh_providers(monkeypatch, tmp_path):
    path = tmp_path / "settings_store.json"
    monkeypatch.setattr(settings_store, "SETTINGS_FILE", path)
    monkeypatch.setattr(dependencies, "routing_defaults", lambda: {"institutional_threshold_usd": 5000.0})
    dependencies.get_smart_router.cache_clear()
    yield path
    dependencies.get_smart_router.cache_clear()


def test_router_uses_persisted_threshold(fresh_providers):
    fresh_providers.write_text(json.dumps({"routing": {"institutional_threshold_usd": 1200}}), encoding="utf-8")
    assert dependencies.get_smart_router().threshold_usd == 1200.0


@pytest.mark.parametrize("bad", ["abc", "nan", -10])
def test_router_survives_hand_edited_threshold(fresh_providers, bad):
    fresh_providers.write_text(json.dumps({"routing": {"institutional_threshold_usd": bad}}), encoding="utf-8")

    smart_router = dependencies.get_smart_router()

    assert smart_router.threshold_usd == 5000.0
    assert smart_router.route("0xToken", 1000).execution_plan[0].startswith("Instant route")
