import asyncio

import pytest
from fastapi.testclient import TestClient

from storefront.api import deps, health, routes_catalogue
from storefront.db.readiness import StoreNotReady, StoreReadiness
from storefront.main import app

client = TestClient(app)


class Counter:
    def __init__(self, fail=False):
        self.calls = 0
        self.fail = fail

    def __call__(self):
        self.calls += 1
        if self.fail:
            raise ConnectionError("connection refused")


def _failed_readiness():
    r = StoreReadiness(Counter(fail=True))
    with pytest.raises(StoreNotReady):
        r.initialize()
    return r


def test_initializer_runs_once():
    init = Counter()
    r = StoreReadiness(init)
    r.initialize()
    r.initialize()
    asyncio.run(r.wait())
    assert init.calls == 1
    assert r.is_ready


def test_wait_initializes_on_first_use():
    init = Counter()
    r = StoreReadiness(init)
    assert not r.is_ready
    asyncio.run(r.wait())
    assert init.calls == 1
    assert r.is_ready


def test_failure_is_reported_without_retrying():
    init = Counter(fail=True)
    r = StoreReadiness(init)
    with pytest.raises(StoreNotReady):
        r.initialize()
    with pytest.raises(StoreNotReady):
        asyncio.run(r.wait())
    assert init.calls == 1
    assert not r.is_ready
    assert isinstance(r.error, ConnectionError)


def test_reset_allows_a_new_attempt():
    init = Counter(fail=True)
    r = StoreReadiness(init)
    with pytest.raises(StoreNotReady):
        r.initialize()
    init.fail = False
    r.reset()
    r.initialize()
    assert init.calls == 2
    assert r.is_ready


def test_views_answer_503_when_store_is_not_ready(monkeypatch):
    monkeypatch.setattr(deps, "store_readiness", _failed_readiness())
    res = client.get("/api/products")
    assert res.status_code == 503
    assert res.json()["detail"] == "Store connection unavailable"
    assert client.get("/api/cart").status_code == 503


def test_health_reports_degraded_when_not_ready(monkeypatch):
    monkeypatch.setattr(health, "store_readiness", _failed_readiness())
    body = client.get("/api/health").json()
    assert body["status"] == "degraded"
    assert body["db"] is True
    assert body["ready"] is False


def test_live_listing_reports_store_not_ready(monkeypatch):
    monkeypatch.setattr(routes_catalogue, "store_readiness", _failed_readiness())
    with client.websocket_connect("/api/products/live") as ws:
        assert ws.receive_json() == {"error": "Store connection unavailable"}
