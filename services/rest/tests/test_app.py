import random

import httpx
import pytest
from fastapi.testclient import TestClient

from services.feed.acquirer import PriceFeedAcquirer
from services.feed.config import Settings
from services.feed.upstream import build_upstream
from services.rest.main import app, get_acquirer, get_settings

client = TestClient(app)

ORACLE = "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU"
T0 = 1714564800000  # 2024-05-01T12:00:00Z
HOUR_MS = 3600 * 1000


@pytest.fixture(autouse=True)
def _clear_overrides():
    yield
    app.dependency_overrides.clear()

def configure(handler=None, **overrides):
    params = {"feed_mode": "live", "price_provider": "coingecko"}
    params.update(overrides)
    settings = Settings(_env_file=None, **params)
    transport = httpx.MockTransport(handler) if handler else None
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_acquirer] = lambda: PriceFeedAcquirer(
        settings, upstream=build_upstream(settings, transport=transport), rng=random.Random(3)
    )

def respond(status=200, json=None):
    def handler(request):
        return httpx.Response(status, json=json)
    return handler


def test_health_ok():
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"

def test_live_price_data_sample_mode():
    configure(feed_mode="sample")
    resp = client.get("/live-price-data")
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["count"] == 2
    assert data["isSampleData"] is True
    assert data["origin"] == "sample"
    assert "fallback" not in data
    assert data["timestamp"].endswith("Z")

def test_live_price_data_live():
    prices = [[T0 + i * HOUR_MS, 150.0 + i] for i in range(3)]
    configure(respond(json={"prices": prices}))
    resp = client.get("/live-price-data")
    assert resp.status_code == 200
    data = resp.json()
    assert data["origin"] == "live"
    assert data["count"] == 3
    assert "fallback" not in data and "isSampleData" not in data
    assert data["activities"][0] == {
        "price": 150.0,
        "created_at": "2024-05-01T12:00:00.000Z",
        "triggered": False,
    }

def test_live_price_data_upstream_503_is_fallback():
    configure(respond(status=503, json={}))
    resp = client.get("/live-price-data")
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["fallback"] is True
    assert data["count"] == 24
    assert all(190.0 <= a["price"] <= 210.0 for a in data["activities"])
    assert "503" in data["message"]

def test_live_price_data_strict_hard_failure():
    configure(respond(status=503, json={}), feed_mode="strict", fallback_base_price=-1)
    resp = client.get("/live-price-data")
    assert resp.status_code == 500
    data = resp.json()
    assert data["success"] is False
    assert "fallback unavailable" in data["error"]

def test_live_price_data_live_mode_never_errors():
    configure(respond(status=503, json={}), fallback_base_price=-1)
    resp = client.get("/live-price-data")
    assert resp.status_code == 200
    assert resp.json()["isSampleData"] is True

def test_price_latest():
    prices = [[T0 + i * HOUR_MS, 150.0 + i] for i in range(3)]
    configure(respond(json={"prices": prices}))
    resp = client.get("/price/latest")
    assert resp.status_code == 200
    assert resp.json() == {"t": "2024-05-01T14:00:00.000Z", "c": 152.0, "origin": "live"}

def test_test_wallet_reports_oracle():
    configure(payment_recipient_wallet=ORACLE)
    resp = client.get("/test-wallet")
    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["oracleAddress"] == ORACLE
    assert "tip" in data and "instructions" not in data

def test_test_wallet_debug():
    configure(oracle_public_key=ORACLE)
    resp = client.get("/test-wallet", params={"debug": "true"})
    data = resp.json()
    assert data["oracleAddress"] == ORACLE
    assert len(data["instructions"]) == 4
    assert "tip" not in data

@pytest.mark.parametrize("address", ["", "not-a-wallet-0OIl"])
def test_test_wallet_unconfigured(address):
    configure(payment_recipient_wallet=address, oracle_public_key="")
    resp = client.get("/test-wallet")
    assert resp.status_code == 500
    assert resp.json()["success"] is False

def test_debug_oracle():
    configure(payment_recipient_wallet=ORACLE, solana_network="mainnet", feed_mode="strict")
    resp = client.get("/debug/oracle")
    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "oracleAddress": ORACLE,
        "network": "mainnet",
        "feedMode": "strict",
        "priceProvider": "coingecko",
    }

def _raise_clock():
    raise OSError("clock unavailable")

def test_live_price_data_strict_clock_failure():
    settings = Settings(_env_file=None, feed_mode="strict", price_provider="coingecko")
    app.dependency_overrides[get_acquirer] = lambda: PriceFeedAcquirer(settings, clock=_raise_clock)
    resp = client.get("/live-price-data")
    assert resp.status_code == 500
    assert resp.json() == {"success": False, "error": "clock unavailable: clock unavailable"}
