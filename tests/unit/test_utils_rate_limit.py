from types import SimpleNamespace

import pytest
from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient
from fastapi_limiter import FastAPILimiter

from marketplace.utils import rate_limit
from marketplace.utils.rate_limit import optional_rate_limit, rate_limit_health_info


def _make_app(times=2, seconds=60):
    app = FastAPI()

    @app.post("/pay", dependencies=[Depends(optional_rate_limit(times, seconds))])
    def pay():
        return {"ok": True}

    @app.post("/checkout", dependencies=[Depends(optional_rate_limit(times, seconds))])
    def checkout():
        return {"ok": True}

    @app.get("/rl_info")
    def rl_info(request: Request):
        return rate_limit_health_info(request)

    return app


def test_local_fallback_blocks_after_limit(monkeypatch):
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")
    client = TestClient(_make_app(times=2))
    assert client.post("/pay").status_code == 200
    assert client.post("/pay").status_code == 200
    r = client.post("/pay")
    assert r.status_code == 429
    assert r.json()["detail"] == "Too Many Requests"

def test_buckets_are_per_path_and_per_buyer(monkeypatch):
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")
    client = TestClient(_make_app(times=1))
    headers = {"Authorization": "Bearer buyer-a"}
    assert client.post("/pay", headers=headers).status_code == 200
    assert client.post("/pay", headers=headers).status_code == 429
    # Autre chemin, même acheteur
    assert client.post("/checkout", headers=headers).status_code == 200
    # Autre acheteur, même chemin
    assert client.post("/pay", headers={"Authorization": "Bearer buyer-b"}).status_code == 200

def test_cookie_session_is_a_buyer_key(monkeypatch):
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")
    client = TestClient(_make_app(times=1))
    client.cookies.set("sb_access", "session-1")
    assert client.post("/pay").status_code == 200
    assert client.post("/pay").status_code == 429

def test_disabled_flag_bypasses_limit(monkeypatch):
    monkeypatch.delenv("LOCAL_RATE_LIMIT_FALLBACK", raising=False)
    app = _make_app(times=1)
    app.state.rate_limit_enabled = False
    client = TestClient(app)
    for _ in range(3):
        assert client.post("/pay").status_code == 200

def test_uninitialised_limiter_lets_requests_through(monkeypatch):
    monkeypatch.delenv("LOCAL_RATE_LIMIT_FALLBACK", raising=False)
    monkeypatch.setattr(FastAPILimiter, "redis", None, raising=False)
    app = _make_app(times=1)
    app.state.rate_limit_enabled = True
    client = TestClient(app)
    assert client.post("/pay").status_code == 200
    assert client.post("/pay").status_code == 200

def test_rate_limit_health_info(monkeypatch):
    monkeypatch.delenv("LOCAL_RATE_LIMIT_FALLBACK", raising=False)
    monkeypatch.setattr(FastAPILimiter, "redis", None, raising=False)
    app = _make_app()
    client = TestClient(app)
    app.state.rate_limit_enabled = True
    info = client.get("/rl_info").json()
    assert info == {"enabled": True, "ready": False, "backend": None}

    monkeypatch.setattr(FastAPILimiter, "redis", object(), raising=False)
    monkeypatch.setenv("RATE_LIMIT_REDIS_URL", "redis://cache.internal:6380/0")
    info = client.get("/rl_info").json()
    assert info["ready"] is True
    assert info["backend"] == "redis"
    assert info["redis"] == {"scheme": "redis", "host": "cache.internal", "port": 6380}

def test_local_store_drops_expired_keys(monkeypatch):
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")
    now = [1000.0]
    monkeypatch.setattr(rate_limit, "time", SimpleNamespace(time=lambda: now[0]))
    app = _make_app(times=5, seconds=60)
    client = TestClient(app)
    for i in range(3):
        client.post("/pay", headers={"Authorization": f"Bearer buyer-{i}"})
    client.post("/checkout", headers={"Authorization": "Bearer buyer-0"})
    assert len(app.state._rl_store) == 4

    now[0] += 61
    assert client.post("/pay", headers={"Authorization": "Bearer buyer-9"}).status_code == 200
    pay_keys = [k for k in app.state._rl_store if k.endswith(":/pay")]
    assert len(pay_keys) == 1
    assert len(app.state._rl_store) == 2
