import asyncio
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException

from storefront.utils.rate_limit import client_key, optional_rate_limit, rate_limit_health_info

def _request(path="/api/auth/login", token=None, ip="1.2.3.4", state=None):
    req = MagicMock()
    req.url.path = path
    req.headers = {"Authorization": f"Bearer {token}"} if token else {}
    req.cookies = {}
    req.client = SimpleNamespace(host=ip)
    req.app.state = state if state is not None else SimpleNamespace()
    return req

def test_client_key_hashes_token_and_scopes_by_path():
    key = client_key(_request(token="secret-token"))
    assert key.startswith("user:")
    assert key.endswith(":/api/auth/login")
    assert "secret-token" not in key

def test_client_key_falls_back_to_ip():
    assert client_key(_request()) == "ip:1.2.3.4:/api/auth/login"

def test_local_fallback_blocks_after_limit(monkeypatch):
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")
    dep = optional_rate_limit(times=2, seconds=60)
    state = SimpleNamespace()

    asyncio.run(dep(_request(state=state), MagicMock()))
    asyncio.run(dep(_request(state=state), MagicMock()))
    with pytest.raises(HTTPException) as exc:
        asyncio.run(dep(_request(state=state), MagicMock()))
    assert exc.value.status_code == 429

def test_local_fallback_evicts_idle_clients(monkeypatch):
    monkeypatch.setenv("LOCAL_RATE_LIMIT_FALLBACK", "1")
    clock = [1000.0]
    monkeypatch.setattr("storefront.utils.rate_limit.time", SimpleNamespace(time=lambda: clock[0]))
    dep = optional_rate_limit(times=5, seconds=60)
    state = SimpleNamespace()

    asyncio.run(dep(_request(ip="10.0.0.1", state=state), MagicMock()))
    asyncio.run(dep(_request(ip="10.0.0.2", state=state), MagicMock()))
    assert len(state._rl_store) == 2

    clock[0] += 300
    asyncio.run(dep(_request(ip="10.0.0.3", state=state), MagicMock()))

    assert list(state._rl_store) == ["ip:10.0.0.3:/api/auth/login"]

def test_disabled_limiter_is_a_no_op(monkeypatch):
    monkeypatch.delenv("LOCAL_RATE_LIMIT_FALLBACK", raising=False)
    dep = optional_rate_limit(times=1, seconds=60)
    state = SimpleNamespace(rate_limit_enabled=False)
    for _ in range(3):
        assert asyncio.run(dep(_request(state=state), MagicMock())) is None

def test_health_info_reports_disabled_state(monkeypatch):
    monkeypatch.delenv("LOCAL_RATE_LIMIT_FALLBACK", raising=False)
    info = rate_limit_health_info(_request(state=SimpleNamespace(rate_limit_enabled=False)))
    assert info["enabled"] is False
