def test_health_reports_rate_limit_state(client):
    res = client.get("/health")
    assert res.status_code == 200
    body = res.json()
    assert body["ok"] is True
    assert body["rate_limit"]["enabled"] is False

def test_health_supabase_ok(client, monkeypatch):
    monkeypatch.setattr(
        "storefront.health.router.health_supabase_info",
        lambda: {"connect_ok": True, "tables": {"users": {"ok": True, "rows": 1}}},
    )
    res = client.get("/health/supabase")
    assert res.status_code == 200
    assert res.json()["tables"]["users"]["ok"] is True

def test_health_supabase_unreachable_is_503(client, monkeypatch):
    monkeypatch.setattr(
        "storefront.health.router.health_supabase_info",
        lambda: {"connect_ok": False, "error": "timeout", "tables": {}},
    )
    assert client.get("/health/supabase").status_code == 503

def test_health_table_failure_is_reported(monkeypatch):
    from unittest.mock import MagicMock

    from storefront.health import service

    client = MagicMock()
    client.table.side_effect = Exception("relation does not exist")
    monkeypatch.setattr("storefront.infra.supabase_client.get_service_supabase", lambda: client)
    monkeypatch.setattr(service, "_check_auth", lambda: {"ok": True, "status": 200})
    monkeypatch.setattr(service, "SUPABASE_URL", "")

    info = service.health_supabase_info()

    assert info["connect_ok"] is False
    assert info["tables"]["orders"]["ok"] is False

def test_root_and_favicon(client):
    assert client.get("/").json()["health"] == "/health"
    assert client.get("/favicon.ico").status_code == 204
