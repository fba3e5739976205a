from urllib.parse import urlparse
import socket

import httpx

from storefront.config import SUPABASE_URL, SUPABASE_ANON
import storefront.infra.supabase_client as supabase_client

TABLES = ("users", "products", "orders")

def _check_table(client, name: str):
    try:
        res = client.table(name).select("id").limit(1).execute()
        return {"ok": True, "rows": len(res.data or [])}
    except Exception as e:
        return {"ok": False, "error": str(e)}

def _check_auth() -> dict:
    """GoTrue expose /auth/v1/health (apikey requis), timeout court."""
    try:
        r = httpx.get(
            f"{SUPABASE_URL.rstrip('/')}/auth/v1/health",
            headers={"apikey": SUPABASE_ANON},
            timeout=5,
        )
        return {"ok": r.status_code == 200, "status": r.status_code}
    except httpx.HTTPError as e:
        return {"ok": False, "error": str(e)}

def health_supabase_info():
    """Diagnostic Supabase: résolution DNS puis lecture d'une ligne par table métier."""
    parsed = urlparse(SUPABASE_URL) if SUPABASE_URL else None
    hostname = parsed.hostname if parsed else None
    dns_ok = None
    dns_error = None
    if hostname:
        try:
            socket.getaddrinfo(hostname, 443)
            dns_ok = True
        except OSError as e:
            dns_ok = False
            dns_error = str(e)

    info = {
        "supabase_url": SUPABASE_URL,
        "hostname": hostname,
        "dns_ok": dns_ok,
        "dns_error": dns_error,
        "connect_ok": False,
        "error": None,
        "tables": {},
    }
    try:
        client = supabase_client.get_service_supabase()
        for t in TABLES:
            info["tables"][t] = _check_table(client, t)
        info["connect_ok"] = all(t["ok"] for t in info["tables"].values())
        info["auth"] = _check_auth()
    except Exception as e:
        info["error"] = str(e)
    return info
