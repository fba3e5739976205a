from typing import Any, Dict
from fastapi import HTTPException, Request, Response
import os
import time
import hashlib
import logging

from storefront.utils.security import COOKIE_NAME, extract_token

logger = logging.getLogger(__name__)

def client_key(request: Request) -> str:
    # Priorité: jeton de session (hashé) puis IP, par chemin
    token = extract_token(request)
    path = request.url.path
    if token:
        h = hashlib.sha256(token.encode("utf-8")).hexdigest()[:16]
        return f"user:{h}:{path}"
    ip = request.client.host if request.client else "local"
    return f"ip:{ip}:{path}"

def _too_many_requests():
    return HTTPException(status_code=429, detail="Trop de requêtes, réessayez plus tard")

# Purge des clés inactives au plus une fois par intervalle
SWEEP_INTERVAL_SECONDS = 60

def _sweep(state: Any, store: Dict[str, Dict[str, Any]], now: float) -> None:
    if now - getattr(state, "_rl_swept_at", 0.0) < SWEEP_INTERVAL_SECONDS:
        return
    for key in [k for k, e in store.items() if not e["hits"] or now - e["hits"][-1] >= e["window"]]:
        del store[key]
    state._rl_swept_at = now

def optional_rate_limit(times: int, seconds: int):
    """
    Dépendance de rate limiting tolérante:
    - LOCAL_RATE_LIMIT_FALLBACK=1: fenêtre glissante en mémoire (app.state)
    - rate limiting désactivé au démarrage: aucune limite
    - sinon fastapi-limiter (Redis); une erreur du limiteur ne bloque pas la requête
    """
    async def _dep(request: Request, response: Response):
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            now = time.time()
            key = client_key(request)
            store = getattr(request.app.state, "_rl_store", {})
            _sweep(request.app.state, store, now)
            entry = store.get(key) or {"window": seconds, "hits": []}
            hits = [t for t in entry["hits"] if now - t < seconds]
            if len(hits) >= times:
                raise _too_many_requests()
            hits.append(now)
            store[key] = {"window": seconds, "hits": hits}
            request.app.state._rl_store = store
            return

        if getattr(request.app.state, "rate_limit_enabled", None) is False:
            return

        from fastapi_limiter.depends import RateLimiter

        async def _identifier(req: Request) -> str:
            return client_key(req)

        try:
            await RateLimiter(times=times, seconds=seconds, identifier=_identifier)(request, response)
        except Exception as e:
            status = getattr(e, "status_code", None)
            if status == 429:
                raise _too_many_requests()
            logger.warning("rate_limit backend error path=%s: %s", request.url.path, e)
    return _dep

def rate_limit_health_info(request: Request) -> Dict[str, Any]:
    enabled = getattr(request.app.state, "rate_limit_enabled", None)

    limiter_ready = False
    backend = None
    try:
        from fastapi_limiter import FastAPILimiter
        limiter_ready = getattr(FastAPILimiter, "redis", None) is not None
        backend = "redis" if limiter_ready else None
    except Exception:
        limiter_ready = False

    if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
        backend = "memory"

    return {
        "enabled": (bool(enabled) if enabled is not None else None),
        "ready": limiter_ready,
        "backend": backend,
        "cookie": COOKIE_NAME,
    }
