"""
Rate limiting optionnel des endpoints de checkout.
- Redis disponible: fastapi-limiter (RateLimiter) avec une clé client + chemin.
- LOCAL_RATE_LIMIT_FALLBACK=1: fenêtre glissante en mémoire (dev, tests).
- Limiter indisponible: aucune limite plutôt qu'un 429 ou un 500 en production.
"""
from typing import Any, Dict, List
from urllib.parse import urlparse
import hashlib
import os
import time

from fastapi import Request, HTTPException

from storefront.utils.security import COOKIE_NAME

def _client_key(request: Request) -> str:
    # Bearer ou cookie d'auth (hashé), sinon IP
    auth = request.headers.get("Authorization", "")
    token = auth[7:].strip() if auth.startswith("Bearer ") else request.cookies.get(COOKIE_NAME)
    if token:
        return f"user:{hashlib.sha256(token.encode('utf-8')).hexdigest()[:16]}:{request.url.path}"
    ip = request.client.host if request.client else "local"
    return f"ip:{ip}:{request.url.path}"

def _local_hit(request: Request, times: int, seconds: int) -> None:
    now = time.time()
    key = _client_key(request)
    store: Dict[str, List[float]] = getattr(request.app.state, "_rl_store", None) or {}
    hits = [t for t in store.get(key, []) if now - t < seconds]
    if len(hits) >= times:
        raise HTTPException(status_code=429, detail="Too Many Requests")
    hits.append(now)
    store[key] = hits
    request.app.state._rl_store = store

def optional_rate_limit(times: int, seconds: int):
    async def _dep(request: Request):
        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            _local_hit(request, times, seconds)
            return
        if getattr(request.app.state, "rate_limit_enabled", None) is False:
            return
        try:
            from fastapi_limiter.depends import RateLimiter

            async def _identifier(req: Request) -> str:
                return _client_key(req)

            await RateLimiter(times=times, seconds=seconds, identifier=_identifier)(request)
        except HTTPException:
            raise
        except Exception:
            return
    return _dep

def rate_limit_health_info(request: Request) -> Dict[str, Any]:
    """État effectif: flag du lifespan, limiter prêt, backend Redis partagé avec l'idempotence."""
    enabled = getattr(request.app.state, "rate_limit_enabled", None)
    try:
        from fastapi_limiter import FastAPILimiter
        ready = getattr(FastAPILimiter, "redis", None) is not None
    except Exception:
        ready = False

    info: Dict[str, Any] = {
        "enabled": bool(enabled) if enabled is not None else None,
        "ready": ready,
        "backend": "redis" if ready else None,
        "local_fallback": os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1",
        "idempotency": getattr(request.app.state, "redis", None) is not None,
    }
    redis_url = os.getenv("RATE_LIMIT_REDIS_URL")
    if ready and redis_url:
        p = urlparse(redis_url)
        info["redis"] = {"scheme": p.scheme, "host": p.hostname, "port": p.port}
    return info
