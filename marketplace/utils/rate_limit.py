"""
Limitation de débit des points d'entrée sensibles (initiation de paiement, checkout).
- fastapi-limiter (Redis) quand il a été initialisé par le lifespan.
- Fallback mémoire par processus si LOCAL_RATE_LIMIT_FALLBACK=1 (dev/tests).
- Désactivé proprement si app.state.rate_limit_enabled est False.
"""
from typing import Any, Dict, List
from urllib.parse import urlparse
import hashlib
import logging
import os
import time

from fastapi import HTTPException, Request, Response

from marketplace.utils.security import COOKIE_NAME

logger = logging.getLogger(__name__)


def _client_key(request: Request) -> str:
    """Clé de comptage: acheteur (token hashé) sinon IP, toujours par chemin."""
    auth_header = request.headers.get("Authorization", "")
    token = auth_header[7:].strip() if auth_header.startswith("Bearer ") else request.cookies.get(COOKIE_NAME)
    path = request.url.path
    if token:
        digest = hashlib.sha256(token.encode("utf-8")).hexdigest()[:16]
        return f"buyer:{digest}:{path}"
    host = request.client.host if request.client else "local"
    return f"ip:{host}:{path}"


def _hit_local_window(request: Request, key: str, times: int, seconds: int) -> None:
    now = time.time()
    store: Dict[str, List[float]] = getattr(request.app.state, "_rl_store", None) or {}
    # Purge des clés expirées du même chemin (même fenêtre)
    suffix = f":{request.url.path}"
    for stale in [k for k, ts in store.items() if k.endswith(suffix) and (not ts or now - ts[-1] >= seconds)]:
        del store[stale]
    hits = [t for t in store.get(key, []) if now - t < seconds]
    if len(hits) >= times:
        raise HTTPException(status_code=429, detail="Too Many Requests")
    hits.append(now)
    store[key] = hits
    request.app.state._rl_store = store


def optional_rate_limit(times: int, seconds: int):
    async def _dep(request: Request, response: Response):
        key = _client_key(request)

        if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1":
            _hit_local_window(request, key, times, seconds)
            return

        if getattr(request.app.state, "rate_limit_enabled", None) is False:
            return

        try:
            from fastapi_limiter.depends import RateLimiter

            async def _identifier(req: Request) -> str:
                return _client_key(req)

            return await RateLimiter(times=times, seconds=seconds, identifier=_identifier)(request, response)
        except HTTPException:
            raise
        except Exception as e:
            # Limiteur indisponible (Redis hors service): on laisse passer plutôt que bloquer un paiement
            logger.warning("rate_limit unavailable path=%s error=%s", request.url.path, e)
            return
    return _dep


def rate_limit_health_info(request: Request) -> Dict[str, Any]:
    enabled = getattr(request.app.state, "rate_limit_enabled", None)
    ready = False
    try:
        from fastapi_limiter import FastAPILimiter
        ready = getattr(FastAPILimiter, "redis", None) is not None
    except Exception:
        ready = False

    info: Dict[str, Any] = {
        "enabled": (bool(enabled) if enabled is not None else None),
        "ready": ready,
        "backend": "redis" if ready else ("memory" if os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1" else None),
    }
    redis_url = os.getenv("RATE_LIMIT_REDIS_URL")
    if ready and redis_url:
        p = urlparse(redis_url)
        info["redis"] = {"scheme": p.scheme, "host": p.hostname, "port": p.port}
    return info
