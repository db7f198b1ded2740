"""
Lifespan FastAPI: initialisation/arrêt du limiteur de débit.
- DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS=1: limiteur désactivé (tests)
- USE_FAKE_REDIS_FOR_TESTS=1: fakeredis en mémoire (tests)
- LOCAL_RATE_LIMIT_FALLBACK=1: fenêtre mémoire par processus si Redis est indisponible
"""
import os
import logging
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from fastapi import FastAPI
from fastapi_limiter import FastAPILimiter

try:
    from fakeredis.aioredis import FakeRedis  # tests only
except ImportError:
    FakeRedis = None

logger = logging.getLogger("uvicorn.error")


def _redis_connection():
    if os.getenv("USE_FAKE_REDIS_FOR_TESTS") == "1":
        if not FakeRedis:
            raise RuntimeError("USE_FAKE_REDIS_FOR_TESTS=1 mais fakeredis n'est pas installé.")
        return FakeRedis(decode_responses=True)
    redis_url = os.getenv("RATE_LIMIT_REDIS_URL", "redis://127.0.0.1:6379/0")
    return aioredis.from_url(redis_url, encoding="utf-8", decode_responses=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    limiter_started = False
    if os.getenv("DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS") == "1":
        app.state.rate_limit_enabled = False
        logger.info("Rate limiting disabled by DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS")
    else:
        try:
            await FastAPILimiter.init(_redis_connection())
            app.state.rate_limit_enabled = True
            limiter_started = True
            logger.info("Rate limiting enabled")
        except Exception as e:
            fallback = os.getenv("LOCAL_RATE_LIMIT_FALLBACK") == "1"
            app.state.rate_limit_enabled = fallback
            logger.warning("Rate limiting %s due to init error: %s", "falling back to local memory" if fallback else "disabled", e)

    yield

    if limiter_started:
        await FastAPILimiter.close()
