# storefront/core/lifespan.py
from contextlib import asynccontextmanager
import logging
import httpx
from fastapi import FastAPI
from storefront.db import redis as r
from storefront.core.config import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()

    # --- Startup ---
    # Redis is optional: without it identities are request-scoped and the catalog is not cached
    await r.connect()

    # One pooled transport shared by every per-request shop API client
    app.state.shop_transport = httpx.AsyncHTTPTransport(retries=1)
    logger.info("Upstream shop API at %s", settings.SHOP_API_URL)

    yield

    # --- Shutdown ---
    await app.state.shop_transport.aclose()
    try:
        await r.disconnect()
    except Exception as e:
        logger.warning("Redis disconnect failed: %s", e)
