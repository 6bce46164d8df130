import json
import logging
from typing import Any, Optional
from redis.asyncio import Redis

logger = logging.getLogger(__name__)


async def cache_get(redis: Optional[Redis], key: str) -> Any:
    """JSON value under `key`; None on miss, when Redis is off, or on Redis errors."""
    if redis is None:
        return None
    try:
        val = await redis.get(key)
    except Exception as e:
        logger.warning("cache get error key=%s err=%s", key, e)
        return None
    return json.loads(val) if val else None


async def cache_set(redis: Optional[Redis], key: str, value: Any, ex: int = 60) -> None:
    if redis is None:
        return
    try:
        await redis.set(key, json.dumps(value, default=str), ex=ex)
    except Exception as e:
        logger.warning("cache set error key=%s err=%s", key, e)
