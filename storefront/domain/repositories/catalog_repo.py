# storefront/domain/repositories/catalog_repo.py

from __future__ import annotations
from typing import List, Optional
import logging
from pydantic import ValidationError as PydanticValidationError
from redis.asyncio import Redis

from storefront.clients.shop_api import ShopApiClient
from storefront.domain.errors import RemoteError
from storefront.domain.models.product import Category, Product
from storefront.utils.cache import cache_get, cache_set

logger = logging.getLogger(__name__)


class CatalogRepo:
    """
    Read-only catalog access over the shop API.
    Raw documents are cached in Redis (when available) under `catalog:*`;
    identity headers do not affect catalog responses, so one cache serves all.
    """

    def __init__(self, api: ShopApiClient, redis: Optional[Redis] = None, ttl: int = 300):
        self.api = api
        self.redis = redis
        self.ttl = ttl

    async def get_product(self, product_id: str, *, fresh: bool = False) -> Product:
        """`fresh` bypasses the cached document, whose stock counts may be stale."""
        key = f"catalog:product:{product_id}"
        doc = None if fresh else await cache_get(self.redis, key)
        if doc is None:
            doc = await self.api.get_product(product_id)
            await cache_set(self.redis, key, doc, ex=self.ttl)
        else:
            logger.debug("catalog cache_hit key=%s", key)
        return _parse(Product, doc)

    async def list_products(self, *, category: Optional[str] = None, limit: Optional[int] = None) -> List[Product]:
        key = f"catalog:products:{category or '*'}:{limit or '*'}"
        docs = await cache_get(self.redis, key)
        if docs is None:
            docs = await self.api.list_products(category=category, limit=limit)
            await cache_set(self.redis, key, docs, ex=self.ttl)
        return [_parse(Product, d) for d in docs]

    async def list_categories(self) -> List[Category]:
        key = "catalog:categories"
        docs = await cache_get(self.redis, key)
        if docs is None:
            docs = await self.api.list_categories()
            await cache_set(self.redis, key, docs, ex=self.ttl)
        return [_parse(Category, d) for d in docs]


def _parse(model, doc):
    try:
        return model.model_validate(doc)
    except PydanticValidationError as e:
        raise RemoteError(f"Malformed {model.__name__.lower()} payload", payload=doc) from e
