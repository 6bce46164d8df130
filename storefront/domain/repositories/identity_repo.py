# storefront/domain/repositories/identity_repo.py

from __future__ import annotations
from typing import Optional, Protocol
import uuid
import logging
from redis.asyncio import Redis

logger = logging.getLogger(__name__)


def new_guest_id() -> str:
    return str(uuid.uuid4())


class IdentityStore(Protocol):
    """
    Durable client-side identity: the auth bearer token and the guest cart id.
    Injected into the request layer and the auth session; never a global.
    """

    async def get_token(self) -> Optional[str]: ...
    async def set_token(self, token: str) -> None: ...
    async def clear_token(self) -> None: ...
    async def get_guest_id(self) -> str: ...
    async def clear_guest_id(self) -> None: ...


class InMemoryIdentityStore:
    """Process-local store for scripts and tests."""

    def __init__(self, token: Optional[str] = None, guest_id: Optional[str] = None):
        self._token = token
        self._guest_id = guest_id

    async def get_token(self) -> Optional[str]:
        return self._token

    async def set_token(self, token: str) -> None:
        self._token = token

    async def clear_token(self) -> None:
        self._token = None

    async def get_guest_id(self) -> str:
        # generated once, reused until cleared
        if not self._guest_id:
            self._guest_id = new_guest_id()
        return self._guest_id

    async def clear_guest_id(self) -> None:
        self._guest_id = None


class RedisIdentityStore:
    """
    Identity persisted in Redis under `<prefix>:<client_key>:token|guest_id`.
    `client_key` scopes one browser/device/installation.
    """

    def __init__(self, redis: Redis, client_key: str, prefix: str = "storefront:identity"):
        self.redis = redis
        self.base = f"{prefix}:{client_key}"

    def _key(self, name: str) -> str:
        return f"{self.base}:{name}"

    async def get_token(self) -> Optional[str]:
        val = await self.redis.get(self._key("token"))
        return _as_str(val) or None

    async def set_token(self, token: str) -> None:
        await self.redis.set(self._key("token"), token)

    async def clear_token(self) -> None:
        await self.redis.delete(self._key("token"))

    async def get_guest_id(self) -> str:
        key = self._key("guest_id")
        if existing := _as_str(await self.redis.get(key)):
            return existing
        candidate = new_guest_id()
        # NX: two concurrent first requests must agree on one id
        if await self.redis.set(key, candidate, nx=True):
            logger.info("guest id created key=%s", key)
            return candidate
        return _as_str(await self.redis.get(key)) or candidate

    async def clear_guest_id(self) -> None:
        await self.redis.delete(self._key("guest_id"))


def _as_str(val) -> Optional[str]:
    if val is None:
        return None
    return val.decode() if isinstance(val, bytes) else str(val)
