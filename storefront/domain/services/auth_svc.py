# storefront/domain/services/auth_svc.py
from __future__ import annotations
from typing import Awaitable, Callable, List, Optional
import logging

from storefront.clients.shop_api import ShopApiClient
from storefront.domain.errors import RemoteError
from storefront.domain.models.user import CustomerTier, User, tier_of
from storefront.domain.repositories.identity_repo import IdentityStore

logger = logging.getLogger(__name__)

IdentityListener = Callable[[Optional[User]], Awaitable[None]]


class AuthSession:
    """
    Current customer identity. Listeners (the cart store) are notified
    whenever the logged-in user changes, including login and logout.
    """

    def __init__(self, api: ShopApiClient, identity: IdentityStore):
        self.api = api
        self.identity = identity
        self.user: Optional[User] = None
        self._listeners: List[IdentityListener] = []

    @property
    def is_vip(self) -> bool:
        return self.tier is CustomerTier.VIP

    @property
    def tier(self) -> CustomerTier:
        return tier_of(self.user)

    def subscribe(self, listener: IdentityListener) -> None:
        self._listeners.append(listener)

    async def _set_user(self, user: Optional[User]) -> None:
        before = self.user.id if self.user else None
        self.user = user
        after = user.id if user else None
        if before == after:
            return
        logger.info("identity changed from=%s to=%s", before or "guest", after or "guest")
        for listener in self._listeners:
            await listener(user)

    async def restore(self) -> Optional[User]:
        """Resume a stored session; an invalid token is dropped and the visitor stays a guest."""
        if not await self.identity.get_token():
            return None
        try:
            user = await self.api.me()
        except RemoteError as e:
            logger.warning("stored token rejected, clearing err=%s", e)
            await self.identity.clear_token()
            await self._set_user(None)
            return None
        await self._set_user(user)
        return user

    async def login(self, username: str, password: str) -> User:
        token, user = await self.api.login(username, password)
        await self.identity.set_token(token)
        await self._set_user(user)
        return user

    async def register(self, name: str, username: str, password: str) -> User:
        token, user = await self.api.register(name, username, password)
        await self.identity.set_token(token)
        await self._set_user(user)
        return user

    async def logout(self) -> None:
        await self.identity.clear_token()
        await self._set_user(None)
