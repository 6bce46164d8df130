# storefront/api/deps.py
from typing import AsyncIterator, Optional
from fastapi import Depends, Header, HTTPException, Request, Response
from storefront.clients.shop_api import GUEST_HEADER, ShopApiClient
from storefront.core.config import Settings, get_settings
from storefront.db.redis import get_redis
from storefront.domain.errors import (
    CheckoutInProgressError,
    LineBusyError,
    RemoteError,
    StorefrontError,
    ValidationError,
    error_message,
)
from storefront.domain.repositories.catalog_repo import CatalogRepo
from storefront.domain.repositories.identity_repo import InMemoryIdentityStore
from storefront.domain.services.auth_svc import AuthSession
from storefront.domain.services.cart_store import CartStore


def redis_dep():
    return get_redis()


async def identity_dep(
    response: Response,
    x_guest_id: Optional[str] = Header(default=None),
    authorization: Optional[str] = Header(default=None),
) -> InMemoryIdentityStore:
    """
    The caller's identity, forwarded to the shop API for this request.
    A guest id is minted when the caller has none and echoed back so it can be persisted.
    """
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip() or None
    identity = InMemoryIdentityStore(token=token, guest_id=x_guest_id or None)
    response.headers[GUEST_HEADER] = await identity.get_guest_id()
    return identity


async def shop_api_dep(
    request: Request,
    identity: InMemoryIdentityStore = Depends(identity_dep),
    settings: Settings = Depends(get_settings),
) -> AsyncIterator[ShopApiClient]:
    # the app-wide transport belongs to the lifespan; a client without it owns its pool
    shared = getattr(request.app.state, "shop_transport", None)
    api = ShopApiClient(settings.SHOP_API_URL, identity, timeout=settings.shop_api_timeout_s, transport=shared)
    try:
        yield api
    finally:
        if shared is None:
            await api.aclose()


def cart_store_dep(api: ShopApiClient = Depends(shop_api_dep)) -> CartStore:
    return CartStore(api)


async def auth_session_dep(
    api: ShopApiClient = Depends(shop_api_dep),
    identity: InMemoryIdentityStore = Depends(identity_dep),
) -> AuthSession:
    session = AuthSession(api, identity)
    await session.restore()
    return session


def catalog_dep(
    api: ShopApiClient = Depends(shop_api_dep),
    redis=Depends(redis_dep),
    settings: Settings = Depends(get_settings),
) -> CatalogRepo:
    return CatalogRepo(api, redis, ttl=settings.catalog_cache_ttl)


def to_http(exc: StorefrontError, fallback: str = "Request failed") -> HTTPException:
    """Map core errors onto HTTP; remote messages are passed through verbatim."""
    detail = error_message(exc, fallback)
    if isinstance(exc, RemoteError):
        status = exc.status_code if exc.status_code and 400 <= exc.status_code < 500 else 502
        return HTTPException(status_code=status, detail=detail)
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=422, detail={"field": exc.field, "message": detail})
    if isinstance(exc, (LineBusyError, CheckoutInProgressError)):
        return HTTPException(status_code=409, detail=detail)
    return HTTPException(status_code=400, detail=detail)
