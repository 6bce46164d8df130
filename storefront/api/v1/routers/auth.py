# storefront/api/v1/routers/auth.py
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from typing import List, Optional
import logging

from storefront.api.deps import auth_session_dep, cart_store_dep, to_http
from storefront.domain.errors import StorefrontError
from storefront.domain.services.auth_svc import AuthSession
from storefront.domain.services.cart_store import CartStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginIn(BaseModel):
    username: str
    password: str


class RegisterIn(LoginIn):
    name: str


class SessionOut(BaseModel):
    token: Optional[str] = None
    user_id: Optional[str] = None
    name: Optional[str] = None
    roles: List[str] = []
    tier: str
    cart_items: int = 0


async def _session_out(session: AuthSession, store: CartStore) -> SessionOut:
    user = session.user
    return SessionOut(
        token=await session.identity.get_token(),
        user_id=user.id if user else None,
        name=user.name if user else None,
        roles=list(user.roles) if user else [],
        tier=session.tier.value,
        cart_items=store.total_item_count,
    )


@router.post("/login", response_model=SessionOut)
async def login(
    body: LoginIn,
    session: AuthSession = Depends(auth_session_dep),
    store: CartStore = Depends(cart_store_dep),
):
    """Log in; the cart of the new identity (server-merged with the guest cart) is reloaded."""
    session.subscribe(store.on_identity_changed)
    try:
        await session.login(body.username, body.password)
    except StorefrontError as e:
        raise to_http(e, "Login failed")
    return await _session_out(session, store)


@router.post("/register", response_model=SessionOut)
async def register(
    body: RegisterIn,
    session: AuthSession = Depends(auth_session_dep),
    store: CartStore = Depends(cart_store_dep),
):
    session.subscribe(store.on_identity_changed)
    try:
        await session.register(body.name, body.username, body.password)
    except StorefrontError as e:
        raise to_http(e, "Registration failed")
    return await _session_out(session, store)


@router.get("/me", response_model=SessionOut)
async def me(
    session: AuthSession = Depends(auth_session_dep),
    store: CartStore = Depends(cart_store_dep),
):
    if session.user is None:
        raise HTTPException(status_code=401, detail="Not logged in")
    try:
        await store.refresh()
    except StorefrontError as e:
        raise to_http(e, "Failed to load cart")
    return await _session_out(session, store)
