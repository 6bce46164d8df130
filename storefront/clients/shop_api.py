# storefront/clients/shop_api.py
from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple
import logging
import time
import httpx
from pydantic import ValidationError as PydanticValidationError

from storefront.domain.errors import RemoteError
from storefront.domain.models.cart import CartSnapshot
from storefront.domain.models.order import OrderConfirmation
from storefront.domain.models.user import User
from storefront.domain.repositories.identity_repo import IdentityStore

logger = logging.getLogger(__name__)

GUEST_HEADER = "x-guest-id"


class ShopApiClient:
    """
    Request layer for the upstream shop REST API.
    Every outgoing request carries the guest id and, when logged in, the bearer
    token, attached by a request event hook from the injected IdentityStore.
    """

    def __init__(
        self,
        base_url: str,
        identity: IdentityStore,
        *,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.identity = identity
        self.http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
            event_hooks={"request": [self._attach_identity]},
        )

    async def _attach_identity(self, request: httpx.Request) -> None:
        request.headers[GUEST_HEADER] = await self.identity.get_guest_id()
        token = await self.identity.get_token()
        if token:
            request.headers["Authorization"] = f"Bearer {token}"

    async def aclose(self) -> None:
        await self.http.aclose()

    # ----- plumbing ----------------------------------------------------------

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        t0 = time.perf_counter()
        try:
            resp = await self.http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("shop_api %s %s transport error err=%s", method, path, e)
            raise RemoteError(f"Request to {path} failed: {e}") from e

        dt = time.perf_counter() - t0
        payload = _json_or_none(resp)
        if resp.is_error:
            server_message = payload.get("error") if isinstance(payload, dict) else None
            if not isinstance(server_message, str) or not server_message:
                server_message = None
            logger.warning(
                "shop_api %s %s status=%s error=%s in %.3fs",
                method, path, resp.status_code, server_message, dt,
            )
            raise RemoteError(
                server_message or f"Request to {path} failed with status {resp.status_code}",
                status_code=resp.status_code,
                payload=payload,
                server_message=server_message,
            )
        if payload is None and resp.content:
            raise RemoteError(f"Malformed JSON from {path}", status_code=resp.status_code)

        logger.debug("shop_api %s %s status=%s in %.3fs", method, path, resp.status_code, dt)
        return payload

    async def _cart_call(self, method: str, path: str, **kwargs) -> CartSnapshot:
        data = await self._request(method, path, **kwargs)
        try:
            return CartSnapshot.from_envelope(data)
        except PydanticValidationError as e:
            raise RemoteError(f"Malformed cart payload from {path}", payload=data) from e

    # ----- cart ----------------------------------------------------------------

    async def get_cart(self) -> CartSnapshot:
        # cache-buster: intermediaries must never serve a stale cart
        return await self._cart_call("GET", "/cart", params={"_ts": int(time.time() * 1000)})

    async def add_item(self, product_id: str, option_id: str, quantity: int) -> CartSnapshot:
        body = {"productId": product_id, "optionId": option_id, "quantity": quantity}
        return await self._cart_call("POST", "/cart/items", json=body)

    async def update_item(self, line_id: str, quantity: int) -> CartSnapshot:
        return await self._cart_call("PATCH", f"/cart/items/{line_id}", json={"quantity": quantity})

    async def remove_item(self, line_id: str) -> CartSnapshot:
        return await self._cart_call("DELETE", f"/cart/items/{line_id}")

    async def clear_cart(self) -> CartSnapshot:
        return await self._cart_call("DELETE", "/cart")

    # ----- orders --------------------------------------------------------------

    async def checkout(self, body: Dict[str, Any]) -> OrderConfirmation:
        data = await self._request("POST", "/orders/checkout", json=body)
        if isinstance(data, dict) and isinstance(data.get("order"), dict):
            data = data["order"]
        try:
            return OrderConfirmation.model_validate(data or {})
        except PydanticValidationError as e:
            raise RemoteError("Malformed order confirmation", payload=data) from e

    # ----- auth ----------------------------------------------------------------

    async def login(self, username: str, password: str) -> Tuple[str, User]:
        data = await self._request("POST", "/auth/login", json={"username": username, "password": password})
        return _token_and_user(data)

    async def register(self, name: str, username: str, password: str) -> Tuple[str, User]:
        data = await self._request(
            "POST", "/auth/register", json={"name": name, "username": username, "password": password}
        )
        return _token_and_user(data)

    async def me(self) -> User:
        data = await self._request("GET", "/auth/me")
        try:
            return User.model_validate((data or {}).get("user"))
        except (PydanticValidationError, AttributeError) as e:
            raise RemoteError("Malformed user payload", payload=data) from e

    # ----- catalog (read-only) -------------------------------------------------

    async def list_products(self, *, category: Optional[str] = None, limit: Optional[int] = None) -> List[dict]:
        params = {k: v for k, v in {"category": category, "limit": limit}.items() if v is not None}
        data = await self._request("GET", "/products", params=params)
        return _as_list(data, "products")

    async def get_product(self, product_id: str) -> dict:
        data = await self._request("GET", f"/products/{product_id}")
        if not isinstance(data, dict):
            raise RemoteError(f"Malformed product payload for {product_id}", payload=data)
        return data

    async def list_categories(self) -> List[dict]:
        data = await self._request("GET", "/categories")
        return _as_list(data, "categories")


def _json_or_none(resp: httpx.Response) -> Any:
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return None


def _as_list(data: Any, key: str) -> List[dict]:
    # endpoints answer either a bare list or {<key>: [...]}
    if isinstance(data, dict):
        data = data.get(key, [])
    if not isinstance(data, list):
        raise RemoteError(f"Malformed {key} payload", payload=data)
    return data


def _token_and_user(data: Any) -> Tuple[str, User]:
    if not isinstance(data, dict) or not data.get("token"):
        raise RemoteError("Malformed auth payload", payload=data)
    try:
        return data["token"], User.model_validate(data.get("user"))
    except PydanticValidationError as e:
        raise RemoteError("Malformed auth payload", payload=data) from e
