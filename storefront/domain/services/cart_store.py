# storefront/domain/services/cart_store.py
from __future__ import annotations
from decimal import Decimal
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional, Set, Tuple
import itertools
import logging
import time

from storefront.clients.shop_api import ShopApiClient
from storefront.domain.errors import InvalidQuantityError, LineBusyError, OptionIdRequiredError
from storefront.domain.models.cart import CartLine, CartSnapshot
from storefront.domain.models.product import Option, Product
from storefront.domain.services.availability_svc import cart_quantities, option_key

logger = logging.getLogger(__name__)


class CartState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"


class CartStore:
    """
    Client mirror of the server-owned cart.

    Every operation is a full round-trip whose response replaces the local
    snapshot wholesale; nothing is patched optimistically. Failures propagate
    to the caller and leave the last good snapshot untouched.

    Responses are sequenced: each request takes an increasing token and a
    response older than the last applied one is dropped, so two overlapping
    mutations can never roll the cart back to an earlier server state.
    """

    def __init__(self, api: ShopApiClient):
        self.api = api
        self._snapshot = CartSnapshot.empty()
        self._tokens = itertools.count(1)
        self._applied_token = 0
        self._in_flight = 0
        self._busy_lines: Set[str] = set()
        self._quantities: Optional[Dict[str, int]] = None

    # ----- state ---------------------------------------------------------------

    @property
    def state(self) -> CartState:
        return CartState.LOADING if self._in_flight else CartState.IDLE

    @property
    def loading(self) -> bool:
        return self._in_flight > 0

    @property
    def snapshot(self) -> CartSnapshot:
        return self._snapshot

    @property
    def lines(self) -> Tuple[CartLine, ...]:
        return self._snapshot.lines

    @property
    def subtotal(self) -> Decimal:
        return self._snapshot.subtotal

    @property
    def total_item_count(self) -> int:
        return self._snapshot.total_item_count

    @property
    def total_price(self) -> Decimal:
        # server subtotal; never recomputed from lines (tax/rounding live server-side)
        return self._snapshot.subtotal

    def quantity_in_cart(self, product_id: str, option: Option) -> int:
        if self._quantities is None:
            self._quantities = cart_quantities(self._snapshot.lines)
        return self._quantities.get(option_key(product_id, option), 0)

    def is_line_busy(self, line_id: str) -> bool:
        return line_id in self._busy_lines

    # ----- plumbing --------------------------------------------------------------

    def _apply(self, token: int, snapshot: CartSnapshot, op: str) -> None:
        if token < self._applied_token:
            logger.debug("cart %s stale response dropped token=%s applied=%s", op, token, self._applied_token)
            return
        self._applied_token = token
        self._snapshot = snapshot
        self._quantities = None

    async def _run(self, op: str, call: Callable[[], Awaitable[CartSnapshot]]) -> CartSnapshot:
        token = next(self._tokens)
        self._in_flight += 1
        t0 = time.perf_counter()
        try:
            snapshot = await call()
        except Exception as e:
            logger.warning("cart %s failed token=%s err=%s", op, token, e)
            raise
        finally:
            self._in_flight -= 1
        self._apply(token, snapshot, op)
        logger.info(
            "cart %s ok token=%s lines=%s items=%s subtotal=%s in %.3fs",
            op, token, len(snapshot.lines), snapshot.total_item_count, snapshot.subtotal,
            time.perf_counter() - t0,
        )
        return self._snapshot

    async def _run_on_line(self, op: str, line_id: str, call: Callable[[], Awaitable[CartSnapshot]]) -> CartSnapshot:
        if line_id in self._busy_lines:
            raise LineBusyError(line_id)
        self._busy_lines.add(line_id)
        try:
            return await self._run(op, call)
        finally:
            self._busy_lines.discard(line_id)

    # ----- operations ------------------------------------------------------------

    async def refresh(self) -> CartSnapshot:
        """Fetch the cart of the current identity and replace local state."""
        return await self._run("refresh", self.api.get_cart)

    async def add_to_cart(self, product: Product, option: Option, quantity: int = 1) -> CartSnapshot:
        if not option.id:
            raise OptionIdRequiredError()
        _check_quantity(quantity)
        return await self._run(
            "add", lambda: self.api.add_item(product.id, option.id, quantity)
        )

    async def update_quantity(self, line_id: str, quantity: int) -> CartSnapshot:
        """Set the absolute quantity of a line."""
        _check_quantity(quantity)
        return await self._run_on_line(
            "update", line_id, lambda: self.api.update_item(line_id, quantity)
        )

    async def remove_line(self, line_id: str) -> CartSnapshot:
        return await self._run_on_line("remove", line_id, lambda: self.api.remove_item(line_id))

    async def clear(self) -> CartSnapshot:
        return await self._run("clear", self.api.clear_cart)

    async def on_identity_changed(self, *_args) -> None:
        # carts are identity-scoped server-side
        await self.refresh()


def _check_quantity(quantity) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise InvalidQuantityError(quantity)
