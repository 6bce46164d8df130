import asyncio
import json
from decimal import Decimal

import httpx
import pytest

from storefront.clients.shop_api import ShopApiClient
from storefront.domain.errors import InvalidQuantityError, LineBusyError, OptionIdRequiredError, RemoteError
from storefront.domain.models.cart import CartSnapshot
from storefront.domain.models.product import Option, Product
from storefront.domain.services.cart_store import CartState, CartStore
from tests.fake_shop import BASE_URL, product_doc

PRODUCT = Product.model_validate(product_doc())
BLUE = PRODUCT.options[0]


@pytest.mark.asyncio
async def test_refresh_twice_yields_identical_state(shop, store):
    shop.seed_line("guest:guest-1", quantity=2)
    first = await store.refresh()
    second = await store.refresh()
    assert first == second
    assert len(store.lines) == 1
    assert store.total_item_count == 2


@pytest.mark.asyncio
async def test_requests_carry_guest_id_and_bearer_token(shop, store, identity):
    await store.refresh()
    req = shop.requests[-1]
    assert req.headers["x-guest-id"] == "guest-1"
    assert "authorization" not in req.headers
    assert "_ts" in req.url.params

    await identity.set_token("tok-vip")
    await store.refresh()
    assert shop.requests[-1].headers["authorization"] == "Bearer tok-vip"


@pytest.mark.asyncio
async def test_add_without_option_id_fails_before_any_request(shop, store):
    with pytest.raises(OptionIdRequiredError):
        await store.add_to_cart(PRODUCT, Option(name="Blue", price=100))
    assert shop.requests == []


@pytest.mark.asyncio
async def test_add_replaces_state_with_server_cart(shop, store):
    await store.add_to_cart(PRODUCT, BLUE, 2)
    await store.add_to_cart(PRODUCT, BLUE)

    assert json.loads(shop.calls("POST", "/cart/items")[0].content) == {"productId": "p1", "optionId": "o1", "quantity": 2}
    # the server merged into one line; the store mirrors that instead of appending
    assert len(store.lines) == 1
    assert store.lines[0].quantity == 3
    assert store.total_price == Decimal(300)
    assert store.quantity_in_cart("p1", BLUE) == 3
    assert store.state is CartState.IDLE


@pytest.mark.asyncio
async def test_server_stock_rejection_keeps_last_good_state(shop, store):
    await store.add_to_cart(PRODUCT, BLUE, 4)
    with pytest.raises(RemoteError) as exc:
        await store.add_to_cart(PRODUCT, BLUE, 2)
    assert exc.value.status_code == 409
    assert exc.value.server_message == "Not enough stock"
    assert store.lines[0].quantity == 4
    assert not store.loading


@pytest.mark.asyncio
async def test_update_sends_absolute_quantity(shop, store):
    line = shop.seed_line("guest:guest-1", quantity=1)
    await store.refresh()
    await store.update_quantity(line["_id"], 3)

    assert json.loads(shop.calls("PATCH", f"/cart/items/{line['_id']}")[0].content) == {"quantity": 3}
    assert store.total_item_count == 3


@pytest.mark.asyncio
async def test_update_rejects_non_positive_quantity(shop, store):
    with pytest.raises(InvalidQuantityError):
        await store.update_quantity("l1", 0)
    assert shop.requests == []


@pytest.mark.asyncio
async def test_remove_and_clear(shop, store):
    keep = shop.seed_line("guest:guest-1", option="o3", quantity=1, price=90)
    drop = shop.seed_line("guest:guest-1", quantity=2)
    await store.refresh()

    await store.remove_line(drop["_id"])
    assert [l.id for l in store.lines] == [keep["_id"]]

    await store.clear()
    assert store.lines == ()
    assert store.subtotal == 0
    assert store.total_item_count == 0


@pytest.mark.asyncio
async def test_total_price_is_server_subtotal(identity):
    def handler(request):
        # server applied a discount the lines do not show
        return httpx.Response(200, json={
            "cart": {"items": [{"_id": "l1", "product": "p1", "optionId": "o1", "name": "x", "price": 100, "quantity": 2}]},
            "subtotal": 150,
        })

    store = CartStore(ShopApiClient(BASE_URL, identity, transport=httpx.MockTransport(handler)))
    await store.refresh()
    assert store.total_price == Decimal(150)
    assert sum(l.line_total for l in store.lines) == Decimal(200)


@pytest.mark.asyncio
async def test_malformed_payload_is_a_remote_error(identity):
    def handler(request):
        return httpx.Response(200, json={"cart": {"items": [{"_id": "l1", "quantity": 0}]}, "subtotal": 0})

    store = CartStore(ShopApiClient(BASE_URL, identity, transport=httpx.MockTransport(handler)))
    with pytest.raises(RemoteError):
        await store.refresh()
    assert store.snapshot == CartSnapshot.empty()


@pytest.mark.asyncio
async def test_missing_items_and_subtotal_read_as_empty(identity):
    store = CartStore(ShopApiClient(BASE_URL, identity, transport=httpx.MockTransport(lambda r: httpx.Response(200, json={}))))
    await store.refresh()
    assert store.lines == ()
    assert store.subtotal == 0


class _SlowApi:
    """Cart API whose responses are released by the test, in any order."""

    def __init__(self):
        self.gates = {}

    async def _wait(self, qty):
        gate = self.gates.setdefault(qty, asyncio.Event())
        await gate.wait()
        return CartSnapshot.from_envelope({
            "cart": {"items": [{"_id": "l1", "product": "p1", "optionId": "o1", "name": "x", "price": 10, "quantity": qty}]},
            "subtotal": 10 * qty,
        })

    async def update_item(self, line_id, quantity):
        return await self._wait(quantity)

    async def get_cart(self):
        return await self._wait(1)


@pytest.mark.asyncio
async def test_stale_response_does_not_overwrite_newer_state():
    api = _SlowApi()
    store = CartStore(api)

    older = asyncio.create_task(store.refresh())                 # token 1 -> qty 1
    await asyncio.sleep(0)
    newer = asyncio.create_task(store.update_quantity("l1", 5))  # token 2 -> qty 5
    await asyncio.sleep(0)
    assert store.state is CartState.LOADING

    api.gates[5].set()
    await newer
    api.gates[1].set()
    await older

    assert store.lines[0].quantity == 5
    assert store.state is CartState.IDLE


@pytest.mark.asyncio
async def test_second_mutation_on_busy_line_is_refused():
    api = _SlowApi()
    store = CartStore(api)

    first = asyncio.create_task(store.update_quantity("l1", 2))
    await asyncio.sleep(0)
    assert store.is_line_busy("l1")
    with pytest.raises(LineBusyError):
        await store.update_quantity("l1", 3)

    api.gates[2].set()
    await first
    assert not store.is_line_busy("l1")
    assert store.total_item_count == 2
