# storefront/api/v1/routers/cart.py
from fastapi import APIRouter, Depends, HTTPException
import logging
import time

from storefront.api.deps import cart_store_dep, catalog_dep, to_http
from storefront.api.v1.schemas.storefront import AddItemIn, CartLineOut, CartOut, UpdateQuantityIn
from storefront.core.config import Settings, get_settings
from storefront.domain.errors import StorefrontError
from storefront.domain.repositories.catalog_repo import CatalogRepo
from storefront.domain.services.availability_svc import clamp_quantity, is_sold_out, remaining
from storefront.domain.services.cart_store import CartStore
from storefront.domain.services.checkout_svc import shipping_cost

logger = logging.getLogger(__name__)

router = APIRouter(tags=["cart"])


def cart_out(store: CartStore, settings: Settings) -> CartOut:
    shipping = shipping_cost(store.subtotal, settings.SHIPPING_FLAT_RATE)
    return CartOut(
        lines=[CartLineOut.from_line(l) for l in store.lines],
        subtotal=store.subtotal,
        total_items=store.total_item_count,
        total_price=store.total_price,
        shipping=shipping,
        total=store.total_price + shipping,
    )


@router.get("/cart", response_model=CartOut)
async def get_cart(
    store: CartStore = Depends(cart_store_dep),
    settings: Settings = Depends(get_settings),
):
    try:
        await store.refresh()
    except StorefrontError as e:
        raise to_http(e, "Failed to load cart")
    return cart_out(store, settings)


@router.post("/cart/items", response_model=CartOut)
async def add_item(
    body: AddItemIn,
    store: CartStore = Depends(cart_store_dep),
    catalog: CatalogRepo = Depends(catalog_dep),
    settings: Settings = Depends(get_settings),
):
    """
    Add an option to the cart. The quantity is clamped to what is still
    purchasable given the units of that option already in the cart.
    """
    logger.info("Request: add_item product_id=%s option_id=%s qty=%s", body.product_id, body.option_id, body.quantity)
    t0 = time.perf_counter()
    try:
        product = await catalog.get_product(body.product_id, fresh=True)
        option = product.find_option(body.option_id)
        if option is None:
            raise HTTPException(status_code=404, detail="Option not found")

        await store.refresh()
        left = remaining(option, store.quantity_in_cart(product.id, option))
        if is_sold_out(left):
            raise HTTPException(status_code=409, detail="Sold out")

        await store.add_to_cart(product, option, clamp_quantity(body.quantity, left))
    except StorefrontError as e:
        raise to_http(e, "Failed to add item")

    logger.info("Response: add_item items=%s in %.4fs", store.total_item_count, time.perf_counter() - t0)
    return cart_out(store, settings)


@router.patch("/cart/items/{line_id}", response_model=CartOut)
async def update_item(
    line_id: str,
    body: UpdateQuantityIn,
    store: CartStore = Depends(cart_store_dep),
    settings: Settings = Depends(get_settings),
):
    try:
        await store.update_quantity(line_id, body.quantity)
    except StorefrontError as e:
        raise to_http(e, "Failed to update quantity")
    return cart_out(store, settings)


@router.delete("/cart/items/{line_id}", response_model=CartOut)
async def remove_item(
    line_id: str,
    store: CartStore = Depends(cart_store_dep),
    settings: Settings = Depends(get_settings),
):
    try:
        await store.remove_line(line_id)
    except StorefrontError as e:
        raise to_http(e, "Failed to remove item")
    return cart_out(store, settings)


@router.delete("/cart", response_model=CartOut)
async def clear_cart(
    store: CartStore = Depends(cart_store_dep),
    settings: Settings = Depends(get_settings),
):
    try:
        await store.clear()
    except StorefrontError as e:
        raise to_http(e, "Failed to clear cart")
    return cart_out(store, settings)
