# storefront/api/v1/routers/products.py

from fastapi import APIRouter, Depends, Query
from typing import List, Optional
import logging
import time

from storefront.api.deps import auth_session_dep, cart_store_dep, catalog_dep, to_http
from storefront.api.v1.schemas.storefront import ProductViewOut
from storefront.domain.errors import StorefrontError
from storefront.domain.models.product import Product
from storefront.domain.repositories.catalog_repo import CatalogRepo
from storefront.domain.services.auth_svc import AuthSession
from storefront.domain.services.availability_svc import cart_quantities
from storefront.domain.services.cart_store import CartStore
from storefront.domain.services.product_view_svc import build_product_view

logger = logging.getLogger(__name__)

router = APIRouter(tags=["products"])


@router.get("/products", response_model=List[ProductViewOut])
async def list_products(
    category: Optional[str] = Query(None),
    limit: Optional[int] = Query(None, ge=1, le=200),
    lang: str = Query("en"),
    catalog: CatalogRepo = Depends(catalog_dep),
    session: AuthSession = Depends(auth_session_dep),
    store: CartStore = Depends(cart_store_dep),
):
    """Product cards: default option priced for the caller's tier, stock against their cart."""
    t0 = time.perf_counter()
    try:
        products = await catalog.list_products(category=category, limit=limit)
        await store.refresh()
    except StorefrontError as e:
        raise to_http(e, "Failed to load products")

    in_cart = cart_quantities(store.lines)
    out = [
        ProductViewOut.from_view(build_product_view(p, in_cart, is_vip=session.is_vip, lang=lang))
        for p in products
    ]
    logger.info("Response: list_products count=%s vip=%s in %.4fs", len(out), session.is_vip, time.perf_counter() - t0)
    return out


@router.get("/products/{product_id}/view", response_model=ProductViewOut)
async def product_view(
    product_id: str,
    option_id: Optional[str] = Query(None, description="Selected option; default option when omitted"),
    qty: int = Query(1, description="Requested quantity, clamped to remaining stock"),
    lang: str = Query("en"),
    catalog: CatalogRepo = Depends(catalog_dep),
    session: AuthSession = Depends(auth_session_dep),
    store: CartStore = Depends(cart_store_dep),
):
    logger.info("Request: product_view product_id=%s option_id=%s qty=%s", product_id, option_id, qty)
    try:
        product: Product = await catalog.get_product(product_id)
        await store.refresh()
    except StorefrontError as e:
        raise to_http(e, "Failed to load product")

    view = build_product_view(
        product,
        cart_quantities(store.lines),
        is_vip=session.is_vip,
        option_id=option_id,
        requested_qty=qty,
        lang=lang,
    )
    return ProductViewOut.from_view(view)
