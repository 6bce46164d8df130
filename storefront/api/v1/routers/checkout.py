# storefront/api/v1/routers/checkout.py
from fastapi import APIRouter, Depends
import logging
import time

from storefront.api.deps import cart_store_dep, shop_api_dep, to_http
from storefront.api.v1.schemas.storefront import CheckoutIn, CheckoutOut
from storefront.clients.shop_api import ShopApiClient
from storefront.core.config import Settings, get_settings
from storefront.domain.errors import StorefrontError
from storefront.domain.services.cart_store import CartStore
from storefront.domain.services.checkout_svc import CheckoutOrchestrator
from storefront.domain.services.localization import t

logger = logging.getLogger(__name__)

router = APIRouter(tags=["checkout"])


@router.post("/checkout", response_model=CheckoutOut)
async def checkout(
    body: CheckoutIn,
    api: ShopApiClient = Depends(shop_api_dep),
    store: CartStore = Depends(cart_store_dep),
    settings: Settings = Depends(get_settings),
):
    """
    Place an order for the caller's cart. Cash on delivery only; card is
    refused without contacting the shop API.
    """
    t0 = time.perf_counter()
    orchestrator = CheckoutOrchestrator(api, store, flat_rate=settings.SHIPPING_FLAT_RATE, lang=body.lang)
    try:
        await store.refresh()
        shipping, total = orchestrator.shipping, orchestrator.order_total
        confirmation = await orchestrator.submit(body.shipping, body.payment_method)
    except StorefrontError as e:
        raise to_http(e, t("cart.error_checkout", body.lang))

    logger.info("Response: checkout order_id=%s in %.4fs", confirmation.id, time.perf_counter() - t0)
    return CheckoutOut(
        order_id=confirmation.id,
        message=t("cart.orderSuccess", body.lang),
        shipping=shipping,
        total=total,
    )
