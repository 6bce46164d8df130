# storefront/domain/services/checkout_svc.py
from __future__ import annotations
from decimal import Decimal
from enum import Enum
from typing import Optional, Union
import logging
import time

from storefront.clients.shop_api import ShopApiClient
from storefront.domain.errors import (
    CheckoutInProgressError,
    EmptyCartError,
    PaymentMethodUnavailableError,
    RemoteError,
    ValidationError,
    error_message,
)
from storefront.domain.models.order import OrderConfirmation, PaymentMethod, ShippingForm
from storefront.domain.services.cart_store import CartStore
from storefront.domain.services.localization import t

logger = logging.getLogger(__name__)

DEFAULT_SHIPPING_FLAT_RATE = Decimal(50)

# Only cash on delivery can be placed today
OPERABLE_METHODS = frozenset({PaymentMethod.COD})

# (field, required-message key); order matters, the first failure is reported
_REQUIRED_FIELDS = (
    ("full_name", "cart.error_fullNameRequired"),
    ("email", "cart.error_emailRequired"),
    ("phone", "cart.error_phoneRequired"),
    ("city", "cart.error_cityRequired"),
    ("street", "cart.error_streetRequired"),
)


class CheckoutState(str, Enum):
    EDITING = "editing"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    PLACED = "placed"


def shipping_cost(subtotal: Decimal, flat_rate: Decimal = DEFAULT_SHIPPING_FLAT_RATE) -> Decimal:
    return Decimal(flat_rate) if subtotal > 0 else Decimal(0)


def validate_shipping(form: ShippingForm, lang: str = "en") -> Optional[ValidationError]:
    """First failing rule, or None. Notes are optional."""
    for field, key in _REQUIRED_FIELDS:
        value = getattr(form, field).strip()
        if not value:
            return ValidationError(field, t(key, lang))
        if field == "email" and "@" not in value:
            return ValidationError("email", t("cart.error_emailInvalid", lang))
    return None


class CheckoutOrchestrator:
    """
    editing -> validating -> submitting -> placed | editing (with error)

    `submit` raises on every failure and records the message in `error` so a
    view can keep showing it; a second submit while one is in flight is refused.
    """

    def __init__(
        self,
        api: ShopApiClient,
        cart: CartStore,
        *,
        flat_rate: Union[int, Decimal] = DEFAULT_SHIPPING_FLAT_RATE,
        lang: str = "en",
    ):
        self.api = api
        self.cart = cart
        self.flat_rate = Decimal(flat_rate)
        self.lang = lang
        self.state = CheckoutState.EDITING
        self.error: Optional[str] = None
        self.error_field: Optional[str] = None
        self.confirmation: Optional[OrderConfirmation] = None

    @property
    def submitting(self) -> bool:
        return self.state is CheckoutState.SUBMITTING

    @property
    def shipping(self) -> Decimal:
        return shipping_cost(self.cart.subtotal, self.flat_rate)

    @property
    def order_total(self) -> Decimal:
        return self.cart.subtotal + self.shipping

    def _fail(self, exc: Exception, field: Optional[str] = None) -> Exception:
        self.state = CheckoutState.EDITING
        self.error = error_message(exc, t("cart.error_checkout", self.lang))
        self.error_field = field
        return exc

    def _precheck(self, form: ShippingForm, method: PaymentMethod) -> None:
        self.state = CheckoutState.VALIDATING
        if method not in OPERABLE_METHODS:
            raise self._fail(PaymentMethodUnavailableError(method.value, t("cart.cardUnavailable", self.lang)))
        if self.cart.subtotal <= 0:
            raise self._fail(EmptyCartError(t("cart.error_empty", self.lang)))
        if issue := validate_shipping(form, self.lang):
            raise self._fail(issue, issue.field)

    def build_request(self, form: ShippingForm, method: PaymentMethod) -> dict:
        return {
            "shipping": form.to_wire(),
            "shippingPrice": _wire_number(self.shipping),
            "paymentMethod": method.value,
        }

    async def submit(self, form: ShippingForm, method: Union[PaymentMethod, str] = PaymentMethod.COD) -> OrderConfirmation:
        if self.submitting:
            raise CheckoutInProgressError()
        method = PaymentMethod(method)
        self.error = None
        self.error_field = None
        self._precheck(form, method)

        self.state = CheckoutState.SUBMITTING
        body = self.build_request(form, method)
        logger.info(
            "checkout start method=%s subtotal=%s shipping=%s lines=%s",
            method.value, self.cart.subtotal, body["shippingPrice"], len(self.cart.lines),
        )
        t0 = time.perf_counter()
        try:
            confirmation = await self.api.checkout(body)
        except RemoteError as e:
            logger.warning("checkout failed status=%s err=%s", e.status_code, e)
            raise self._fail(e)

        # the server cleared the cart when it accepted the order
        try:
            await self.cart.refresh()
        except RemoteError as e:
            logger.warning("checkout placed but cart refresh failed err=%s", e)

        self.state = CheckoutState.PLACED
        self.confirmation = confirmation
        logger.info("checkout placed order_id=%s in %.3fs", confirmation.id, time.perf_counter() - t0)
        return confirmation

    def reset(self) -> None:
        """Back to editing after a placed order (new checkout)."""
        self.state = CheckoutState.EDITING
        self.error = None
        self.error_field = None
        self.confirmation = None


def _wire_number(value: Decimal):
    return int(value) if value == value.to_integral_value() else float(value)
