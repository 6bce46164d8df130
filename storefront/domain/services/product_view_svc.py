# storefront/domain/services/product_view_svc.py
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional
from storefront.domain.models.product import Option, Product
from storefront.domain.services.availability_svc import (
    UNBOUNDED,
    Remaining,
    can_add,
    clamp_quantity,
    is_sold_out,
    option_key,
    remaining,
)
from storefront.domain.services.localization import resolve_text
from storefront.domain.services.pricing_svc import PriceView, price_view

PLACEHOLDER_IMAGE = "/placeholder.svg"


@dataclass(frozen=True)
class OptionView:
    option: Option
    label: str
    price: PriceView
    remaining: Remaining
    sold_out: bool

    @property
    def remaining_display(self) -> Optional[int]:
        """None for unlimited stock."""
        return None if self.remaining == UNBOUNDED else int(self.remaining)


@dataclass(frozen=True)
class ProductView:
    product: Product
    title: str
    description: str
    image: str
    options: List[OptionView]
    selected: Optional[OptionView]
    quantity: int
    can_add: bool


def build_product_view(
    product: Product,
    in_cart: Dict[str, int],
    *,
    is_vip: bool,
    option_id: Optional[str] = None,
    requested_qty: int = 1,
    lang: str = "en",
    now: Optional[datetime] = None,
    busy: bool = False,
) -> ProductView:
    """
    Everything a product page needs for one render: per-option price and stock
    against the current cart, the selected option (explicit, else default) and
    the requested quantity clamped to what is still purchasable.
    """
    options = [
        _option_view(product, opt, in_cart, is_vip=is_vip, lang=lang, now=now)
        for opt in product.options
    ]
    chosen = product.find_option(option_id)
    selected = next((ov for ov in options if ov.option is chosen), None)

    image = (selected.option.img or "").strip() if selected else ""
    if not image:
        image = product.img or PLACEHOLDER_IMAGE

    left = selected.remaining if selected else 0
    return ProductView(
        product=product,
        title=resolve_text(product.name, lang),
        description=resolve_text(product.desc, lang),
        image=image,
        options=options,
        selected=selected,
        quantity=clamp_quantity(requested_qty, left) if selected else 1,
        can_add=can_add(selected.option if selected else None, left, busy),
    )


def _option_view(product: Product, opt: Option, in_cart: Dict[str, int], *, is_vip, lang, now) -> OptionView:
    left = remaining(opt, in_cart.get(option_key(product.id, opt), 0))
    return OptionView(
        option=opt,
        label=resolve_text(opt.name, lang),
        price=price_view(opt, is_vip, now),
        remaining=left,
        sold_out=is_sold_out(left),
    )
