# storefront/domain/services/pricing_svc.py
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from storefront.domain.models.product import Option


def _now() -> datetime:
    return datetime.now(timezone.utc)


def is_sale_active(option: Optional[Option], now: Optional[datetime] = None) -> bool:
    """
    A sale is active iff it has a price (0 counts) and `now` lies inside the
    optional [start, end] window, both bounds inclusive.
    """
    if option is None or option.sale is None or option.sale.price is None:
        return False
    now = now or _now()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    sale = option.sale
    if sale.start is not None and now < sale.start:
        return False
    if sale.end is not None and now > sale.end:
        return False
    return True


def resolve_price(option: Option, is_vip: bool, now: Optional[datetime] = None) -> Decimal:
    """
    Unit price shown to the customer.
    VIP customers get the VIP price or the base price; sales never apply to them.
    """
    if is_vip:
        return option.vip_price if option.vip_price is not None else option.price
    if is_sale_active(option, now):
        return option.sale.price
    return option.price


@dataclass(frozen=True)
class PriceView:
    unit_price: Decimal
    compare_at: Optional[Decimal]   # struck-through base price while a sale is shown
    show_sale_badge: bool
    show_vip_tag: bool
    sale_ends_at: Optional[datetime]


def price_view(option: Option, is_vip: bool, now: Optional[datetime] = None) -> PriceView:
    now = now or _now()
    on_sale = not is_vip and is_sale_active(option, now)
    return PriceView(
        unit_price=resolve_price(option, is_vip, now),
        compare_at=option.price if on_sale else None,
        show_sale_badge=on_sale,
        show_vip_tag=is_vip,
        sale_ends_at=option.sale.end if on_sale else None,
    )
