# storefront/domain/services/availability_svc.py
from __future__ import annotations
import math
from typing import Dict, Iterable, Optional, Union
from storefront.domain.models.cart import CartLine, line_key
from storefront.domain.models.product import Option

# Sentinel for options without a recorded stock quantity; never exhausted
UNBOUNDED = math.inf

Remaining = Union[int, float]


def cart_quantities(lines: Iterable[CartLine]) -> Dict[str, int]:
    """Quantity already in the cart per `productId|optionId`, built once per snapshot."""
    out: Dict[str, int] = {}
    for line in lines:
        out[line.key] = out.get(line.key, 0) + line.quantity
    return out


def option_key(product_id: str, option: Option) -> str:
    ref = option.id if option.id is not None else (option.name if isinstance(option.name, str) else None)
    return line_key(product_id, ref)


def remaining(option: Option, already_in_cart: int = 0) -> Remaining:
    if option.quantity is None:
        return UNBOUNDED
    return max(0, option.quantity - already_in_cart)


def is_sold_out(left: Remaining) -> bool:
    return left == 0


def can_add(option: Optional[Option], left: Remaining, busy: bool = False) -> bool:
    """Add-to-cart is enabled only for a selected option that is not sold out and not in flight."""
    return option is not None and not is_sold_out(left) and not busy


def clamp_quantity(requested: int, left: Remaining) -> int:
    """
    Clamp a requested quantity to [1, left]. Unbounded stock only enforces the
    lower bound; a sold-out option clamps to 0 (add is disabled anyway).
    """
    qty = max(1, requested or 1)
    if left == UNBOUNDED:
        return qty
    return int(min(qty, left))


class QuantityStepper:
    """
    Quantity selector state: decrement/increment/set all stay within
    [min_value, max_value]; max_value=None means no cap.
    """

    def __init__(self, value: int = 1, min_value: int = 1, max_value: Optional[int] = None):
        self.min_value = min_value
        self.max_value = max_value
        self.value = self._clamp(value)

    @classmethod
    def for_remaining(cls, left: Remaining, value: int = 1) -> "QuantityStepper":
        return cls(value=value, max_value=None if left == UNBOUNDED else int(left))

    def _clamp(self, n: int) -> int:
        n = max(self.min_value, n)
        if self.max_value is not None:
            n = min(n, self.max_value)
        return n

    @property
    def decrement_disabled(self) -> bool:
        return self.value <= self.min_value

    @property
    def increment_disabled(self) -> bool:
        return self.max_value is not None and self.value >= self.max_value

    def increment(self) -> int:
        self.value = self._clamp(self.value + 1)
        return self.value

    def decrement(self) -> int:
        self.value = self._clamp(self.value - 1)
        return self.value

    def set(self, n: Optional[int]) -> int:
        # unparsable / empty input falls back to the minimum
        self.value = self._clamp(n or self.min_value)
        return self.value

    def rebound(self, max_value: Optional[int]) -> int:
        """Apply a new cap (remaining stock changed) and re-clamp the current value."""
        self.max_value = max_value
        self.value = self._clamp(self.value)
        return self.value
