from __future__ import annotations
from decimal import Decimal
from typing import Any, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field


def line_key(product_id: str, option_ref: Optional[str]) -> str:
    """Key used to group cart quantities per (product, option) pair."""
    return f"{product_id}|{option_ref or ''}"


class CartLine(BaseModel):
    """
    One cart entry. Name, option name, image and price are a snapshot taken by
    the server when the line was added; they are never repriced client-side.
    """
    id: str = Field(alias="_id")
    product_id: str = Field(alias="product")
    option_id: Optional[str] = Field(default=None, alias="optionId")
    name: str = ""
    option_name: Optional[str] = Field(default=None, alias="optionName")
    img: Optional[str] = None
    price: Decimal = Decimal(0)
    quantity: int = Field(ge=1)

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @property
    def key(self) -> str:
        return line_key(self.product_id, self.option_id or self.option_name)

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


class CartSnapshot(BaseModel):
    lines: Tuple[CartLine, ...] = ()
    subtotal: Decimal = Decimal(0)

    model_config = {"frozen": True}

    @classmethod
    def empty(cls) -> "CartSnapshot":
        return cls()

    @classmethod
    def from_envelope(cls, data: Any) -> "CartSnapshot":
        """
        Parse `{cart: {items: [...]}, subtotal: number}`.
        Missing or non-list items -> no lines; missing or non-numeric subtotal -> 0.
        Malformed lines raise pydantic.ValidationError.
        """
        cart = data.get("cart") if isinstance(data, dict) else None
        items = cart.get("items") if isinstance(cart, dict) else None
        if not isinstance(items, list):
            items = []

        raw_subtotal = data.get("subtotal") if isinstance(data, dict) else None
        if isinstance(raw_subtotal, bool) or not isinstance(raw_subtotal, (int, float)):
            raw_subtotal = 0

        return cls(
            lines=tuple(CartLine.model_validate(it) for it in items),
            subtotal=Decimal(str(raw_subtotal)),
        )

    @property
    def total_item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def find_line(self, line_id: str) -> Optional[CartLine]:
        return next((l for l in self.lines if l.id == line_id), None)
