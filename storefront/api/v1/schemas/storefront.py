# api/v1/schemas/storefront.py
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, Field

from storefront.domain.models.cart import CartLine
from storefront.domain.models.order import PaymentMethod, ShippingForm
from storefront.domain.services.product_view_svc import OptionView, ProductView


class CartLineOut(BaseModel):
    id: str
    product_id: str
    option_id: Optional[str] = None
    name: str
    option_name: Optional[str] = None
    img: Optional[str] = None
    price: Decimal
    quantity: int
    line_total: Decimal

    @classmethod
    def from_line(cls, line: CartLine) -> "CartLineOut":
        return cls(
            id=line.id,
            product_id=line.product_id,
            option_id=line.option_id,
            name=line.name,
            option_name=line.option_name,
            img=line.img,
            price=line.price,
            quantity=line.quantity,
            line_total=line.line_total,
        )


class CartOut(BaseModel):
    lines: List[CartLineOut]
    subtotal: Decimal
    total_items: int
    total_price: Decimal
    shipping: Decimal
    total: Decimal


class AddItemIn(BaseModel):
    product_id: str
    option_id: Optional[str] = None  # default option when omitted
    quantity: int = Field(1, ge=1)


class UpdateQuantityIn(BaseModel):
    quantity: int = Field(ge=1)


class CheckoutIn(BaseModel):
    shipping: ShippingForm
    payment_method: PaymentMethod = PaymentMethod.COD
    lang: str = "en"


class CheckoutOut(BaseModel):
    order_id: Optional[str] = None
    message: str
    shipping: Decimal
    total: Decimal


class OptionOut(BaseModel):
    id: Optional[str] = None
    label: str
    img: Optional[str] = None
    unit_price: Decimal
    compare_at: Optional[Decimal] = None
    on_sale: bool
    vip: bool
    sale_ends_at: Optional[datetime] = None
    remaining: Optional[int] = None  # None = unlimited
    sold_out: bool

    @classmethod
    def from_view(cls, ov: OptionView) -> "OptionOut":
        return cls(
            id=ov.option.id,
            label=ov.label,
            img=ov.option.img,
            unit_price=ov.price.unit_price,
            compare_at=ov.price.compare_at,
            on_sale=ov.price.show_sale_badge,
            vip=ov.price.show_vip_tag,
            sale_ends_at=ov.price.sale_ends_at,
            remaining=ov.remaining_display,
            sold_out=ov.sold_out,
        )


class ProductViewOut(BaseModel):
    id: str
    title: str
    description: str
    image: str
    options: List[OptionOut]
    selected_option_id: Optional[str] = None
    quantity: int
    can_add: bool

    @classmethod
    def from_view(cls, view: ProductView) -> "ProductViewOut":
        return cls(
            id=view.product.id,
            title=view.title,
            description=view.description,
            image=view.image,
            options=[OptionOut.from_view(ov) for ov in view.options],
            selected_option_id=view.selected.option.id if view.selected else None,
            quantity=view.quantity,
            can_add=view.can_add,
        )
