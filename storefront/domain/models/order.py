from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class PaymentMethod(str, Enum):
    COD = "cod"    # cash on delivery
    CARD = "card"  # not operable yet


class ShippingForm(BaseModel):
    full_name: str = ""
    email: str = ""
    phone: str = ""
    city: str = ""
    street: str = ""
    notes: str = ""

    def to_wire(self) -> dict:
        return {
            "fullName": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "city": self.city,
            "addressLine1": self.street,
            "addressLine2": self.notes or "",
        }


class OrderConfirmation(BaseModel):
    id: Optional[str] = Field(default=None, alias="_id")
    status: Optional[str] = None
    total: Optional[Decimal] = None

    # the server may send the full order document; keep whatever it returns
    model_config = ConfigDict(populate_by_name=True, extra="allow")
