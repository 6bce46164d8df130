from __future__ import annotations
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator


class LocalizedString(BaseModel):
    en: str = ""
    he: Optional[str] = None
    model_config = {"frozen": True}


# Catalog text is either a plain string or an {en, he} object
LocalizedText = Union[str, LocalizedString]


class Sale(BaseModel):
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    price: Optional[Decimal] = None

    model_config = {"frozen": True}

    @field_validator("start", "end", mode="before")
    @classmethod
    def _blank_as_absent(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("start", "end")
    @classmethod
    def _assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class Option(BaseModel):
    id: Optional[str] = Field(default=None, alias="_id")
    name: LocalizedText = ""
    price: Decimal = Decimal(0)
    vip_price: Optional[Decimal] = Field(default=None, alias="vipPrice")
    quantity: Optional[int] = None  # absent = unlimited stock
    img: Optional[str] = None
    sale: Optional[Sale] = None
    is_default: bool = Field(default=False, alias="isDefault")

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Category(BaseModel):
    id: str = Field(alias="_id")
    name: LocalizedText = ""
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Product(BaseModel):
    id: str = Field(alias="_id")
    name: LocalizedText = ""
    desc: Optional[LocalizedText] = None
    img: Optional[str] = None
    category: Optional[Union[Category, str]] = None
    options: List[Option] = []

    model_config = ConfigDict(frozen=True, populate_by_name=True)  # catalog data is read-only

    def default_option(self) -> Optional[Option]:
        """First option flagged as default, else the first option."""
        for opt in self.options:
            if opt.is_default:
                return opt
        return self.options[0] if self.options else None

    def find_option(self, option_id: Optional[str]) -> Optional[Option]:
        if option_id is None:
            return self.default_option()
        return next((o for o in self.options if o.id == option_id), None)

    @property
    def category_id(self) -> Optional[str]:
        if isinstance(self.category, Category):
            return self.category.id
        return self.category
