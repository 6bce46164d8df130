from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class CustomerTier(str, Enum):
    STANDARD = "standard"
    VIP = "vip"


class User(BaseModel):
    id: str = Field(alias="_id")
    name: str = ""
    username: str = ""
    roles: List[str] = []
    is_active: Optional[bool] = Field(default=None, alias="isActive")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @property
    def tier(self) -> CustomerTier:
        return CustomerTier.VIP if "vip" in self.roles else CustomerTier.STANDARD


def tier_of(user: Optional[User]) -> CustomerTier:
    """Anonymous visitors are standard customers."""
    return user.tier if user is not None else CustomerTier.STANDARD
