from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Annotated, Literal, Optional, Union

from utils.validators import normalize_phone


class UserRegister(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    phone_number: str
    email: Optional[EmailStr] = None
    password: str = Field(..., min_length=6)

    @field_validator("phone_number")
    @classmethod
    def _phone(cls, v: str) -> str:
        return normalize_phone(v)


class UserLogin(BaseModel):
    identifier: str     # phone number or email
    password: str


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=120)
    email: Optional[EmailStr] = None


# ======================================================
# SHIPPING ADDRESS
# ======================================================

class ShippingAddress(BaseModel):
    full_name: str = Field(..., min_length=1)
    phone_number: Optional[str] = None
    country: str = "Bangladesh"
    division: str = Field(..., min_length=1)
    district: str = Field(..., min_length=1)
    upazilla: Optional[str] = None
    house_address: str = Field(..., min_length=1)
    road_number: Optional[str] = None


class ShippingAddressCreate(ShippingAddress):
    is_default: bool = False


class ShippingAddressUpdate(BaseModel):
    full_name: Optional[str] = None
    phone_number: Optional[str] = None
    country: Optional[str] = None
    division: Optional[str] = None
    district: Optional[str] = None
    upazilla: Optional[str] = None
    house_address: Optional[str] = None
    road_number: Optional[str] = None
    is_default: Optional[bool] = None


# ======================================================
# WITHDRAWAL METHODS (bKash | bank)
# ======================================================

class BkashDetails(BaseModel):
    type: Literal["bkash"] = "bkash"
    account_number: str

    @field_validator("account_number")
    @classmethod
    def _bkash_number(cls, v: str) -> str:
        return normalize_phone(v)


class BankDetails(BaseModel):
    type: Literal["bank"] = "bank"
    bank_name: str = Field(..., min_length=1)
    account_holder_name: str = Field(..., min_length=1)
    account_number: str = Field(..., min_length=4)
    routing_number: Optional[str] = None
    branch_name: Optional[str] = None


WithdrawalMethodDetails = Annotated[
    Union[BkashDetails, BankDetails],
    Field(discriminator="type"),
]


class WithdrawalMethodIn(BaseModel):
    id: Optional[str] = None
    details: WithdrawalMethodDetails
    is_default: bool = False
