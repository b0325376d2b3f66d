from pydantic import BaseModel, Field
from typing import List, Literal, Optional

from models.user import ShippingAddress


class OrderItemIn(BaseModel):
    product_id: str
    quantity: int = Field(..., gt=0)


class OrderCreate(BaseModel):
    items: List[OrderItemIn] = Field(..., min_length=1)
    shipping_address: ShippingAddress
    total_amount: float = Field(..., ge=0)
    delivery_charge_amount: Optional[float] = Field(None, ge=0)
    shipping_method_name: Optional[str] = None
    payment_status: Literal["unpaid", "paid"] = "unpaid"
    idempotency_key: Optional[str] = Field(None, min_length=8, max_length=128)


class OrderUpdate(BaseModel):
    status: Optional[Literal[
        "pending", "processing", "accepted", "handed_over",
        "in_shipping", "shipped", "delivered", "cancelled",
    ]] = None
    payment_status: Optional[Literal["unpaid", "paid"]] = None
    delivery_charge_amount: Optional[float] = Field(None, ge=0)
    shipping_method_name: Optional[str] = None
