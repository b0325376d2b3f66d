from pydantic import BaseModel, Field
from typing import List, Literal, Optional


class SelectedAttribute(BaseModel):
    attribute_type_id: str
    attribute_value_id: str


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    price: float = Field(..., gt=0)
    stock: int = Field(..., ge=0)
    category_id: str
    sub_category_id: Optional[str] = None
    weight_kg: Optional[float] = Field(None, gt=0)
    images: List[str] = Field(default_factory=list, max_length=5)
    selected_attributes: List[SelectedAttribute] = Field(default_factory=list)


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    price: Optional[float] = Field(None, gt=0)
    stock: Optional[int] = Field(None, ge=0)
    category_id: Optional[str] = None
    sub_category_id: Optional[str] = None
    weight_kg: Optional[float] = Field(None, gt=0)
    images: Optional[List[str]] = Field(None, max_length=5)
    selected_attributes: Optional[List[SelectedAttribute]] = None
    # admin only
    status: Optional[Literal["pending", "approved", "rejected"]] = None


class ProductReview(BaseModel):
    action: Literal["approve", "reject"]
    reason: Optional[str] = None
