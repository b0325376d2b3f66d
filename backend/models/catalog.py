from pydantic import BaseModel, Field
from typing import List, Literal, Optional


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    parent_id: Optional[str] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)


class CommissionEntry(BaseModel):
    category_id: str
    percentage: float = Field(..., ge=0, le=100)


class CommissionUpdate(BaseModel):
    commissions: List[CommissionEntry]


class AttributeTypeCreate(BaseModel):
    name: str = Field(..., min_length=1)
    category_id: str
    values: List[str] = Field(default_factory=list)


class DeliveryChargeSettings(BaseModel):
    intra_upazilla_charge: float = Field(..., ge=0)
    intra_district_charge: float = Field(..., ge=0)
    inter_district_charge: float = Field(..., ge=0)
    intra_upazilla_extra_kg_charge: Optional[float] = Field(None, ge=0)
    intra_district_extra_kg_charge: Optional[float] = Field(None, ge=0)
    inter_district_extra_kg_charge: Optional[float] = Field(None, ge=0)


class LocationCreate(BaseModel):
    type: Literal["division", "district", "upazilla"]
    name: str = Field(..., min_length=1, max_length=100)
    # division id for a district, district id for an upazilla
    parent_id: Optional[str] = None


class ShippingMethodCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    id: Optional[str] = None
