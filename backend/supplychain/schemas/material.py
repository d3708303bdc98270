"""Material schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from supplychain.models.material import CommissionType


class MaterialCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    hsn_code: str = Field(..., min_length=1, max_length=20)
    gst_rate: Decimal = Field(..., ge=0, le=100)
    units_per_packet: int = Field(..., gt=0)
    mrp_per_packet: Decimal = Field(..., gt=0)
    commission_type: CommissionType = CommissionType.PERCENTAGE
    commission_value: Decimal = Field(Decimal("0"), ge=0)


class MaterialUpdate(BaseModel):
    """Any field left out is unchanged. units_per_packet is accepted only to be rejected."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    hsn_code: Optional[str] = Field(None, min_length=1, max_length=20)
    gst_rate: Optional[Decimal] = Field(None, ge=0, le=100)
    units_per_packet: Optional[int] = Field(None, gt=0)
    mrp_per_packet: Optional[Decimal] = Field(None, gt=0)
    commission_type: Optional[CommissionType] = None
    commission_value: Optional[Decimal] = Field(None, ge=0)


class MaterialResponse(BaseModel):
    id: int
    sq_code: str
    name: str
    description: Optional[str] = None
    hsn_code: str
    gst_rate: Decimal
    units_per_packet: int
    mrp_per_packet: Decimal
    unit_price: Decimal
    commission_type: CommissionType
    commission_value: Decimal
    has_production: bool
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}

