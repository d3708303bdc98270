"""GRN schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from supplychain.models.grn import GRNStatus


class GRNLineIn(BaseModel):
    material_id: int
    received_packets: int = Field(..., ge=0)
    received_loose_units: int = Field(..., ge=0)
    damaged_packets: int = Field(0, ge=0)
    damaged_loose_units: int = Field(0, ge=0)


class GRNConfirm(BaseModel):
    lines: List[GRNLineIn]
    notes: Optional[str] = Field(None, max_length=2000)


class GRNItemResponse(BaseModel):
    id: int
    material_id: int
    expected_packets: int
    expected_loose_units: int
    received_packets: Optional[int] = None
    received_loose_units: Optional[int] = None
    damaged_packets: int
    damaged_loose_units: int

    model_config = {"from_attributes": True}


class GRNResponse(BaseModel):
    id: int
    grn_number: str
    dispatch_id: int
    retailer_id: int
    manufacturer_id: int
    status: GRNStatus
    notes: Optional[str] = None
    created_at: datetime
    confirmed_at: Optional[datetime] = None
    items: List[GRNItemResponse]

    model_config = {"from_attributes": True}


class DiscrepancyResponse(BaseModel):
    material_id: int
    expected_packets: int
    expected_loose_units: int
    received_packets: int
    received_loose_units: int
    short_packets: int
    short_loose_units: int

    model_config = {"from_attributes": True}
