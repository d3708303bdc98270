"""Production schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class ProductionCreate(BaseModel):
    """Either material_id or sq_code identifies the material."""

    material_id: Optional[int] = None
    sq_code: Optional[str] = Field(None, max_length=20)
    batch_number: str = Field(..., min_length=1, max_length=100)
    manufacture_date: date
    expiry_date: date
    packets: int = Field(0, ge=0)
    loose_units: int = Field(0, ge=0)
    notes: Optional[str] = Field(None, max_length=500)


class ProductionBatchResponse(BaseModel):
    id: int
    material_id: int
    manufacturer_id: int
    batch_number: str
    manufacture_date: date
    expiry_date: date
    packets_produced: int
    loose_units_produced: int
    hsn_code: str
    gst_rate: Decimal
    notes: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class ProductionTotal(BaseModel):
    material_id: int
    batch_count: int
    packets_produced: int
    loose_units_produced: int
