"""Return schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from supplychain.models.returns import ReturnReason, ReturnStatus
from supplychain.schemas.common import LineQuantityIn, LineQuantityOut


class ReturnCreate(BaseModel):
    manufacturer_id: int
    reason: ReturnReason
    reason_details: Optional[str] = Field(None, max_length=2000)
    grn_id: Optional[int] = None
    lines: List[LineQuantityIn] = Field(..., min_length=1)


class ReturnResolve(BaseModel):
    resolution: ReturnStatus
    notes: Optional[str] = Field(None, max_length=2000)


class ReturnResponse(BaseModel):
    id: int
    return_number: str
    retailer_id: int
    manufacturer_id: int
    grn_id: Optional[int] = None
    reason: ReturnReason
    reason_details: Optional[str] = None
    status: ReturnStatus
    resolution_notes: Optional[str] = None
    resolved_by: Optional[int] = None
    created_at: datetime
    reviewed_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    items: List[LineQuantityOut]

    model_config = {"from_attributes": True}
