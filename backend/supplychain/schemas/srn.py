"""SRN schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from supplychain.models.srn import SRNStatus
from supplychain.schemas.common import LineQuantityIn
from supplychain.services.srn_service import SRNDecision


class SRNCreate(BaseModel):
    manufacturer_id: int
    lines: List[LineQuantityIn] = Field(default_factory=list)
    notes: Optional[str] = None
    submit: bool = False


class SRNLinesUpdate(BaseModel):
    lines: List[LineQuantityIn]


class SRNProcessRequest(BaseModel):
    """APPROVE with approved quantities for every line, or REJECT with a note."""

    decision: SRNDecision
    lines: List[LineQuantityIn] = Field(default_factory=list)
    rejection_note: Optional[str] = None


class SRNItemResponse(BaseModel):
    id: int
    material_id: int
    requested_packets: int
    requested_loose_units: int
    approved_packets: Optional[int] = None
    approved_loose_units: Optional[int] = None

    model_config = {"from_attributes": True}


class SRNResponse(BaseModel):
    id: int
    srn_number: str
    retailer_id: int
    manufacturer_id: int
    status: SRNStatus
    notes: Optional[str] = None
    rejection_note: Optional[str] = None
    processed_by: Optional[int] = None
    created_at: datetime
    submitted_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None
    items: List[SRNItemResponse]

    model_config = {"from_attributes": True}
