"""Dispatch schemas.

Manufacturers get ``DispatchResponse``, which carries no prices; admins and
retailers get ``DispatchPricedResponse``.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from supplychain.models.dispatch import DispatchStatus


class DispatchCreate(BaseModel):
    srn_id: int
    delivery_notes: Optional[str] = Field(None, max_length=2000)


class DispatchExecute(BaseModel):
    delivery_notes: Optional[str] = Field(None, max_length=2000)


class DispatchItemResponse(BaseModel):
    id: int
    material_id: int
    packets: int
    loose_units: int
    units_per_packet: int
    hsn_code: str

    model_config = {"from_attributes": True}


class DispatchItemPricedResponse(DispatchItemResponse):
    packet_price: Decimal
    unit_price: Decimal
    line_total: Decimal
    gst_rate: Decimal


class DispatchResponse(BaseModel):
    id: int
    dispatch_number: str
    srn_id: int
    manufacturer_id: int
    retailer_id: int
    status: DispatchStatus
    total_packets: int
    total_loose_units: int
    delivery_notes: Optional[str] = None
    created_at: datetime
    executed_at: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
    items: List[DispatchItemResponse]

    model_config = {"from_attributes": True}


class DispatchPricedResponse(DispatchResponse):
    subtotal: Decimal
    items: List[DispatchItemPricedResponse]
