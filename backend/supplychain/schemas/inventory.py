"""Inventory schemas."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from supplychain.models.inventory import OwnerKind, TransactionType


class ManufacturerStockResponse(BaseModel):
    material_id: int
    manufacturer_id: int
    full_packets: int
    loose_units: int
    blocked_packets: int
    blocked_loose_units: int
    available_packets: int
    available_loose_units: int
    updated_at: datetime

    model_config = {"from_attributes": True}


class ManufacturerInventorySummary(BaseModel):
    items: List[ManufacturerStockResponse]
    total_packets: int
    total_loose_units: int
    blocked_packets: int
    blocked_loose_units: int
    available_packets: int
    available_loose_units: int


class AvailableResponse(BaseModel):
    material_id: int
    manufacturer_id: int
    available_packets: int
    available_loose_units: int


class RetailerStockResponse(BaseModel):
    material_id: int
    retailer_id: int
    full_packets: int
    loose_units: int
    updated_at: datetime

    model_config = {"from_attributes": True}


class InventoryTransactionResponse(BaseModel):
    id: int
    ts: datetime
    transaction_type: TransactionType
    owner_kind: OwnerKind
    owner_id: int
    material_id: int
    packets_change: int
    units_change: int
    blocked_packets_change: int
    blocked_units_change: int
    packets_after: int
    units_after: int
    blocked_packets_after: int
    blocked_units_after: int
    reference_type: Optional[str] = None
    reference_id: Optional[int] = None
    notes: Optional[str] = None
    created_by: Optional[int] = None

    model_config = {"from_attributes": True}
