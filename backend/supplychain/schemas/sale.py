"""Sale and commission schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from supplychain.models.material import CommissionType
from supplychain.models.sale import CommissionStatus


class SaleCreate(BaseModel):
    material_id: int
    units_sold: int = Field(..., gt=0)


class SaleResponse(BaseModel):
    id: int
    sale_number: str
    retailer_id: int
    material_id: int
    units_sold: int
    unit_price: Decimal
    total_amount: Decimal
    packets_opened: int
    created_at: datetime

    model_config = {"from_attributes": True}


class SaleSummary(BaseModel):
    material_id: int
    sale_count: int
    units_sold: int
    total_amount: Decimal


class CommissionResponse(BaseModel):
    id: int
    sale_id: int
    retailer_id: int
    material_id: int
    commission_type: CommissionType
    commission_rate: Decimal
    units_sold: int
    amount: Decimal
    status: CommissionStatus
    paid_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class CommissionSummary(BaseModel):
    count: int
    pending_amount: Decimal
    paid_amount: Decimal
    total_amount: Decimal


class RetailerCommissionSummary(CommissionSummary):
    retailer_id: int
