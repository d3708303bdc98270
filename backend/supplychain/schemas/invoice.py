"""Invoice schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel


class InvoiceCreate(BaseModel):
    grn_id: int
    is_interstate: Optional[bool] = None


class InvoiceItemResponse(BaseModel):
    id: int
    material_id: int
    material_name: str
    hsn_code: str
    gst_rate: Decimal
    packets: int
    loose_units: int
    packet_price: Decimal
    unit_price: Decimal
    taxable_amount: Decimal
    cgst_amount: Decimal
    sgst_amount: Decimal
    igst_amount: Decimal
    line_total: Decimal

    model_config = {"from_attributes": True}


class InvoiceResponse(BaseModel):
    id: int
    invoice_number: str
    grn_id: int
    dispatch_id: int
    retailer_id: int
    manufacturer_id: int
    is_interstate: bool
    subtotal: Decimal
    cgst_amount: Decimal
    sgst_amount: Decimal
    igst_amount: Decimal
    total_tax: Decimal
    total_amount: Decimal
    created_at: datetime
    items: List[InvoiceItemResponse]

    model_config = {"from_attributes": True}
