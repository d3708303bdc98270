"""Assignment schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class AssignmentRequest(BaseModel):
    retailer_id: int
    manufacturer_id: int


class AssignmentResponse(BaseModel):
    id: int
    retailer_id: int
    manufacturer_id: int
    assigned_by: Optional[int] = None
    is_active: bool
    assigned_at: datetime
    deactivated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
