"""User schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from supplychain.core.rbac import UserRole


class UserCreate(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    name: str = Field(..., min_length=1, max_length=255)
    role: UserRole
    business_name: Optional[str] = Field(None, max_length=255)
    gstin: Optional[str] = Field(None, max_length=15)


class UserResponse(BaseModel):
    id: int
    email: str
    name: str
    role: UserRole
    business_name: Optional[str] = None
    gstin: Optional[str] = None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
