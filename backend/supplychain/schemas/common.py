"""Shared schema pieces."""

from __future__ import annotations

from pydantic import BaseModel, Field


class LineQuantityIn(BaseModel):
    """Packets and loose units of one material."""

    material_id: int
    packets: int = Field(0, ge=0)
    loose_units: int = Field(0, ge=0)


class LineQuantityOut(BaseModel):
    material_id: int
    packets: int
    loose_units: int

    model_config = {"from_attributes": True}


class CountResponse(BaseModel):
    count: int
