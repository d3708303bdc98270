"""Dispatch order models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from sqlalchemy import CheckConstraint, DateTime, Enum as SQLEnum, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from supplychain.db.base import Base


class DispatchStatus(str, Enum):
    PENDING = "PENDING"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"


class DispatchOrder(Base):
    """Shipment fulfilling one approved SRN."""

    __tablename__ = "dispatch_orders"

    id: Mapped[int] = mapped_column(primary_key=True)
    dispatch_number: Mapped[str] = mapped_column(String(30), unique=True, index=True, nullable=False)
    srn_id: Mapped[int] = mapped_column(
        ForeignKey("srns.id", ondelete="RESTRICT"), unique=True, nullable=False
    )
    manufacturer_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    retailer_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    created_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    status: Mapped[DispatchStatus] = mapped_column(
        SQLEnum(DispatchStatus), default=DispatchStatus.PENDING, nullable=False, index=True
    )
    total_packets: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_loose_units: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0, nullable=False)
    delivery_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    executed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    delivered_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    items: Mapped[List["DispatchItem"]] = relationship(
        "DispatchItem", back_populates="dispatch", cascade="all, delete-orphan", order_by="DispatchItem.id"
    )
    srn: Mapped["SRN"] = relationship("SRN")


class DispatchItem(Base):
    """Shipped quantity for one material, with prices frozen at creation."""

    __tablename__ = "dispatch_items"
    __table_args__ = (
        CheckConstraint("packets >= 0", name="ck_dispatch_item_packets"),
        CheckConstraint("loose_units >= 0", name="ck_dispatch_item_units"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    dispatch_id: Mapped[int] = mapped_column(
        ForeignKey("dispatch_orders.id", ondelete="CASCADE"), nullable=False, index=True
    )
    material_id: Mapped[int] = mapped_column(
        ForeignKey("materials.id", ondelete="RESTRICT"), nullable=False
    )
    packets: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    loose_units: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    units_per_packet: Mapped[int] = mapped_column(Integer, nullable=False)
    packet_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    line_total: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    hsn_code: Mapped[str] = mapped_column(String(20), nullable=False)
    gst_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)

    dispatch: Mapped["DispatchOrder"] = relationship("DispatchOrder", back_populates="items")
    material: Mapped["Material"] = relationship("Material")


from supplychain.models.material import Material  # noqa: E402
from supplychain.models.srn import SRN  # noqa: E402
