"""Goods Receipt Note (GRN) models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import CheckConstraint, DateTime, Enum as SQLEnum, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from supplychain.db.base import Base


class GRNStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"


class GRN(Base):
    """Retailer's receipt for one dispatch. Created when the dispatch leaves."""

    __tablename__ = "grns"

    id: Mapped[int] = mapped_column(primary_key=True)
    grn_number: Mapped[str] = mapped_column(String(30), unique=True, index=True, nullable=False)
    dispatch_id: Mapped[int] = mapped_column(
        ForeignKey("dispatch_orders.id", ondelete="RESTRICT"), unique=True, nullable=False
    )
    retailer_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    manufacturer_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    status: Mapped[GRNStatus] = mapped_column(
        SQLEnum(GRNStatus), default=GRNStatus.PENDING, nullable=False, index=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    confirmed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    items: Mapped[List["GRNItem"]] = relationship(
        "GRNItem", back_populates="grn", cascade="all, delete-orphan", order_by="GRNItem.id"
    )
    dispatch: Mapped["DispatchOrder"] = relationship("DispatchOrder")


class GRNItem(Base):
    """Expected vs received quantity for one material."""

    __tablename__ = "grn_items"
    __table_args__ = (
        CheckConstraint("received_packets IS NULL OR received_packets >= 0", name="ck_grn_item_packets"),
        CheckConstraint(
            "received_loose_units IS NULL OR received_loose_units >= 0", name="ck_grn_item_units"
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    grn_id: Mapped[int] = mapped_column(
        ForeignKey("grns.id", ondelete="CASCADE"), nullable=False, index=True
    )
    dispatch_item_id: Mapped[int] = mapped_column(
        ForeignKey("dispatch_items.id", ondelete="RESTRICT"), nullable=False
    )
    material_id: Mapped[int] = mapped_column(
        ForeignKey("materials.id", ondelete="RESTRICT"), nullable=False
    )
    expected_packets: Mapped[int] = mapped_column(Integer, nullable=False)
    expected_loose_units: Mapped[int] = mapped_column(Integer, nullable=False)
    received_packets: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    received_loose_units: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    damaged_packets: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    damaged_loose_units: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    grn: Mapped["GRN"] = relationship("GRN", back_populates="items")
    dispatch_item: Mapped["DispatchItem"] = relationship("DispatchItem")
    material: Mapped["Material"] = relationship("Material")

    @property
    def short_packets(self) -> int:
        return self.expected_packets - (self.received_packets or 0)

    @property
    def short_loose_units(self) -> int:
        return self.expected_loose_units - (self.received_loose_units or 0)


from supplychain.models.dispatch import DispatchItem, DispatchOrder  # noqa: E402
from supplychain.models.material import Material  # noqa: E402
