"""Stock Requisition Note (SRN) models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from supplychain.db.base import Base


class SRNStatus(str, Enum):
    """SRN lifecycle. APPROVED, PARTIAL and REJECTED are terminal."""

    DRAFT = "DRAFT"
    SUBMITTED = "SUBMITTED"
    APPROVED = "APPROVED"
    PARTIAL = "PARTIAL"
    REJECTED = "REJECTED"


class SRN(Base):
    """A retailer's request for stock from one manufacturer."""

    __tablename__ = "srns"

    id: Mapped[int] = mapped_column(primary_key=True)
    srn_number: Mapped[str] = mapped_column(String(30), unique=True, index=True, nullable=False)
    retailer_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    manufacturer_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    status: Mapped[SRNStatus] = mapped_column(
        SQLEnum(SRNStatus), default=SRNStatus.DRAFT, nullable=False, index=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    rejection_note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    processed_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    items: Mapped[List["SRNItem"]] = relationship(
        "SRNItem", back_populates="srn", cascade="all, delete-orphan", order_by="SRNItem.id"
    )


class SRNItem(Base):
    """Requested quantity for one material. Approved values are set on processing."""

    __tablename__ = "srn_items"
    __table_args__ = (
        UniqueConstraint("srn_id", "material_id", name="uq_srn_item_material"),
        CheckConstraint("requested_packets >= 0", name="ck_srn_item_req_packets"),
        CheckConstraint("requested_loose_units >= 0", name="ck_srn_item_req_units"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    srn_id: Mapped[int] = mapped_column(
        ForeignKey("srns.id", ondelete="CASCADE"), nullable=False, index=True
    )
    material_id: Mapped[int] = mapped_column(
        ForeignKey("materials.id", ondelete="RESTRICT"), nullable=False
    )
    requested_packets: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    requested_loose_units: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    approved_packets: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    approved_loose_units: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    srn: Mapped["SRN"] = relationship("SRN", back_populates="items")
    material: Mapped["Material"] = relationship("Material")


from supplychain.models.material import Material  # noqa: E402
