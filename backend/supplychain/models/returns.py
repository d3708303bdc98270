"""Return request models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import CheckConstraint, DateTime, Enum as SQLEnum, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from supplychain.db.base import Base


class ReturnReason(str, Enum):
    DAMAGED_GOODS = "DAMAGED_GOODS"
    MISSING_UNITS = "MISSING_UNITS"
    QUALITY_ISSUE = "QUALITY_ISSUE"
    WRONG_PRODUCT = "WRONG_PRODUCT"
    OTHER = "OTHER"


class ReturnStatus(str, Enum):
    """Everything except RAISED and UNDER_REVIEW is terminal."""

    RAISED = "RAISED"
    UNDER_REVIEW = "UNDER_REVIEW"
    APPROVED_RESTOCK = "APPROVED_RESTOCK"
    APPROVED_REPLACE = "APPROVED_REPLACE"
    REJECTED = "REJECTED"
    RESOLVED = "RESOLVED"


TERMINAL_RETURN_STATUSES = frozenset({
    ReturnStatus.APPROVED_RESTOCK,
    ReturnStatus.APPROVED_REPLACE,
    ReturnStatus.REJECTED,
    ReturnStatus.RESOLVED,
})


class ReturnRequest(Base):
    """Retailer's request to send goods back to a manufacturer."""

    __tablename__ = "return_requests"

    id: Mapped[int] = mapped_column(primary_key=True)
    return_number: Mapped[str] = mapped_column(String(30), unique=True, index=True, nullable=False)
    retailer_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    manufacturer_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    grn_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("grns.id", ondelete="SET NULL"), nullable=True
    )
    reason: Mapped[ReturnReason] = mapped_column(SQLEnum(ReturnReason), nullable=False)
    reason_details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[ReturnStatus] = mapped_column(
        SQLEnum(ReturnStatus), default=ReturnStatus.RAISED, nullable=False, index=True
    )
    resolution_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    resolved_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    items: Mapped[List["ReturnItem"]] = relationship(
        "ReturnItem", back_populates="return_request", cascade="all, delete-orphan", order_by="ReturnItem.id"
    )


class ReturnItem(Base):
    __tablename__ = "return_items"
    __table_args__ = (
        CheckConstraint("packets >= 0", name="ck_return_item_packets"),
        CheckConstraint("loose_units >= 0", name="ck_return_item_units"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    return_id: Mapped[int] = mapped_column(
        ForeignKey("return_requests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    material_id: Mapped[int] = mapped_column(
        ForeignKey("materials.id", ondelete="RESTRICT"), nullable=False
    )
    packets: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    loose_units: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    return_request: Mapped["ReturnRequest"] = relationship("ReturnRequest", back_populates="items")
