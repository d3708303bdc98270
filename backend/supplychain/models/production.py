"""Production batch model."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from supplychain.db.base import AppendOnlyMixin, Base


class ProductionBatch(AppendOnlyMixin, Base):
    """One recorded production run. Never edited after creation."""

    __tablename__ = "production_batches"
    __table_args__ = (
        UniqueConstraint("manufacturer_id", "batch_number", name="uq_batch_manufacturer_number"),
        CheckConstraint("packets_produced >= 0", name="ck_batch_packets"),
        CheckConstraint("loose_units_produced >= 0", name="ck_batch_units"),
        CheckConstraint("expiry_date > manufacture_date", name="ck_batch_dates"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    material_id: Mapped[int] = mapped_column(
        ForeignKey("materials.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    manufacturer_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    batch_number: Mapped[str] = mapped_column(String(100), nullable=False)
    manufacture_date: Mapped[date] = mapped_column(Date, nullable=False)
    expiry_date: Mapped[date] = mapped_column(Date, nullable=False)
    packets_produced: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    loose_units_produced: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # Tax codes as they were when the batch was produced
    hsn_code: Mapped[str] = mapped_column(String(20), nullable=False)
    gst_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    material: Mapped["Material"] = relationship("Material", back_populates="batches")


from supplychain.models.material import Material  # noqa: E402
