"""Material (product) model."""

from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Optional, List

from sqlalchemy import Boolean, CheckConstraint, Enum as SQLEnum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from supplychain.core import money
from supplychain.core.errors import ImmutableFieldViolation
from supplychain.db.base import Base, TimestampMixin


class CommissionType(str, Enum):
    """How a retailer's commission on a sale is computed."""

    PERCENTAGE = "PERCENTAGE"  # rate % of the sale amount
    FLAT_PER_UNIT = "FLAT_PER_UNIT"  # fixed amount per unit sold


class Material(Base, TimestampMixin):
    """A sellable product, packed as full packets of a fixed size."""

    __tablename__ = "materials"
    __table_args__ = (
        CheckConstraint("units_per_packet > 0", name="ck_material_units_per_packet"),
        CheckConstraint("mrp_per_packet > 0", name="ck_material_mrp"),
        CheckConstraint("gst_rate >= 0 AND gst_rate <= 100", name="ck_material_gst_rate"),
        CheckConstraint("commission_value >= 0", name="ck_material_commission"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    sq_code: Mapped[str] = mapped_column(String(20), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    hsn_code: Mapped[str] = mapped_column(String(20), nullable=False)
    gst_rate: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    units_per_packet: Mapped[int] = mapped_column(Integer, nullable=False)
    mrp_per_packet: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    commission_type: Mapped[CommissionType] = mapped_column(
        SQLEnum(CommissionType), default=CommissionType.PERCENTAGE, nullable=False
    )
    commission_value: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=0, nullable=False)
    has_production: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
    created_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    # Relationships
    batches: Mapped[List["ProductionBatch"]] = relationship(
        "ProductionBatch", back_populates="material"
    )

    @property
    def unit_price(self) -> Decimal:
        """Price of one loose unit: MRP per packet / units per packet."""
        return money.unit_price(self.mrp_per_packet, self.units_per_packet)

    @validates("sq_code", "units_per_packet")
    def _validate_write_once(self, key, value):
        current = getattr(self, key)
        if current is not None and value != current:
            raise ImmutableFieldViolation(f"{key} cannot be changed", field=key, material_id=self.id)
        return value

    @validates("has_production")
    def _validate_has_production(self, key, value):
        if self.has_production and not value:
            raise ImmutableFieldViolation(
                "has_production cannot be cleared once set",
                field=key,
                material_id=self.id,
            )
        return value

    @validates("hsn_code", "gst_rate")
    def _validate_tax_codes(self, key, value):
        if self.has_production:
            current = getattr(self, key)
            changed = (
                Decimal(str(value)) != Decimal(str(current))
                if key == "gst_rate"
                else value != current
            )
            if changed:
                raise ImmutableFieldViolation(
                    f"{key} is locked because production has been recorded",
                    field=key,
                    material_id=self.id,
                )
        return value


from supplychain.models.production import ProductionBatch  # noqa: E402
