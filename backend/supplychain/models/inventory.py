"""Inventory models: manufacturer and retailer stock plus the transaction log."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from supplychain.db.base import AppendOnlyMixin, Base


class OwnerKind(str, Enum):
    """Which kind of party holds a stock record."""

    MANUFACTURER = "MANUFACTURER"
    RETAILER = "RETAILER"


class TransactionType(str, Enum):
    """Reasons for inventory movements."""

    PRODUCTION = "PRODUCTION"  # batch recorded
    DISPATCH_BLOCK = "DISPATCH_BLOCK"  # SRN approved, stock reserved
    DISPATCH_UNBLOCK = "DISPATCH_UNBLOCK"  # reservation released
    DISPATCH_EXECUTE = "DISPATCH_EXECUTE"  # reserved stock leaves the manufacturer
    GRN_RECEIVE = "GRN_RECEIVE"  # retailer confirms receipt
    PACKET_OPEN = "PACKET_OPEN"  # full packet broken into loose units
    SALE = "SALE"  # retailer sells units
    RETURN_RESTOCK = "RETURN_RESTOCK"  # returned goods back into manufacturer stock


class ManufacturerInventory(Base):
    """Stock per (material, manufacturer).

    ``full_packets``/``loose_units`` are the physical totals; ``blocked_*`` is
    the subset reserved for approved-but-unexecuted dispatches.
    """

    __tablename__ = "manufacturer_inventory"
    __table_args__ = (
        UniqueConstraint("material_id", "manufacturer_id", name="uq_mfr_inventory_material_owner"),
        CheckConstraint("full_packets >= 0", name="ck_mfr_inventory_packets"),
        CheckConstraint("loose_units >= 0", name="ck_mfr_inventory_units"),
        CheckConstraint(
            "blocked_packets >= 0 AND blocked_packets <= full_packets",
            name="ck_mfr_inventory_blocked_packets",
        ),
        CheckConstraint(
            "blocked_loose_units >= 0 AND blocked_loose_units <= loose_units",
            name="ck_mfr_inventory_blocked_units",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    material_id: Mapped[int] = mapped_column(
        ForeignKey("materials.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    manufacturer_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    full_packets: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    loose_units: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    blocked_packets: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    blocked_loose_units: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    material: Mapped["Material"] = relationship("Material")

    @property
    def available_packets(self) -> int:
        return self.full_packets - self.blocked_packets

    @property
    def available_loose_units(self) -> int:
        return self.loose_units - self.blocked_loose_units


class RetailerInventory(Base):
    """Stock per (material, retailer). Retailers never block stock."""

    __tablename__ = "retailer_inventory"
    __table_args__ = (
        UniqueConstraint("material_id", "retailer_id", name="uq_retailer_inventory_material_owner"),
        CheckConstraint("full_packets >= 0", name="ck_retailer_inventory_packets"),
        CheckConstraint("loose_units >= 0", name="ck_retailer_inventory_units"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    material_id: Mapped[int] = mapped_column(
        ForeignKey("materials.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    retailer_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    full_packets: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    loose_units: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    material: Mapped["Material"] = relationship("Material")

    def total_units(self, units_per_packet: int) -> int:
        return self.full_packets * units_per_packet + self.loose_units


class InventoryTransaction(AppendOnlyMixin, Base):
    """Ledger of every inventory change, with the balances it left behind."""

    __tablename__ = "inventory_transactions"

    id: Mapped[int] = mapped_column(primary_key=True)
    ts: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False, index=True
    )
    transaction_type: Mapped[TransactionType] = mapped_column(
        SQLEnum(TransactionType), nullable=False, index=True
    )
    owner_kind: Mapped[OwnerKind] = mapped_column(SQLEnum(OwnerKind), nullable=False)
    owner_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    material_id: Mapped[int] = mapped_column(
        ForeignKey("materials.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    packets_change: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    units_change: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    blocked_packets_change: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    blocked_units_change: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    packets_after: Mapped[int] = mapped_column(Integer, nullable=False)
    units_after: Mapped[int] = mapped_column(Integer, nullable=False)
    blocked_packets_after: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    blocked_units_after: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    reference_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)  # srn, dispatch, grn, sale
    reference_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    created_by: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )


from supplychain.models.material import Material  # noqa: E402
