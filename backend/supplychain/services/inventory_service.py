"""Inventory ledger.

Manufacturer stock has two pools: available and blocked. Approving an SRN
moves quantity from available into blocked; executing the dispatch removes it
from both totals; rejecting it releases it back. Retailer stock has no blocked
pool and is drawn down by sales, opening full packets when loose units run out.

Every mutation:
1. takes the keyed lock for the (owner, material) record and re-reads it,
2. validates against the freshly read balances,
3. applies the change and writes one InventoryTransaction row with the
   resulting balances.

All of it happens inside ``uow.transaction()``, so a caller that is already in
a transaction (SRN approval, dispatch execution, GRN confirmation) commits or
rolls back the ledger writes together with its own.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import select

from supplychain.core.errors import InsufficientAvailable, InsufficientBlocked, InvalidState, NotFound
from supplychain.db.unit_of_work import UnitOfWork, inventory_key
from supplychain.models.inventory import (
    InventoryTransaction,
    ManufacturerInventory,
    OwnerKind,
    RetailerInventory,
    TransactionType,
)
from supplychain.models.material import Material
from supplychain.services.common import check_quantity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockLevel:
    """Snapshot of one stock record."""

    material_id: int
    owner_id: int
    full_packets: int
    loose_units: int
    blocked_packets: int = 0
    blocked_loose_units: int = 0

    @property
    def available_packets(self) -> int:
        return self.full_packets - self.blocked_packets

    @property
    def available_loose_units(self) -> int:
        return self.loose_units - self.blocked_loose_units


def _log_transaction(
    uow: UnitOfWork,
    *,
    owner_kind: OwnerKind,
    owner_id: int,
    material_id: int,
    transaction_type: TransactionType,
    packets_change: int,
    units_change: int,
    packets_after: int,
    units_after: int,
    blocked_packets_change: int = 0,
    blocked_units_change: int = 0,
    blocked_packets_after: int = 0,
    blocked_units_after: int = 0,
    reference_type: Optional[str] = None,
    reference_id: Optional[int] = None,
    acting_user_id: Optional[int] = None,
    notes: Optional[str] = None,
) -> InventoryTransaction:
    txn = InventoryTransaction(
        owner_kind=owner_kind,
        owner_id=owner_id,
        material_id=material_id,
        transaction_type=transaction_type,
        packets_change=packets_change,
        units_change=units_change,
        blocked_packets_change=blocked_packets_change,
        blocked_units_change=blocked_units_change,
        packets_after=packets_after,
        units_after=units_after,
        blocked_packets_after=blocked_packets_after,
        blocked_units_after=blocked_units_after,
        reference_type=reference_type,
        reference_id=reference_id,
        created_by=acting_user_id,
        notes=notes,
    )
    uow.session.add(txn)
    return txn


class ManufacturerInventoryService:
    """Available/blocked ledger for manufacturer stock."""

    owner_kind = OwnerKind.MANUFACTURER

    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.db = uow.session

    # ===== LOCKING =====

    def lock_records(self, pairs) -> None:
        """Lock several (material_id, manufacturer_id) records in sorted order."""
        self.uow.lock(inventory_key(self.owner_kind.value, m, o) for m, o in pairs)

    def _locked_record(self, material_id: int, manufacturer_id: int, create: bool = False) -> Optional[ManufacturerInventory]:
        self.uow.lock([inventory_key(self.owner_kind.value, material_id, manufacturer_id)])
        stmt = (
            select(ManufacturerInventory)
            .where(
                ManufacturerInventory.material_id == material_id,
                ManufacturerInventory.manufacturer_id == manufacturer_id,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        record = self.db.execute(stmt).scalar_one_or_none()
        if record is None and create:
            record = ManufacturerInventory(
                material_id=material_id,
                manufacturer_id=manufacturer_id,
                full_packets=0,
                loose_units=0,
                blocked_packets=0,
                blocked_loose_units=0,
            )
            self.db.add(record)
            self.db.flush()
        return record

    def _require_record(self, material_id: int, manufacturer_id: int) -> ManufacturerInventory:
        record = self._locked_record(material_id, manufacturer_id)
        if record is None:
            raise NotFound(
                "Inventory record",
                material_id=material_id,
                manufacturer_id=manufacturer_id,
            )
        return record

    @staticmethod
    def _check_invariants(record: ManufacturerInventory) -> None:
        if not (
            0 <= record.blocked_packets <= record.full_packets
            and 0 <= record.blocked_loose_units <= record.loose_units
        ):
            raise InvalidState(
                "Inventory record would violate 0 <= blocked <= total",
                material_id=record.material_id,
                manufacturer_id=record.manufacturer_id,
            )

    def _log(self, record, transaction_type, packets_change, units_change,
             blocked_packets_change, blocked_units_change, reference_type,
             reference_id, acting_user_id, notes=None) -> InventoryTransaction:
        self._check_invariants(record)
        return _log_transaction(
            self.uow,
            owner_kind=self.owner_kind,
            owner_id=record.manufacturer_id,
            material_id=record.material_id,
            transaction_type=transaction_type,
            packets_change=packets_change,
            units_change=units_change,
            packets_after=record.full_packets,
            units_after=record.loose_units,
            blocked_packets_change=blocked_packets_change,
            blocked_units_change=blocked_units_change,
            blocked_packets_after=record.blocked_packets,
            blocked_units_after=record.blocked_loose_units,
            reference_type=reference_type,
            reference_id=reference_id,
            acting_user_id=acting_user_id,
            notes=notes,
        )

    # ===== MUTATIONS =====

    def add_production(
        self,
        material_id: int,
        manufacturer_id: int,
        packets: int,
        loose_units: int,
        acting_user_id: Optional[int],
        reference_id: Optional[int],
        notes: Optional[str] = None,
    ) -> ManufacturerInventory:
        """Increase totals; creates the record on first production."""
        check_quantity(packets, loose_units, material_id=material_id)
        with self.uow.transaction():
            record = self._locked_record(material_id, manufacturer_id, create=True)
            record.full_packets += packets
            record.loose_units += loose_units
            self._log(record, TransactionType.PRODUCTION, packets, loose_units, 0, 0,
                      "production_batch", reference_id, acting_user_id, notes)
            self.db.flush()
        logger.info(
            f"Production added: material {material_id} manufacturer {manufacturer_id} "
            f"+{packets} pkts +{loose_units} units"
        )
        return record

    def block_for_dispatch(
        self,
        material_id: int,
        manufacturer_id: int,
        packets: int,
        loose_units: int,
        acting_user_id: Optional[int],
        reference_id: Optional[int],
    ) -> ManufacturerInventory:
        """Reserve available stock for an approved SRN.

        Raises:
            InsufficientAvailable: either component exceeds the available pool.
        """
        check_quantity(packets, loose_units, material_id=material_id)
        with self.uow.transaction():
            record = self._locked_record(material_id, manufacturer_id)
            available_packets = record.available_packets if record else 0
            available_units = record.available_loose_units if record else 0
            if packets > available_packets or loose_units > available_units:
                raise InsufficientAvailable(
                    f"Insufficient available stock for material {material_id}: "
                    f"requested {packets} pkts + {loose_units} units, "
                    f"available {available_packets} pkts + {available_units} units",
                    material_id=material_id,
                    manufacturer_id=manufacturer_id,
                    requested_packets=packets,
                    requested_loose_units=loose_units,
                    available_packets=available_packets,
                    available_loose_units=available_units,
                )
            record.blocked_packets += packets
            record.blocked_loose_units += loose_units
            self._log(record, TransactionType.DISPATCH_BLOCK, 0, 0, packets, loose_units,
                      "srn", reference_id, acting_user_id)
            self.db.flush()
        return record

    def unblock_inventory(
        self,
        material_id: int,
        manufacturer_id: int,
        packets: int,
        loose_units: int,
        acting_user_id: Optional[int],
        reference_id: Optional[int],
    ) -> ManufacturerInventory:
        """Release a reservation back into the available pool."""
        check_quantity(packets, loose_units, material_id=material_id)
        with self.uow.transaction():
            record = self._require_record(material_id, manufacturer_id)
            self._check_blocked(record, packets, loose_units)
            record.blocked_packets -= packets
            record.blocked_loose_units -= loose_units
            self._log(record, TransactionType.DISPATCH_UNBLOCK, 0, 0, -packets, -loose_units,
                      "srn", reference_id, acting_user_id)
            self.db.flush()
        return record

    def execute_dispatch(
        self,
        material_id: int,
        manufacturer_id: int,
        packets: int,
        loose_units: int,
        acting_user_id: Optional[int],
        reference_id: Optional[int],
    ) -> ManufacturerInventory:
        """Ship reserved stock: decrease totals and blocked by the same amount."""
        check_quantity(packets, loose_units, material_id=material_id)
        with self.uow.transaction():
            record = self._require_record(material_id, manufacturer_id)
            self._check_blocked(record, packets, loose_units)
            record.full_packets -= packets
            record.loose_units -= loose_units
            record.blocked_packets -= packets
            record.blocked_loose_units -= loose_units
            self._log(record, TransactionType.DISPATCH_EXECUTE, -packets, -loose_units,
                      -packets, -loose_units, "dispatch", reference_id, acting_user_id)
            self.db.flush()
        return record

    def restock_from_return(
        self,
        material_id: int,
        manufacturer_id: int,
        packets: int,
        loose_units: int,
        acting_user_id: Optional[int],
        reference_id: Optional[int],
    ) -> ManufacturerInventory:
        """Put returned goods back into available stock."""
        check_quantity(packets, loose_units, material_id=material_id)
        with self.uow.transaction():
            record = self._locked_record(material_id, manufacturer_id, create=True)
            record.full_packets += packets
            record.loose_units += loose_units
            self._log(record, TransactionType.RETURN_RESTOCK, packets, loose_units, 0, 0,
                      "return", reference_id, acting_user_id)
            self.db.flush()
        return record

    @staticmethod
    def _check_blocked(record: ManufacturerInventory, packets: int, loose_units: int) -> None:
        if packets > record.blocked_packets or loose_units > record.blocked_loose_units:
            raise InsufficientBlocked(
                f"Insufficient blocked stock for material {record.material_id}: "
                f"requested {packets} pkts + {loose_units} units, "
                f"blocked {record.blocked_packets} pkts + {record.blocked_loose_units} units",
                material_id=record.material_id,
                manufacturer_id=record.manufacturer_id,
                requested_packets=packets,
                requested_loose_units=loose_units,
                blocked_packets=record.blocked_packets,
                blocked_loose_units=record.blocked_loose_units,
            )

    # ===== QUERIES =====

    def get_stock(self, material_id: int, manufacturer_id: int) -> StockLevel:
        """Current balances; zeros when no record exists yet."""
        stmt = (
            select(ManufacturerInventory)
            .where(
                ManufacturerInventory.material_id == material_id,
                ManufacturerInventory.manufacturer_id == manufacturer_id,
            )
            .execution_options(populate_existing=True)
        )
        record = self.db.execute(stmt).scalar_one_or_none()
        if record is None:
            return StockLevel(material_id, manufacturer_id, 0, 0, 0, 0)
        return _stock_level(record, record.manufacturer_id)

    def get_available(self, material_id: int, manufacturer_id: int) -> tuple[int, int]:
        """(available_packets, available_loose_units)."""
        level = self.get_stock(material_id, manufacturer_id)
        return level.available_packets, level.available_loose_units

    def list_for_manufacturer(self, manufacturer_id: int) -> List[ManufacturerInventory]:
        stmt = (
            select(ManufacturerInventory)
            .join(Material, Material.id == ManufacturerInventory.material_id)
            .where(ManufacturerInventory.manufacturer_id == manufacturer_id)
            .order_by(Material.name)
        )
        return list(self.db.execute(stmt).scalars())

    def list_all(self) -> List[ManufacturerInventory]:
        stmt = select(ManufacturerInventory).order_by(
            ManufacturerInventory.manufacturer_id, ManufacturerInventory.material_id
        )
        return list(self.db.execute(stmt).scalars())

    def inventory_for_manufacturer(self, manufacturer_id: int) -> dict:
        """Per-material records plus totals across all materials."""
        records = self.list_for_manufacturer(manufacturer_id)
        return {
            "items": records,
            "total_packets": sum(r.full_packets for r in records),
            "total_loose_units": sum(r.loose_units for r in records),
            "blocked_packets": sum(r.blocked_packets for r in records),
            "blocked_loose_units": sum(r.blocked_loose_units for r in records),
            "available_packets": sum(r.available_packets for r in records),
            "available_loose_units": sum(r.available_loose_units for r in records),
        }


class RetailerInventoryService:
    """Retailer stock: credited by GRNs, drawn down by sales."""

    owner_kind = OwnerKind.RETAILER

    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.db = uow.session

    def lock_records(self, pairs) -> None:
        self.uow.lock(inventory_key(self.owner_kind.value, m, o) for m, o in pairs)

    def _locked_record(self, material_id: int, retailer_id: int, create: bool = False) -> Optional[RetailerInventory]:
        self.uow.lock([inventory_key(self.owner_kind.value, material_id, retailer_id)])
        stmt = (
            select(RetailerInventory)
            .where(
                RetailerInventory.material_id == material_id,
                RetailerInventory.retailer_id == retailer_id,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        record = self.db.execute(stmt).scalar_one_or_none()
        if record is None and create:
            record = RetailerInventory(
                material_id=material_id,
                retailer_id=retailer_id,
                full_packets=0,
                loose_units=0,
            )
            self.db.add(record)
            self.db.flush()
        return record

    def _log(self, record, transaction_type, packets_change, units_change,
             reference_type, reference_id, acting_user_id, notes=None) -> InventoryTransaction:
        if record.full_packets < 0 or record.loose_units < 0:
            raise InvalidState(
                "Retailer inventory cannot go negative",
                material_id=record.material_id,
                retailer_id=record.retailer_id,
            )
        return _log_transaction(
            self.uow,
            owner_kind=self.owner_kind,
            owner_id=record.retailer_id,
            material_id=record.material_id,
            transaction_type=transaction_type,
            packets_change=packets_change,
            units_change=units_change,
            packets_after=record.full_packets,
            units_after=record.loose_units,
            reference_type=reference_type,
            reference_id=reference_id,
            acting_user_id=acting_user_id,
            notes=notes,
        )

    def receive_goods(
        self,
        material_id: int,
        retailer_id: int,
        packets: int,
        loose_units: int,
        acting_user_id: Optional[int],
        reference_id: Optional[int],
    ) -> Optional[RetailerInventory]:
        """Credit stock received against a GRN. A zero receipt is a no-op."""
        check_quantity(packets, loose_units, require_positive=False, material_id=material_id)
        if packets == 0 and loose_units == 0:
            return None
        with self.uow.transaction():
            record = self._locked_record(material_id, retailer_id, create=True)
            record.full_packets += packets
            record.loose_units += loose_units
            self._log(record, TransactionType.GRN_RECEIVE, packets, loose_units,
                      "grn", reference_id, acting_user_id)
            self.db.flush()
        return record

    def sell_units(
        self,
        material_id: int,
        retailer_id: int,
        units: int,
        acting_user_id: Optional[int],
        reference_id: Optional[int],
    ) -> int:
        """Remove ``units`` from stock, opening full packets if loose units run short.

        Returns:
            Number of packets opened.

        Raises:
            InsufficientAvailable: total units on hand are less than ``units``.
        """
        check_quantity(0, units, material_id=material_id)
        material = self.db.get(Material, material_id)
        if material is None:
            raise NotFound("Material", material_id)
        per_packet = material.units_per_packet

        with self.uow.transaction():
            record = self._locked_record(material_id, retailer_id)
            on_hand = record.total_units(per_packet) if record else 0
            if units > on_hand:
                raise InsufficientAvailable(
                    f"Insufficient stock for material {material_id}: "
                    f"requested {units} units, have {on_hand} units",
                    material_id=material_id,
                    retailer_id=retailer_id,
                    requested_units=units,
                    available_units=on_hand,
                )

            packets_opened = 0
            if record.loose_units < units:
                shortfall = units - record.loose_units
                packets_opened = -(-shortfall // per_packet)  # ceiling division
                record.full_packets -= packets_opened
                record.loose_units += packets_opened * per_packet
                self._log(record, TransactionType.PACKET_OPEN, -packets_opened,
                          packets_opened * per_packet, "sale", reference_id, acting_user_id,
                          notes=f"Opened {packets_opened} packet(s) for sale")

            record.loose_units -= units
            self._log(record, TransactionType.SALE, 0, -units, "sale", reference_id, acting_user_id)
            self.db.flush()

        logger.info(
            f"Sold {units} units of material {material_id} for retailer {retailer_id} "
            f"(opened {packets_opened} packets)"
        )
        return packets_opened

    def get_stock(self, material_id: int, retailer_id: int) -> StockLevel:
        stmt = (
            select(RetailerInventory)
            .where(
                RetailerInventory.material_id == material_id,
                RetailerInventory.retailer_id == retailer_id,
            )
            .execution_options(populate_existing=True)
        )
        record = self.db.execute(stmt).scalar_one_or_none()
        if record is None:
            return StockLevel(material_id, retailer_id, 0, 0)
        return _stock_level(record, record.retailer_id)

    def get_available_units(self, material_id: int, retailer_id: int) -> int:
        """Total sellable units: full packets x packet size + loose units."""
        material = self.db.get(Material, material_id)
        if material is None:
            raise NotFound("Material", material_id)
        level = self.get_stock(material_id, retailer_id)
        return level.full_packets * material.units_per_packet + level.loose_units

    def list_for_retailer(self, retailer_id: int) -> List[RetailerInventory]:
        stmt = (
            select(RetailerInventory)
            .join(Material, Material.id == RetailerInventory.material_id)
            .where(RetailerInventory.retailer_id == retailer_id)
            .order_by(Material.name)
        )
        return list(self.db.execute(stmt).scalars())


def _stock_level(record, owner_id: int) -> StockLevel:
    return StockLevel(
        material_id=record.material_id,
        owner_id=owner_id,
        full_packets=record.full_packets,
        loose_units=record.loose_units,
        blocked_packets=getattr(record, "blocked_packets", 0),
        blocked_loose_units=getattr(record, "blocked_loose_units", 0),
    )


def list_transactions(
    uow: UnitOfWork,
    *,
    owner_kind: Optional[OwnerKind] = None,
    owner_id: Optional[int] = None,
    material_id: Optional[int] = None,
    transaction_type: Optional[TransactionType] = None,
    limit: int = 100,
) -> List[InventoryTransaction]:
    """Transaction log, newest first."""
    stmt = select(InventoryTransaction)
    if owner_kind is not None:
        stmt = stmt.where(InventoryTransaction.owner_kind == owner_kind)
    if owner_id is not None:
        stmt = stmt.where(InventoryTransaction.owner_id == owner_id)
    if material_id is not None:
        stmt = stmt.where(InventoryTransaction.material_id == material_id)
    if transaction_type is not None:
        stmt = stmt.where(InventoryTransaction.transaction_type == transaction_type)
    stmt = stmt.order_by(InventoryTransaction.id.desc()).limit(limit)
    return list(uow.session.execute(stmt).scalars())
