"""Goods Receipt Note (GRN) confirmation.

PENDING -> CONFIRMED

The retailer reports what actually arrived. Received quantities (never more
than expected) are credited to retailer stock and the dispatch is marked
DELIVERED. Shortfalls are only reported here; corrections go through returns.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from sqlalchemy import select

from supplychain.core.errors import InvalidState, ReceivedExceedsExpected, ValidationFailure
from supplychain.core.rbac import Principal, UserRole, ensure_owner, ensure_role
from supplychain.db.unit_of_work import UnitOfWork
from supplychain.models.dispatch import DispatchOrder, DispatchStatus
from supplychain.models.grn import GRN, GRNStatus
from supplychain.services.common import check_quantity, ensure_party, get_or_404, locked_get, utcnow
from supplychain.services.inventory_service import RetailerInventoryService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GRNLineReceipt:
    material_id: int
    received_packets: int
    received_loose_units: int
    damaged_packets: int = 0
    damaged_loose_units: int = 0


@dataclass(frozen=True)
class Discrepancy:
    material_id: int
    expected_packets: int
    expected_loose_units: int
    received_packets: int
    received_loose_units: int

    @property
    def short_packets(self) -> int:
        return self.expected_packets - self.received_packets

    @property
    def short_loose_units(self) -> int:
        return self.expected_loose_units - self.received_loose_units


class GRNService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.db = uow.session
        self.retailer_inventory = RetailerInventoryService(uow)

    def confirm_grn(
        self,
        principal: Principal,
        grn_id: int,
        lines: Iterable,
        notes: Optional[str] = None,
    ) -> GRN:
        """Confirm receipt of every line of a PENDING GRN.

        Raises:
            InvalidState: the GRN is already confirmed or its dispatch is not in transit.
            ReceivedExceedsExpected: a line reports more than was dispatched.
            ValidationFailure: a line is missing, unknown, or damaged exceeds received.
        """
        ensure_role(principal, UserRole.RETAILER)
        receipts = {}
        for line in lines:
            if line.material_id in receipts:
                raise ValidationFailure("Each material may appear only once", material_id=line.material_id)
            check_quantity(line.received_packets, line.received_loose_units,
                           require_positive=False, material_id=line.material_id)
            check_quantity(line.damaged_packets or 0, line.damaged_loose_units or 0,
                           require_positive=False, material_id=line.material_id)
            if (line.damaged_packets or 0) > line.received_packets or (line.damaged_loose_units or 0) > line.received_loose_units:
                raise ValidationFailure(
                    "Damaged quantity cannot exceed received quantity",
                    material_id=line.material_id,
                )
            receipts[line.material_id] = line

        with self.uow.transaction():
            grn = locked_get(self.uow, GRN, grn_id, "GRN")
            ensure_owner(principal, grn.retailer_id, "GRN")
            if grn.status != GRNStatus.PENDING:
                raise InvalidState(
                    f"GRN {grn.grn_number} is already {grn.status.value}",
                    grn_id=grn_id,
                    status=grn.status.value,
                )
            dispatch = locked_get(self.uow, DispatchOrder, grn.dispatch_id, "Dispatch")
            if dispatch.status != DispatchStatus.IN_TRANSIT:
                raise InvalidState(
                    f"Dispatch {dispatch.dispatch_number} is {dispatch.status.value}, expected IN_TRANSIT",
                    dispatch_id=dispatch.id,
                    status=dispatch.status.value,
                )

            items = {item.material_id: item for item in grn.items}
            unknown = set(receipts) - set(items)
            if unknown:
                raise ValidationFailure(
                    "Receipt references materials not on the GRN",
                    material_ids=",".join(str(m) for m in sorted(unknown)),
                )
            missing = set(items) - set(receipts)
            if missing:
                raise ValidationFailure(
                    "Every GRN line must be confirmed",
                    material_ids=",".join(str(m) for m in sorted(missing)),
                )
            for material_id, receipt in receipts.items():
                item = items[material_id]
                if (receipt.received_packets > item.expected_packets
                        or receipt.received_loose_units > item.expected_loose_units):
                    raise ReceivedExceedsExpected(
                        f"Received quantity exceeds expected for material {material_id}",
                        material_id=material_id,
                        expected_packets=item.expected_packets,
                        expected_loose_units=item.expected_loose_units,
                        received_packets=receipt.received_packets,
                        received_loose_units=receipt.received_loose_units,
                    )

            self.retailer_inventory.lock_records((m, grn.retailer_id) for m in receipts)

            for material_id, receipt in receipts.items():
                item = items[material_id]
                item.received_packets = receipt.received_packets
                item.received_loose_units = receipt.received_loose_units
                item.damaged_packets = receipt.damaged_packets or 0
                item.damaged_loose_units = receipt.damaged_loose_units or 0
                self.retailer_inventory.receive_goods(
                    material_id,
                    grn.retailer_id,
                    receipt.received_packets,
                    receipt.received_loose_units,
                    acting_user_id=principal.user_id,
                    reference_id=grn.id,
                )

            now = utcnow()
            grn.status = GRNStatus.CONFIRMED
            grn.confirmed_at = now
            if notes:
                grn.notes = notes
            dispatch.status = DispatchStatus.DELIVERED
            dispatch.delivered_at = now
            self.db.flush()

        shortfalls = self.discrepancies(grn)
        if shortfalls:
            logger.info(
                f"GRN {grn.grn_number} confirmed with {len(shortfalls)} short line(s)"
            )
        else:
            logger.info(f"GRN {grn.grn_number} confirmed in full")
        return grn

    def discrepancies(self, grn: GRN) -> List[Discrepancy]:
        """Lines where less was received than expected."""
        result = []
        for item in grn.items:
            if item.received_packets is None:
                continue
            if item.short_packets > 0 or item.short_loose_units > 0:
                result.append(Discrepancy(
                    material_id=item.material_id,
                    expected_packets=item.expected_packets,
                    expected_loose_units=item.expected_loose_units,
                    received_packets=item.received_packets,
                    received_loose_units=item.received_loose_units,
                ))
        return result

    # ===== QUERIES =====

    def get_grn(self, principal: Principal, grn_id: int) -> GRN:
        grn = get_or_404(self.uow, GRN, grn_id, "GRN")
        ensure_party(principal, grn.retailer_id, grn.manufacturer_id, "GRN")
        return grn

    def list_for_retailer(self, retailer_id: int, status: Optional[GRNStatus] = None) -> List[GRN]:
        stmt = select(GRN).where(GRN.retailer_id == retailer_id)
        if status is not None:
            stmt = stmt.where(GRN.status == status)
        return list(self.db.execute(stmt.order_by(GRN.id.desc())).scalars())

    def list_all(self, status: Optional[GRNStatus] = None) -> List[GRN]:
        stmt = select(GRN)
        if status is not None:
            stmt = stmt.where(GRN.status == status)
        return list(self.db.execute(stmt.order_by(GRN.id.desc())).scalars())

    def list_for_manufacturer(self, manufacturer_id: int, status: Optional[GRNStatus] = None) -> List[GRN]:
        stmt = select(GRN).where(GRN.manufacturer_id == manufacturer_id)
        if status is not None:
            stmt = stmt.where(GRN.status == status)
        return list(self.db.execute(stmt.order_by(GRN.id.desc())).scalars())
