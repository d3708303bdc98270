"""Dispatch state machine.

PENDING -> IN_TRANSIT -> DELIVERED

The manufacturer creates a dispatch from an approved SRN and executes it.
Execution ships the blocked stock and opens the GRN the retailer will
confirm; that confirmation is what moves the dispatch to DELIVERED.
"""

import logging
from typing import List, Optional

from sqlalchemy import select

from supplychain.core import money
from supplychain.core.errors import InvalidSrnState, InvalidState
from supplychain.core.rbac import Principal, UserRole, ensure_owner, ensure_role
from supplychain.db.unit_of_work import UnitOfWork
from supplychain.models.dispatch import DispatchItem, DispatchOrder, DispatchStatus
from supplychain.models.grn import GRN, GRNItem, GRNStatus
from supplychain.models.material import Material
from supplychain.models.srn import SRN
from supplychain.services.common import ensure_party, get_or_404, locked_get, utcnow
from supplychain.services.inventory_service import ManufacturerInventoryService
from supplychain.services.sequence_service import DISPATCH_PREFIX, GRN_PREFIX, SequenceService
from supplychain.services.srn_service import PROCESSED_STATUSES

logger = logging.getLogger(__name__)


class DispatchService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.db = uow.session
        self.inventory = ManufacturerInventoryService(uow)
        self.sequence = SequenceService(uow)

    def create_dispatch(
        self,
        principal: Principal,
        srn_id: int,
        delivery_notes: Optional[str] = None,
    ) -> DispatchOrder:
        """Create a PENDING dispatch carrying the SRN's approved quantities.

        Prices, HSN code and GST rate are copied from the material now and
        never re-read.

        Raises:
            InvalidSrnState: the SRN is not APPROVED/PARTIAL or already has a dispatch.
        """
        ensure_role(principal, UserRole.MANUFACTURER)
        with self.uow.transaction():
            srn = locked_get(self.uow, SRN, srn_id, "SRN")
            ensure_owner(principal, srn.manufacturer_id, "SRN")
            if srn.status not in PROCESSED_STATUSES:
                raise InvalidSrnState(
                    f"SRN {srn.srn_number} is {srn.status.value}; only approved SRNs can be dispatched",
                    srn_id=srn_id,
                    status=srn.status.value,
                )
            existing = self.db.execute(
                select(DispatchOrder.dispatch_number).where(DispatchOrder.srn_id == srn_id)
            ).scalar_one_or_none()
            if existing is not None:
                raise InvalidSrnState(
                    f"SRN {srn.srn_number} already has dispatch {existing}",
                    srn_id=srn_id,
                    dispatch_number=existing,
                )

            items = []
            for srn_item in srn.items:
                packets = srn_item.approved_packets or 0
                loose_units = srn_item.approved_loose_units or 0
                if packets == 0 and loose_units == 0:
                    continue
                material = self.db.get(Material, srn_item.material_id)
                unit_price = material.unit_price
                items.append(DispatchItem(
                    material_id=material.id,
                    packets=packets,
                    loose_units=loose_units,
                    units_per_packet=material.units_per_packet,
                    packet_price=material.mrp_per_packet,
                    unit_price=unit_price,
                    line_total=money.line_total(material.mrp_per_packet, packets, unit_price, loose_units),
                    hsn_code=material.hsn_code,
                    gst_rate=material.gst_rate,
                ))
            if not items:
                raise InvalidSrnState(f"SRN {srn.srn_number} has no approved quantity", srn_id=srn_id)

            dispatch = DispatchOrder(
                dispatch_number=self.sequence.next_number(DISPATCH_PREFIX),
                srn_id=srn.id,
                manufacturer_id=srn.manufacturer_id,
                retailer_id=srn.retailer_id,
                created_by=principal.user_id,
                status=DispatchStatus.PENDING,
                total_packets=sum(i.packets for i in items),
                total_loose_units=sum(i.loose_units for i in items),
                subtotal=money.total(i.line_total for i in items),
                delivery_notes=delivery_notes,
                items=items,
            )
            self.db.add(dispatch)
            self.db.flush()

        logger.info(f"Dispatch {dispatch.dispatch_number} created for SRN {srn.srn_number}")
        return dispatch

    def execute_dispatch(
        self,
        principal: Principal,
        dispatch_id: int,
        delivery_notes: Optional[str] = None,
    ) -> DispatchOrder:
        """Ship a PENDING dispatch and open its GRN.

        Every line's blocked quantity is re-validated by the ledger; if any
        line falls short nothing is shipped.
        """
        ensure_role(principal, UserRole.MANUFACTURER)
        with self.uow.transaction():
            dispatch = locked_get(self.uow, DispatchOrder, dispatch_id, "Dispatch")
            ensure_owner(principal, dispatch.manufacturer_id, "Dispatch")
            if dispatch.status != DispatchStatus.PENDING:
                raise InvalidState(
                    f"Dispatch {dispatch.dispatch_number} is {dispatch.status.value}, expected PENDING",
                    dispatch_id=dispatch_id,
                    status=dispatch.status.value,
                )
            self.inventory.lock_records((item.material_id, dispatch.manufacturer_id) for item in dispatch.items)

            for item in dispatch.items:
                self.inventory.execute_dispatch(
                    item.material_id,
                    dispatch.manufacturer_id,
                    item.packets,
                    item.loose_units,
                    acting_user_id=principal.user_id,
                    reference_id=dispatch.id,
                )

            dispatch.status = DispatchStatus.IN_TRANSIT
            dispatch.executed_at = utcnow()
            if delivery_notes:
                dispatch.delivery_notes = delivery_notes

            grn = GRN(
                grn_number=self.sequence.next_number(GRN_PREFIX),
                dispatch_id=dispatch.id,
                retailer_id=dispatch.retailer_id,
                manufacturer_id=dispatch.manufacturer_id,
                status=GRNStatus.PENDING,
                items=[
                    GRNItem(
                        dispatch_item_id=item.id,
                        material_id=item.material_id,
                        expected_packets=item.packets,
                        expected_loose_units=item.loose_units,
                    )
                    for item in dispatch.items
                ],
            )
            self.db.add(grn)
            self.db.flush()

        logger.info(
            f"Dispatch {dispatch.dispatch_number} executed by manufacturer {principal.user_id}; "
            f"GRN {grn.grn_number} opened"
        )
        return dispatch

    # ===== QUERIES =====

    def get_dispatch(self, principal: Principal, dispatch_id: int) -> DispatchOrder:
        dispatch = get_or_404(self.uow, DispatchOrder, dispatch_id, "Dispatch")
        ensure_party(principal, dispatch.retailer_id, dispatch.manufacturer_id, "Dispatch")
        return dispatch

    def get_for_srn(self, srn_id: int) -> Optional[DispatchOrder]:
        return self.db.execute(
            select(DispatchOrder).where(DispatchOrder.srn_id == srn_id)
        ).scalar_one_or_none()

    def list_for_manufacturer(self, manufacturer_id: int, status: Optional[DispatchStatus] = None) -> List[DispatchOrder]:
        stmt = select(DispatchOrder).where(DispatchOrder.manufacturer_id == manufacturer_id)
        if status is not None:
            stmt = stmt.where(DispatchOrder.status == status)
        return list(self.db.execute(stmt.order_by(DispatchOrder.id.desc())).scalars())

    def list_all(self, status: Optional[DispatchStatus] = None) -> List[DispatchOrder]:
        stmt = select(DispatchOrder)
        if status is not None:
            stmt = stmt.where(DispatchOrder.status == status)
        return list(self.db.execute(stmt.order_by(DispatchOrder.id.desc())).scalars())

    def list_for_retailer(self, retailer_id: int, status: Optional[DispatchStatus] = None) -> List[DispatchOrder]:
        stmt = select(DispatchOrder).where(DispatchOrder.retailer_id == retailer_id)
        if status is not None:
            stmt = stmt.where(DispatchOrder.status == status)
        return list(self.db.execute(stmt.order_by(DispatchOrder.id.desc())).scalars())
