"""Stock Requisition Note (SRN) state machine.

DRAFT -> SUBMITTED -> APPROVED | PARTIAL | REJECTED

The retailer drafts and submits; an admin processes. Approval blocks the
approved quantities in the manufacturer's inventory, all lines or none, in the
same transaction as the status change.
"""

import logging
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import func, select

from supplychain.core.errors import InvalidQuantity, InvalidSrnState, ValidationFailure
from supplychain.core.rbac import Principal, UserRole, ensure_owner, ensure_role
from supplychain.db.unit_of_work import UnitOfWork
from supplychain.models.srn import SRN, SRNItem, SRNStatus
from supplychain.services.assignment_service import AssignmentService
from supplychain.services.common import (
    LineQuantity,
    check_quantity,
    ensure_party,
    get_or_404,
    locked_get,
    merge_lines,
    utcnow,
)
from supplychain.services.inventory_service import ManufacturerInventoryService
from supplychain.services.material_service import MaterialService
from supplychain.services.sequence_service import SRN_PREFIX, SequenceService
from supplychain.services.user_service import UserService

logger = logging.getLogger(__name__)

PROCESSED_STATUSES = (SRNStatus.APPROVED, SRNStatus.PARTIAL)


class SRNDecision(str, Enum):
    APPROVE = "APPROVE"
    REJECT = "REJECT"


def classify_approval(items: Iterable[SRNItem]) -> SRNStatus:
    """PARTIAL if any line was approved below its request, APPROVED otherwise."""
    for item in items:
        approved_packets = item.approved_packets or 0
        approved_units = item.approved_loose_units or 0
        if approved_packets < item.requested_packets or approved_units < item.requested_loose_units:
            return SRNStatus.PARTIAL
    return SRNStatus.APPROVED


class SRNService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.db = uow.session
        self.inventory = ManufacturerInventoryService(uow)
        self.assignments = AssignmentService(uow)
        self.materials = MaterialService(uow)

    # ===== RETAILER =====

    def _build_items(self, lines: Iterable) -> List[SRNItem]:
        items = []
        for line in merge_lines(lines).values():
            check_quantity(line.packets, line.loose_units, material_id=line.material_id)
            self.materials.require_active(line.material_id)
            items.append(SRNItem(
                material_id=line.material_id,
                requested_packets=line.packets,
                requested_loose_units=line.loose_units,
            ))
        return items

    def create_srn(
        self,
        principal: Principal,
        manufacturer_id: int,
        lines: Iterable = (),
        notes: Optional[str] = None,
        submit: bool = False,
    ) -> SRN:
        """Draft a request to an assigned manufacturer, optionally submitting it at once."""
        ensure_role(principal, UserRole.RETAILER)
        UserService(self.uow).require_active(manufacturer_id, UserRole.MANUFACTURER, "Manufacturer")
        self.assignments.require_assignment(principal.user_id, manufacturer_id)
        items = self._build_items(lines)

        with self.uow.transaction():
            srn = SRN(
                srn_number=SequenceService(self.uow).next_number(SRN_PREFIX),
                retailer_id=principal.user_id,
                manufacturer_id=manufacturer_id,
                status=SRNStatus.DRAFT,
                notes=notes,
                items=items,
            )
            self.db.add(srn)
            self.db.flush()
            if submit:
                self.submit_srn(principal, srn.id)

        logger.info(f"SRN {srn.srn_number} created by retailer {principal.user_id}")
        return srn

    def replace_lines(self, principal: Principal, srn_id: int, lines: Iterable) -> SRN:
        """Replace every line of a draft."""
        ensure_role(principal, UserRole.RETAILER)
        items = self._build_items(lines)
        with self.uow.transaction():
            srn = locked_get(self.uow, SRN, srn_id, "SRN")
            ensure_owner(principal, srn.retailer_id, "SRN")
            if srn.status != SRNStatus.DRAFT:
                raise InvalidSrnState(
                    f"SRN {srn.srn_number} is {srn.status.value}; only drafts can be edited",
                    srn_id=srn_id,
                    status=srn.status.value,
                )
            # Old rows must be deleted before the replacements are inserted
            srn.items.clear()
            self.db.flush()
            srn.items.extend(items)
            self.db.flush()
        return srn

    def submit_srn(self, principal: Principal, srn_id: int) -> SRN:
        ensure_role(principal, UserRole.RETAILER)
        with self.uow.transaction():
            srn = locked_get(self.uow, SRN, srn_id, "SRN")
            ensure_owner(principal, srn.retailer_id, "SRN")
            if srn.status != SRNStatus.DRAFT:
                raise InvalidSrnState(
                    f"SRN {srn.srn_number} is {srn.status.value}, expected DRAFT",
                    srn_id=srn_id,
                    status=srn.status.value,
                )
            if not srn.items:
                raise ValidationFailure("SRN must have at least one line item", srn_id=srn_id)
            self.assignments.require_assignment(srn.retailer_id, srn.manufacturer_id)

            srn.status = SRNStatus.SUBMITTED
            srn.submitted_at = utcnow()
            self.db.flush()
        logger.info(f"SRN {srn.srn_number} submitted")
        return srn

    # ===== ADMIN =====

    def process_srn(
        self,
        principal: Principal,
        srn_id: int,
        decision: SRNDecision,
        lines: Optional[Iterable] = None,
        rejection_note: Optional[str] = None,
    ) -> SRN:
        """Approve (fully or partially) or reject a submitted SRN.

        Args:
            decision: APPROVE or REJECT. Whether an approval is APPROVED or
                PARTIAL is decided by ``classify_approval``.
            lines: for APPROVE, the approved packets/loose units of every line.
            rejection_note: required for REJECT.

        Raises:
            InvalidSrnState: the SRN is not SUBMITTED.
            ValidationFailure: a line is missing, unknown, or above its request.
            InsufficientAvailable: a line cannot be blocked; nothing is applied.
        """
        ensure_role(principal, UserRole.ADMIN)
        decision = SRNDecision(decision)
        if decision == SRNDecision.REJECT:
            return self._reject(principal, srn_id, rejection_note)
        return self._approve(principal, srn_id, list(lines or []))

    def _load_submitted(self, srn_id: int) -> SRN:
        srn = locked_get(self.uow, SRN, srn_id, "SRN")
        if srn.status != SRNStatus.SUBMITTED:
            raise InvalidSrnState(
                f"SRN {srn.srn_number} is {srn.status.value}, expected SUBMITTED",
                srn_id=srn_id,
                status=srn.status.value,
            )
        return srn

    def _reject(self, principal: Principal, srn_id: int, rejection_note: Optional[str]) -> SRN:
        if not (rejection_note or "").strip():
            raise ValidationFailure("A rejection note is required", field="rejection_note")
        with self.uow.transaction():
            srn = self._load_submitted(srn_id)
            srn.status = SRNStatus.REJECTED
            srn.rejection_note = rejection_note.strip()
            srn.processed_by = principal.user_id
            srn.processed_at = utcnow()
            self.db.flush()
        logger.info(f"SRN {srn.srn_number} rejected by admin {principal.user_id}")
        return srn

    def _approve(self, principal: Principal, srn_id: int, lines: Sequence) -> SRN:
        approvals = merge_lines(lines)
        for line in approvals.values():
            check_quantity(line.packets, line.loose_units, require_positive=False, material_id=line.material_id)
        if not any(a.packets > 0 or a.loose_units > 0 for a in approvals.values()):
            raise InvalidQuantity("At least one line must approve a positive quantity")

        with self.uow.transaction():
            srn = self._load_submitted(srn_id)
            items = {item.material_id: item for item in srn.items}

            unknown = set(approvals) - set(items)
            if unknown:
                raise ValidationFailure(
                    "Approval references materials not on the SRN",
                    material_ids=",".join(str(m) for m in sorted(unknown)),
                )
            missing = set(items) - set(approvals)
            if missing:
                raise ValidationFailure(
                    "Approval must cover every SRN line",
                    material_ids=",".join(str(m) for m in sorted(missing)),
                )
            for material_id, approval in approvals.items():
                item = items[material_id]
                if approval.packets > item.requested_packets or approval.loose_units > item.requested_loose_units:
                    raise ValidationFailure(
                        f"Approved quantity exceeds requested for material {material_id}",
                        material_id=material_id,
                        requested_packets=item.requested_packets,
                        requested_loose_units=item.requested_loose_units,
                        approved_packets=approval.packets,
                        approved_loose_units=approval.loose_units,
                    )

            to_block = [a for a in approvals.values() if a.packets > 0 or a.loose_units > 0]
            self.inventory.lock_records((a.material_id, srn.manufacturer_id) for a in to_block)

            for material_id, approval in approvals.items():
                item = items[material_id]
                item.approved_packets = approval.packets
                item.approved_loose_units = approval.loose_units

            for approval in to_block:
                self.inventory.block_for_dispatch(
                    approval.material_id,
                    srn.manufacturer_id,
                    approval.packets,
                    approval.loose_units,
                    acting_user_id=principal.user_id,
                    reference_id=srn.id,
                )

            srn.status = classify_approval(srn.items)
            srn.processed_by = principal.user_id
            srn.processed_at = utcnow()
            self.db.flush()

        logger.info(
            f"SRN {srn.srn_number} {srn.status.value.lower()} by admin {principal.user_id}; "
            f"blocked {len(to_block)} line(s) for manufacturer {srn.manufacturer_id}"
        )
        return srn

    # ===== QUERIES =====

    def get_srn(self, principal: Principal, srn_id: int) -> SRN:
        srn = get_or_404(self.uow, SRN, srn_id, "SRN")
        ensure_party(principal, srn.retailer_id, srn.manufacturer_id, "SRN")
        return srn

    def _list(self, status: Optional[Sequence[SRNStatus]] = None, **filters) -> List[SRN]:
        stmt = select(SRN)
        for column, value in filters.items():
            stmt = stmt.where(getattr(SRN, column) == value)
        if status:
            stmt = stmt.where(SRN.status.in_(list(status)))
        return list(self.db.execute(stmt.order_by(SRN.id.desc())).scalars())

    def list_for_retailer(self, retailer_id: int, status: Optional[SRNStatus] = None) -> List[SRN]:
        return self._list([status] if status else None, retailer_id=retailer_id)

    def list_for_manufacturer(self, manufacturer_id: int, status: Optional[SRNStatus] = None) -> List[SRN]:
        """Manufacturers only see SRNs that are ready to dispatch, unless asked for a status."""
        statuses = [status] if status else list(PROCESSED_STATUSES)
        return self._list(statuses, manufacturer_id=manufacturer_id)

    def list_all(self, status: Optional[SRNStatus] = None) -> List[SRN]:
        return self._list([status] if status else None)

    def pending_count(self) -> int:
        return self.db.execute(
            select(func.count(SRN.id)).where(SRN.status == SRNStatus.SUBMITTED)
        ).scalar_one()


def approve_all(srn: SRN) -> List[LineQuantity]:
    """Approval lines granting every requested quantity."""
    return [
        LineQuantity(item.material_id, item.requested_packets, item.requested_loose_units)
        for item in srn.items
    ]
