"""Return requests.

RAISED -> UNDER_REVIEW -> APPROVED_RESTOCK | APPROVED_REPLACE | REJECTED | RESOLVED

Only APPROVED_RESTOCK touches inventory: the returned quantities go back into
the manufacturer's available stock. Every resolution is terminal.
"""

import logging
from typing import Iterable, List, Optional

from sqlalchemy import func, select

from supplychain.core.errors import InvalidState, ValidationFailure
from supplychain.core.rbac import Principal, UserRole, ensure_role
from supplychain.db.unit_of_work import UnitOfWork
from supplychain.models.grn import GRN, GRNStatus
from supplychain.models.returns import (
    TERMINAL_RETURN_STATUSES,
    ReturnItem,
    ReturnReason,
    ReturnRequest,
    ReturnStatus,
)
from supplychain.services.common import check_quantity, ensure_party, get_or_404, locked_get, merge_lines, utcnow
from supplychain.services.inventory_service import ManufacturerInventoryService
from supplychain.services.material_service import MaterialService
from supplychain.services.sequence_service import RETURN_PREFIX, SequenceService
from supplychain.services.user_service import UserService

logger = logging.getLogger(__name__)

OPEN_RETURN_STATUSES = (ReturnStatus.RAISED, ReturnStatus.UNDER_REVIEW)


class ReturnService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.db = uow.session
        self.inventory = ManufacturerInventoryService(uow)

    def raise_return(
        self,
        principal: Principal,
        manufacturer_id: int,
        reason: ReturnReason,
        lines: Iterable,
        grn_id: Optional[int] = None,
        reason_details: Optional[str] = None,
    ) -> ReturnRequest:
        ensure_role(principal, UserRole.RETAILER)
        reason = ReturnReason(reason)
        UserService(self.uow).require_active(manufacturer_id, UserRole.MANUFACTURER, "Manufacturer")

        merged = merge_lines(lines)
        if not merged:
            raise ValidationFailure("A return needs at least one line")
        materials = MaterialService(self.uow)
        for line in merged.values():
            check_quantity(line.packets, line.loose_units, material_id=line.material_id)
            materials.get_material(line.material_id)

        if grn_id is not None:
            self._check_grn(principal, grn_id, manufacturer_id, merged.keys())

        with self.uow.transaction():
            request = ReturnRequest(
                return_number=SequenceService(self.uow).next_number(RETURN_PREFIX),
                retailer_id=principal.user_id,
                manufacturer_id=manufacturer_id,
                grn_id=grn_id,
                reason=reason,
                reason_details=reason_details,
                status=ReturnStatus.RAISED,
                items=[
                    ReturnItem(material_id=line.material_id, packets=line.packets, loose_units=line.loose_units)
                    for line in merged.values()
                ],
            )
            self.db.add(request)
            self.db.flush()

        logger.info(
            f"Return {request.return_number} raised by retailer {principal.user_id} ({reason.value})"
        )
        return request

    def _check_grn(self, principal: Principal, grn_id: int, manufacturer_id: int, material_ids) -> None:
        grn = get_or_404(self.uow, GRN, grn_id, "GRN")
        if grn.retailer_id != principal.user_id:
            raise ValidationFailure("GRN does not belong to you", grn_id=grn_id)
        if grn.status != GRNStatus.CONFIRMED:
            raise ValidationFailure("Returns can only reference a confirmed GRN", grn_id=grn_id)
        if grn.manufacturer_id != manufacturer_id:
            raise ValidationFailure("GRN was dispatched by a different manufacturer", grn_id=grn_id)
        on_grn = {item.material_id for item in grn.items}
        stray = set(material_ids) - on_grn
        if stray:
            raise ValidationFailure(
                "Returned materials must appear on the referenced GRN",
                grn_id=grn_id,
                material_ids=",".join(str(m) for m in sorted(stray)),
            )

    def mark_under_review(self, principal: Principal, return_id: int) -> ReturnRequest:
        ensure_role(principal, UserRole.ADMIN)
        with self.uow.transaction():
            request = locked_get(self.uow, ReturnRequest, return_id, "Return")
            if request.status != ReturnStatus.RAISED:
                raise InvalidState(
                    f"Return {request.return_number} is {request.status.value}, expected RAISED",
                    return_id=return_id,
                    status=request.status.value,
                )
            request.status = ReturnStatus.UNDER_REVIEW
            request.reviewed_at = utcnow()
            self.db.flush()
        return request

    def resolve_return(
        self,
        principal: Principal,
        return_id: int,
        resolution: ReturnStatus,
        notes: Optional[str] = None,
    ) -> ReturnRequest:
        """Close a return with a terminal resolution.

        Raises:
            InvalidState: the return is already resolved.
            ValidationFailure: resolution is not terminal, or REJECTED without a note.
        """
        ensure_role(principal, UserRole.ADMIN)
        resolution = ReturnStatus(resolution)
        if resolution not in TERMINAL_RETURN_STATUSES:
            raise ValidationFailure(f"{resolution.value} is not a resolution", resolution=resolution.value)
        if resolution == ReturnStatus.REJECTED and not (notes or "").strip():
            raise ValidationFailure("A note is required to reject a return", field="notes")

        with self.uow.transaction():
            request = locked_get(self.uow, ReturnRequest, return_id, "Return")
            if request.status not in OPEN_RETURN_STATUSES:
                raise InvalidState(
                    f"Return {request.return_number} is already {request.status.value}",
                    return_id=return_id,
                    status=request.status.value,
                )

            if resolution == ReturnStatus.APPROVED_RESTOCK:
                lines = [i for i in request.items if i.packets > 0 or i.loose_units > 0]
                self.inventory.lock_records((i.material_id, request.manufacturer_id) for i in lines)
                for item in lines:
                    self.inventory.restock_from_return(
                        item.material_id,
                        request.manufacturer_id,
                        item.packets,
                        item.loose_units,
                        acting_user_id=principal.user_id,
                        reference_id=request.id,
                    )

            request.status = resolution
            request.resolution_notes = notes.strip() if notes else None
            request.resolved_by = principal.user_id
            request.resolved_at = utcnow()
            self.db.flush()

        logger.info(
            f"Return {request.return_number} resolved as {resolution.value} by admin {principal.user_id}"
        )
        return request

    # ===== QUERIES =====

    def get_return(self, principal: Principal, return_id: int) -> ReturnRequest:
        request = get_or_404(self.uow, ReturnRequest, return_id, "Return")
        ensure_party(principal, request.retailer_id, request.manufacturer_id, "Return")
        return request

    def _list(self, status: Optional[ReturnStatus] = None, **filters) -> List[ReturnRequest]:
        stmt = select(ReturnRequest)
        for column, value in filters.items():
            stmt = stmt.where(getattr(ReturnRequest, column) == value)
        if status is not None:
            stmt = stmt.where(ReturnRequest.status == status)
        return list(self.db.execute(stmt.order_by(ReturnRequest.id.desc())).scalars())

    def list_for_retailer(self, retailer_id: int, status: Optional[ReturnStatus] = None) -> List[ReturnRequest]:
        return self._list(status, retailer_id=retailer_id)

    def list_for_manufacturer(self, manufacturer_id: int, status: Optional[ReturnStatus] = None) -> List[ReturnRequest]:
        return self._list(status, manufacturer_id=manufacturer_id)

    def list_all(self, status: Optional[ReturnStatus] = None) -> List[ReturnRequest]:
        return self._list(status)

    def pending_count(self) -> int:
        return self.db.execute(
            select(func.count(ReturnRequest.id)).where(ReturnRequest.status.in_(OPEN_RETURN_STATUSES))
        ).scalar_one()
