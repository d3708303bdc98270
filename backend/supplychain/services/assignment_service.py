"""Retailer to manufacturer assignments."""

import logging
from typing import List, Optional

from sqlalchemy import select

from supplychain.core.errors import DuplicateReference, NotFound, Unauthorized
from supplychain.core.rbac import Principal, UserRole, ensure_role
from supplychain.db.unit_of_work import UnitOfWork
from supplychain.models.assignment import RetailerAssignment
from supplychain.services.common import utcnow
from supplychain.services.user_service import UserService

logger = logging.getLogger(__name__)


class AssignmentService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.db = uow.session

    def _find(self, retailer_id: int, manufacturer_id: int) -> Optional[RetailerAssignment]:
        return self.db.execute(
            select(RetailerAssignment).where(
                RetailerAssignment.retailer_id == retailer_id,
                RetailerAssignment.manufacturer_id == manufacturer_id,
            )
        ).scalar_one_or_none()

    def create_assignment(self, principal: Principal, retailer_id: int, manufacturer_id: int) -> RetailerAssignment:
        """Create the pair, or reactivate the existing row."""
        ensure_role(principal, UserRole.ADMIN)
        users = UserService(self.uow)
        users.require_active(retailer_id, UserRole.RETAILER, "Retailer")
        users.require_active(manufacturer_id, UserRole.MANUFACTURER, "Manufacturer")

        with self.uow.transaction():
            assignment = self._find(retailer_id, manufacturer_id)
            if assignment is None:
                assignment = RetailerAssignment(
                    retailer_id=retailer_id,
                    manufacturer_id=manufacturer_id,
                    assigned_by=principal.user_id,
                    is_active=True,
                )
                self.db.add(assignment)
            elif assignment.is_active:
                raise DuplicateReference(
                    "Retailer is already assigned to this manufacturer",
                    retailer_id=retailer_id,
                    manufacturer_id=manufacturer_id,
                )
            else:
                assignment.is_active = True
                assignment.assigned_by = principal.user_id
                assignment.assigned_at = utcnow()
                assignment.deactivated_at = None
            self.db.flush()
        logger.info(f"Retailer {retailer_id} assigned to manufacturer {manufacturer_id}")
        return assignment

    def deactivate_assignment(self, principal: Principal, retailer_id: int, manufacturer_id: int) -> RetailerAssignment:
        ensure_role(principal, UserRole.ADMIN)
        with self.uow.transaction():
            assignment = self._find(retailer_id, manufacturer_id)
            if assignment is None or not assignment.is_active:
                raise NotFound(
                    "Active assignment",
                    retailer_id=retailer_id,
                    manufacturer_id=manufacturer_id,
                )
            assignment.is_active = False
            assignment.deactivated_at = utcnow()
            self.db.flush()
        logger.info(f"Retailer {retailer_id} unassigned from manufacturer {manufacturer_id}")
        return assignment

    def is_assigned(self, retailer_id: int, manufacturer_id: int) -> bool:
        assignment = self._find(retailer_id, manufacturer_id)
        return assignment is not None and assignment.is_active

    def require_assignment(self, retailer_id: int, manufacturer_id: int) -> None:
        if not self.is_assigned(retailer_id, manufacturer_id):
            raise Unauthorized(
                "Retailer is not assigned to this manufacturer",
                retailer_id=retailer_id,
                manufacturer_id=manufacturer_id,
            )

    def list_assignments(
        self,
        retailer_id: Optional[int] = None,
        manufacturer_id: Optional[int] = None,
        active_only: bool = True,
    ) -> List[RetailerAssignment]:
        stmt = select(RetailerAssignment)
        if retailer_id is not None:
            stmt = stmt.where(RetailerAssignment.retailer_id == retailer_id)
        if manufacturer_id is not None:
            stmt = stmt.where(RetailerAssignment.manufacturer_id == manufacturer_id)
        if active_only:
            stmt = stmt.where(RetailerAssignment.is_active.is_(True))
        return list(self.db.execute(stmt.order_by(RetailerAssignment.id)).scalars())

    def assigned_manufacturers(self, retailer_id: int) -> List[int]:
        return [a.manufacturer_id for a in self.list_assignments(retailer_id=retailer_id)]

    def list_for_manufacturer(self, manufacturer_id: int) -> List[RetailerAssignment]:
        return self.list_assignments(manufacturer_id=manufacturer_id)
