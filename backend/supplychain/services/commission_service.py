"""Retailer commissions.

One commission per sale, computed from the material's commission settings at
the moment of sale. PENDING -> PAID is one-way.
"""

import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import case, func, select, update

from supplychain.core import money
from supplychain.core.errors import InvalidState
from supplychain.core.rbac import Principal, UserRole, ensure_role
from supplychain.db.unit_of_work import UnitOfWork
from supplychain.models.material import CommissionType, Material
from supplychain.models.sale import Commission, CommissionStatus, Sale
from supplychain.services.common import get_or_404, locked_get, utcnow

logger = logging.getLogger(__name__)


def compute_commission(commission_type: CommissionType, rate, units_sold: int, sale_amount) -> Decimal:
    """FLAT_PER_UNIT: units x rate. PERCENTAGE: rate % of the sale amount."""
    if CommissionType(commission_type) == CommissionType.FLAT_PER_UNIT:
        return money.multiply(rate, units_sold)
    return money.percentage(sale_amount, rate)


class CommissionService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.db = uow.session

    def create_for_sale(self, sale: Sale, material: Material) -> Commission:
        """Record the PENDING commission for a sale. Joins the caller's transaction."""
        with self.uow.transaction():
            commission = Commission(
                sale_id=sale.id,
                retailer_id=sale.retailer_id,
                material_id=material.id,
                commission_type=material.commission_type,
                commission_rate=material.commission_value,
                units_sold=sale.units_sold,
                amount=compute_commission(
                    material.commission_type, material.commission_value,
                    sale.units_sold, sale.total_amount,
                ),
                status=CommissionStatus.PENDING,
            )
            self.db.add(commission)
            self.db.flush()
        return commission

    def mark_paid(self, principal: Principal, commission_id: int) -> Commission:
        ensure_role(principal, UserRole.ADMIN)
        with self.uow.transaction():
            commission = locked_get(self.uow, Commission, commission_id, "Commission")
            if commission.status == CommissionStatus.PAID:
                raise InvalidState(
                    f"Commission {commission_id} is already paid",
                    commission_id=commission_id,
                )
            commission.status = CommissionStatus.PAID
            commission.paid_at = utcnow()
            commission.paid_by = principal.user_id
            self.db.flush()
        logger.info(f"Commission {commission_id} marked paid ({commission.amount})")
        return commission

    def mark_all_paid_for_retailer(self, principal: Principal, retailer_id: int) -> int:
        """Flip every PENDING commission of a retailer to PAID; returns the count."""
        ensure_role(principal, UserRole.ADMIN)
        with self.uow.transaction():
            result = self.db.execute(
                update(Commission)
                .where(
                    Commission.retailer_id == retailer_id,
                    Commission.status == CommissionStatus.PENDING,
                )
                .values(status=CommissionStatus.PAID, paid_at=utcnow(), paid_by=principal.user_id)
                .execution_options(synchronize_session="fetch")
            )
            count = result.rowcount
        logger.info(f"Marked {count} commission(s) paid for retailer {retailer_id}")
        return count

    def get_commission(self, commission_id: int) -> Commission:
        return get_or_404(self.uow, Commission, commission_id, "Commission")

    def list_commissions(
        self,
        status: Optional[CommissionStatus] = None,
        retailer_id: Optional[int] = None,
    ) -> List[Commission]:
        stmt = select(Commission)
        if status is not None:
            stmt = stmt.where(Commission.status == status)
        if retailer_id is not None:
            stmt = stmt.where(Commission.retailer_id == retailer_id)
        return list(self.db.execute(stmt.order_by(Commission.id.desc())).scalars())

    def list_for_retailer(self, retailer_id: int, status: Optional[CommissionStatus] = None) -> List[Commission]:
        return self.list_commissions(status=status, retailer_id=retailer_id)

    def _summary_columns(self):
        pending = case((Commission.status == CommissionStatus.PENDING, Commission.amount), else_=0)
        paid = case((Commission.status == CommissionStatus.PAID, Commission.amount), else_=0)
        return (
            func.count(Commission.id),
            func.coalesce(func.sum(pending), 0),
            func.coalesce(func.sum(paid), 0),
        )

    def summary(self, retailer_id: Optional[int] = None) -> dict:
        stmt = select(*self._summary_columns())
        if retailer_id is not None:
            stmt = stmt.where(Commission.retailer_id == retailer_id)
        count, pending, paid = self.db.execute(stmt).one()
        return {
            "count": count,
            "pending_amount": money.to_money(pending),
            "paid_amount": money.to_money(paid),
            "total_amount": money.total([pending, paid]),
        }

    def summary_by_retailer(self) -> List[dict]:
        stmt = (
            select(Commission.retailer_id, *self._summary_columns())
            .group_by(Commission.retailer_id)
            .order_by(Commission.retailer_id)
        )
        return [
            {
                "retailer_id": retailer_id,
                "count": count,
                "pending_amount": money.to_money(pending),
                "paid_amount": money.to_money(paid),
                "total_amount": money.total([pending, paid]),
            }
            for retailer_id, count, pending, paid in self.db.execute(stmt)
        ]
