"""Retailer sales.

A sale draws units from retailer stock (opening packets as needed), snapshots
the unit price and earns a commission, all in one transaction.
"""

import logging
from typing import List, Optional

from sqlalchemy import func, select

from supplychain.core import money
from supplychain.core.rbac import Principal, UserRole, ensure_role
from supplychain.db.unit_of_work import UnitOfWork, inventory_key
from supplychain.models.inventory import OwnerKind
from supplychain.models.sale import Sale
from supplychain.services.commission_service import CommissionService
from supplychain.services.common import check_quantity, ensure_party, get_or_404
from supplychain.services.inventory_service import RetailerInventoryService
from supplychain.services.material_service import MaterialService
from supplychain.services.sequence_service import SALE_PREFIX, SequenceService

logger = logging.getLogger(__name__)


class SaleService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.db = uow.session
        self.inventory = RetailerInventoryService(uow)
        self.commissions = CommissionService(uow)

    def record_sale(self, principal: Principal, material_id: int, units_sold: int) -> Sale:
        """Sell loose units of a material from the caller's stock.

        Raises:
            InvalidQuantity / EmptyOperation: ``units_sold`` is not positive.
            MaterialInactive: the material has been deactivated.
            InsufficientAvailable: not enough units on hand.
        """
        ensure_role(principal, UserRole.RETAILER)
        check_quantity(0, units_sold, material_id=material_id)
        material = MaterialService(self.uow).require_active(material_id)
        unit_price = material.unit_price

        with self.uow.transaction():
            self.uow.lock([inventory_key(OwnerKind.RETAILER.value, material_id, principal.user_id)])
            sale = Sale(
                sale_number=SequenceService(self.uow).next_number(SALE_PREFIX),
                retailer_id=principal.user_id,
                material_id=material_id,
                units_sold=units_sold,
                unit_price=unit_price,
                total_amount=money.multiply(unit_price, units_sold),
                packets_opened=0,
            )
            self.db.add(sale)
            self.db.flush()

            sale.packets_opened = self.inventory.sell_units(
                material_id,
                principal.user_id,
                units_sold,
                acting_user_id=principal.user_id,
                reference_id=sale.id,
            )
            commission = self.commissions.create_for_sale(sale, material)
            self.db.flush()

        logger.info(
            f"Sale {sale.sale_number}: {units_sold} x {material.sq_code} = {sale.total_amount}, "
            f"commission {commission.amount}"
        )
        return sale

    def get_sale(self, principal: Principal, sale_id: int) -> Sale:
        sale = get_or_404(self.uow, Sale, sale_id, "Sale")
        ensure_party(principal, sale.retailer_id, None, "Sale")
        return sale

    def list_sales(self, retailer_id: Optional[int] = None, limit: int = 100) -> List[Sale]:
        stmt = select(Sale)
        if retailer_id is not None:
            stmt = stmt.where(Sale.retailer_id == retailer_id)
        stmt = stmt.order_by(Sale.id.desc()).limit(limit)
        return list(self.db.execute(stmt).scalars())

    def sales_summary(self, retailer_id: int) -> List[dict]:
        """Units and revenue per material for one retailer."""
        stmt = (
            select(
                Sale.material_id,
                func.count(Sale.id),
                func.coalesce(func.sum(Sale.units_sold), 0),
                func.coalesce(func.sum(Sale.total_amount), 0),
            )
            .where(Sale.retailer_id == retailer_id)
            .group_by(Sale.material_id)
            .order_by(Sale.material_id)
        )
        return [
            {
                "material_id": material_id,
                "sale_count": sale_count,
                "units_sold": int(units),
                "total_amount": money.to_money(amount),
            }
            for material_id, sale_count, units, amount in self.db.execute(stmt)
        ]
