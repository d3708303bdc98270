"""Production recording.

A batch is written once and credits the manufacturer's stock in the same
transaction. The first batch of a material locks its HSN code and GST rate.
"""

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import func, select

from supplychain.core.errors import DuplicateBatch, InvalidDateRange, MaterialInactive, ValidationFailure
from supplychain.core.rbac import Principal, UserRole, ensure_owner, ensure_role
from supplychain.db.unit_of_work import UnitOfWork, document_key, inventory_key
from supplychain.models.inventory import OwnerKind
from supplychain.models.material import Material
from supplychain.models.production import ProductionBatch
from supplychain.services.common import check_quantity, get_or_404, locked_get
from supplychain.services.inventory_service import ManufacturerInventoryService
from supplychain.services.material_service import MaterialService

logger = logging.getLogger(__name__)


class ProductionService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.db = uow.session
        self.materials = MaterialService(uow)
        self.inventory = ManufacturerInventoryService(uow)

    def record_production(
        self,
        principal: Principal,
        batch_number: str,
        manufacture_date: date,
        expiry_date: date,
        packets: int = 0,
        loose_units: int = 0,
        material_id: Optional[int] = None,
        sq_code: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> ProductionBatch:
        """Record a batch and add it to the caller's inventory.

        The material may be given by id or by its SQ code.

        Raises:
            InvalidQuantity / EmptyOperation: bad packet or unit counts.
            MaterialInactive: the material has been deactivated.
            InvalidDateRange: expiry is not after manufacture.
            DuplicateBatch: this manufacturer already used ``batch_number``.
        """
        ensure_role(principal, UserRole.MANUFACTURER)
        batch_number = (batch_number or "").strip()
        if not batch_number:
            raise ValidationFailure("Batch number is required", field="batch_number")
        check_quantity(packets, loose_units)
        if expiry_date <= manufacture_date:
            raise InvalidDateRange(
                "Expiry date must be after manufacture date",
                manufacture_date=manufacture_date,
                expiry_date=expiry_date,
            )
        material_id = self.materials.resolve_material(material_id=material_id, sq_code=sq_code).id

        manufacturer_id = principal.user_id
        with self.uow.transaction():
            self.uow.lock([
                document_key("BATCH", f"{manufacturer_id}:{batch_number}"),
                document_key(Material.__tablename__, material_id),
                inventory_key(OwnerKind.MANUFACTURER.value, material_id, manufacturer_id),
            ])
            # Re-read under the lock; HSN and GST snapshot below must match the flag flip
            material = locked_get(self.uow, Material, material_id, "Material")
            if not material.is_active:
                raise MaterialInactive(f"Material {material.sq_code} is inactive", material_id=material.id)
            existing = self.db.execute(
                select(ProductionBatch.id).where(
                    ProductionBatch.manufacturer_id == manufacturer_id,
                    ProductionBatch.batch_number == batch_number,
                )
            ).first()
            if existing is not None:
                raise DuplicateBatch(
                    f"Batch {batch_number} already exists",
                    batch_number=batch_number,
                    manufacturer_id=manufacturer_id,
                )

            batch = ProductionBatch(
                material_id=material.id,
                manufacturer_id=manufacturer_id,
                batch_number=batch_number,
                manufacture_date=manufacture_date,
                expiry_date=expiry_date,
                packets_produced=packets,
                loose_units_produced=loose_units,
                hsn_code=material.hsn_code,
                gst_rate=material.gst_rate,
                notes=notes,
            )
            self.db.add(batch)
            self.db.flush()

            self.inventory.add_production(
                material.id,
                manufacturer_id,
                packets,
                loose_units,
                acting_user_id=principal.user_id,
                reference_id=batch.id,
                notes=f"Batch {batch_number}",
            )
            if not material.has_production:
                material.has_production = True
            self.db.flush()

        logger.info(
            f"Batch {batch_number} recorded for material {material.sq_code} "
            f"by manufacturer {manufacturer_id}: {packets} pkts + {loose_units} units"
        )
        return batch

    def get_batch(self, principal: Principal, batch_id: int) -> ProductionBatch:
        batch = get_or_404(self.uow, ProductionBatch, batch_id, "Production batch")
        if not principal.is_admin:
            ensure_owner(principal, batch.manufacturer_id, "Production batch")
        return batch

    def list_batches(
        self,
        principal: Principal,
        material_id: Optional[int] = None,
        limit: int = 100,
    ) -> List[ProductionBatch]:
        ensure_role(principal, UserRole.ADMIN, UserRole.MANUFACTURER)
        stmt = select(ProductionBatch)
        if principal.role == UserRole.MANUFACTURER:
            stmt = stmt.where(ProductionBatch.manufacturer_id == principal.user_id)
        if material_id is not None:
            stmt = stmt.where(ProductionBatch.material_id == material_id)
        stmt = stmt.order_by(ProductionBatch.created_at.desc(), ProductionBatch.id.desc()).limit(limit)
        return list(self.db.execute(stmt).scalars())

    def production_totals(self, manufacturer_id: int) -> List[dict]:
        """Total packets and units produced per material."""
        stmt = (
            select(
                ProductionBatch.material_id,
                func.count(ProductionBatch.id),
                func.coalesce(func.sum(ProductionBatch.packets_produced), 0),
                func.coalesce(func.sum(ProductionBatch.loose_units_produced), 0),
            )
            .where(ProductionBatch.manufacturer_id == manufacturer_id)
            .group_by(ProductionBatch.material_id)
            .order_by(ProductionBatch.material_id)
        )
        return [
            {
                "material_id": material_id,
                "batch_count": batch_count,
                "packets_produced": int(packets),
                "loose_units_produced": int(units),
            }
            for material_id, batch_count, packets, units in self.db.execute(stmt)
        ]
