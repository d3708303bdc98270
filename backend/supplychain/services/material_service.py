"""Material catalogue.

Materials are authored by admins. ``units_per_packet`` and the material code
never change; HSN code and GST rate lock once any production is recorded.
Deactivation is soft so existing documents keep their references.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional

from sqlalchemy import or_, select

from supplychain.core import money
from supplychain.core.errors import MaterialInactive, NotFound, ValidationFailure
from supplychain.core.rbac import Principal, UserRole, ensure_role
from supplychain.db.unit_of_work import UnitOfWork
from supplychain.models.material import CommissionType, Material
from supplychain.services.common import get_or_404, locked_get
from supplychain.services.sequence_service import SequenceService

logger = logging.getLogger(__name__)

# Fields an admin may edit after creation
EDITABLE_FIELDS = (
    "name",
    "description",
    "hsn_code",
    "gst_rate",
    "mrp_per_packet",
    "commission_type",
    "commission_value",
)

NULLABLE_FIELDS = ("description",)


def _decimal(value: Any, field: str) -> Decimal:
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationFailure(f"{field} must be a number", field=field, value=value)
    if not result.is_finite():
        raise ValidationFailure(f"{field} must be a number", field=field, value=value)
    return result


def _validate_pricing(values: dict) -> None:
    if "mrp_per_packet" in values and values["mrp_per_packet"] <= 0:
        raise ValidationFailure("mrp_per_packet must be positive", field="mrp_per_packet")
    if "gst_rate" in values and not (0 <= values["gst_rate"] <= 100):
        raise ValidationFailure("gst_rate must be between 0 and 100", field="gst_rate")
    if "commission_value" in values and values["commission_value"] < 0:
        raise ValidationFailure("commission_value cannot be negative", field="commission_value")
    if values.get("commission_type") == CommissionType.PERCENTAGE and values.get("commission_value", 0) > 100:
        raise ValidationFailure("Percentage commission cannot exceed 100", field="commission_value")


class MaterialService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.db = uow.session

    def create_material(
        self,
        principal: Principal,
        name: str,
        hsn_code: str,
        gst_rate: Any,
        units_per_packet: int,
        mrp_per_packet: Any,
        commission_type: CommissionType = CommissionType.PERCENTAGE,
        commission_value: Any = 0,
        description: Optional[str] = None,
    ) -> Material:
        ensure_role(principal, UserRole.ADMIN)
        if not (name or "").strip():
            raise ValidationFailure("Name is required", field="name")
        if not (hsn_code or "").strip():
            raise ValidationFailure("HSN code is required", field="hsn_code")
        if isinstance(units_per_packet, bool) or not isinstance(units_per_packet, int) or units_per_packet < 1:
            raise ValidationFailure("units_per_packet must be a positive whole number", field="units_per_packet")

        values = {
            "gst_rate": _decimal(gst_rate, "gst_rate"),
            "mrp_per_packet": money.to_money(_decimal(mrp_per_packet, "mrp_per_packet")),
            "commission_type": CommissionType(commission_type),
            "commission_value": _decimal(commission_value, "commission_value"),
        }
        _validate_pricing(values)

        with self.uow.transaction():
            material = Material(
                sq_code=SequenceService(self.uow).next_material_code(),
                name=name.strip(),
                description=description,
                hsn_code=hsn_code.strip(),
                units_per_packet=units_per_packet,
                has_production=False,
                is_active=True,
                created_by=principal.user_id,
                **values,
            )
            self.db.add(material)
            self.db.flush()
        logger.info(f"Material {material.sq_code} created: {material.name}")
        return material

    def update_material(self, principal: Principal, material_id: int, **changes: Any) -> Material:
        """Apply admin edits.

        Only the fields passed are changed; an explicit ``None`` clears a
        nullable field. The material row stays locked until the edit commits.

        Raises:
            ImmutableFieldViolation: ``units_per_packet`` or ``sq_code`` is
                changed, or tax codes are changed after production.
        """
        ensure_role(principal, UserRole.ADMIN)
        with self.uow.transaction():
            material = locked_get(self.uow, Material, material_id, "Material")
            values = {}
            for field, value in changes.items():
                if field in ("units_per_packet", "sq_code"):
                    # Routed through the model validator, which rejects any change
                    setattr(material, field, value)
                    continue
                if field not in EDITABLE_FIELDS:
                    raise ValidationFailure(f"Unknown material field {field}", field=field)
                if value is None:
                    if field not in NULLABLE_FIELDS:
                        raise ValidationFailure(f"{field} cannot be cleared", field=field)
                    values[field] = None
                    continue
                if field in ("gst_rate", "commission_value"):
                    value = _decimal(value, field)
                elif field == "mrp_per_packet":
                    value = money.to_money(_decimal(value, field))
                elif field == "commission_type":
                    value = CommissionType(value)
                values[field] = value

            check = {
                "commission_type": values.get("commission_type", material.commission_type),
                "commission_value": values.get("commission_value", material.commission_value),
                **values,
            }
            _validate_pricing(check)
            for field, value in values.items():
                setattr(material, field, value)
            self.db.flush()
        return material

    def deactivate_material(self, principal: Principal, material_id: int) -> Material:
        ensure_role(principal, UserRole.ADMIN)
        with self.uow.transaction():
            material = locked_get(self.uow, Material, material_id, "Material")
            material.is_active = False
            self.db.flush()
        logger.info(f"Material {material.sq_code} deactivated")
        return material

    def reactivate_material(self, principal: Principal, material_id: int) -> Material:
        ensure_role(principal, UserRole.ADMIN)
        with self.uow.transaction():
            material = locked_get(self.uow, Material, material_id, "Material")
            material.is_active = True
            self.db.flush()
        return material

    def get_material(self, material_id: int) -> Material:
        return get_or_404(self.uow, Material, material_id, "Material")

    def get_by_sq_code(self, sq_code: str) -> Material:
        material = self.db.execute(
            select(Material).where(Material.sq_code == sq_code.strip().upper())
        ).scalar_one_or_none()
        if material is None:
            raise NotFound("Material", sq_code)
        return material

    def resolve_material(self, material_id: Optional[int] = None, sq_code: Optional[str] = None) -> Material:
        """Find a material by id or by code; exactly one must be given."""
        if (material_id is None) == (sq_code is None):
            raise ValidationFailure("Provide exactly one of material_id or sq_code")
        if material_id is not None:
            return self.get_material(material_id)
        return self.get_by_sq_code(sq_code)

    def require_active(self, material_id: int) -> Material:
        material = self.get_material(material_id)
        if not material.is_active:
            raise MaterialInactive(
                f"Material {material.sq_code} is inactive", material_id=material_id
            )
        return material

    def list_materials(self, include_inactive: bool = False, search: Optional[str] = None) -> List[Material]:
        stmt = select(Material)
        if not include_inactive:
            stmt = stmt.where(Material.is_active.is_(True))
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(or_(Material.name.ilike(pattern), Material.sq_code.ilike(pattern)))
        return list(self.db.execute(stmt.order_by(Material.name)).scalars())
