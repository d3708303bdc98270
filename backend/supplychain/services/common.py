"""Helpers shared by the document services."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from sqlalchemy import select

from supplychain.core.errors import EmptyOperation, InvalidQuantity, NotFound, Unauthorized, ValidationFailure
from supplychain.core.rbac import UserRole
from supplychain.db.unit_of_work import UnitOfWork, document_key


@dataclass(frozen=True)
class LineQuantity:
    """A packets + loose units quantity for one material.

    Request schemas expose the same attribute names, so they can be passed to
    the services directly.
    """

    material_id: int
    packets: int = 0
    loose_units: int = 0


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def check_quantity(packets: Any, loose_units: Any, require_positive: bool = True, **context) -> None:
    """Validate a packets/loose-units pair.

    Raises:
        InvalidQuantity: a value is negative or not an integer.
        EmptyOperation: both values are zero and ``require_positive`` is set.
    """
    for name, value in (("packets", packets), ("loose_units", loose_units)):
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidQuantity(f"{name} must be a whole number", field=name, value=value, **context)
        if value < 0:
            raise InvalidQuantity(f"{name} cannot be negative", field=name, value=value, **context)
    if require_positive and packets == 0 and loose_units == 0:
        raise EmptyOperation("At least one of packets or loose_units must be positive", **context)


def get_or_404(uow: UnitOfWork, model, entity_id: Optional[int], entity: Optional[str] = None):
    """Load a row by primary key or raise NotFound."""
    obj = uow.session.get(model, entity_id) if entity_id is not None else None
    if obj is None:
        raise NotFound(entity or model.__name__, entity_id)
    return obj


def merge_lines(lines: Iterable[Any]) -> dict[int, LineQuantity]:
    """Index lines by material, rejecting a material that appears twice."""
    merged: dict[int, LineQuantity] = {}
    for line in lines:
        if line.material_id in merged:
            raise ValidationFailure(
                "Each material may appear only once", material_id=line.material_id
            )
        merged[line.material_id] = LineQuantity(
            material_id=line.material_id,
            packets=line.packets,
            loose_units=line.loose_units,
        )
    return merged


def ensure_party(principal, retailer_id: int, manufacturer_id: Optional[int], entity: str) -> None:
    """Admins see every document; others only documents they are party to."""
    if principal.role == UserRole.ADMIN:
        return
    owner_id = retailer_id if principal.role == UserRole.RETAILER else manufacturer_id
    if owner_id != principal.user_id:
        raise Unauthorized(f"{entity} does not belong to you", user_id=principal.user_id)


def locked_get(uow: UnitOfWork, model, entity_id: int, entity: Optional[str] = None):
    """Lock a document and re-read it from the database.

    Must be called inside ``uow.transaction()``.
    """
    uow.lock([document_key(model.__tablename__, entity_id)])
    obj = uow.session.execute(
        select(model)
        .where(model.id == entity_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if obj is None:
        raise NotFound(entity or model.__name__, entity_id)
    return obj
