"""Inventory read routes.

Stock only changes through the workflows (production, SRN, dispatch, GRN,
sales, returns); there is no endpoint that edits balances directly.
"""

from typing import List, Optional

from fastapi import APIRouter, Query

from supplychain.core.errors import ValidationFailure
from supplychain.core.rbac import CurrentPrincipal, Principal, RequireRetailer, UserRole, ensure_role
from supplychain.db.session import UnitOfWorkDep
from supplychain.models.inventory import OwnerKind, TransactionType
from supplychain.schemas.inventory import (
    AvailableResponse,
    InventoryTransactionResponse,
    ManufacturerInventorySummary,
    RetailerStockResponse,
)
from supplychain.services.inventory_service import (
    ManufacturerInventoryService,
    RetailerInventoryService,
    list_transactions,
)

router = APIRouter()


def _manufacturer_scope(principal: Principal, manufacturer_id: Optional[int]) -> int:
    ensure_role(principal, UserRole.ADMIN, UserRole.MANUFACTURER)
    if principal.role == UserRole.MANUFACTURER:
        return principal.user_id
    if manufacturer_id is None:
        raise ValidationFailure("manufacturer_id is required", field="manufacturer_id")
    return manufacturer_id


@router.get("/manufacturer", response_model=ManufacturerInventorySummary)
def manufacturer_inventory(
    uow: UnitOfWorkDep,
    principal: CurrentPrincipal,
    manufacturer_id: Optional[int] = None,
):
    owner_id = _manufacturer_scope(principal, manufacturer_id)
    return ManufacturerInventoryService(uow).inventory_for_manufacturer(owner_id)


@router.get("/manufacturer/available", response_model=AvailableResponse)
def manufacturer_available(
    material_id: int,
    uow: UnitOfWorkDep,
    principal: CurrentPrincipal,
    manufacturer_id: Optional[int] = None,
):
    owner_id = _manufacturer_scope(principal, manufacturer_id)
    packets, loose_units = ManufacturerInventoryService(uow).get_available(material_id, owner_id)
    return AvailableResponse(
        material_id=material_id,
        manufacturer_id=owner_id,
        available_packets=packets,
        available_loose_units=loose_units,
    )


@router.get("/retailer", response_model=List[RetailerStockResponse])
def retailer_inventory(uow: UnitOfWorkDep, principal: CurrentPrincipal, retailer_id: Optional[int] = None):
    ensure_role(principal, UserRole.ADMIN, UserRole.RETAILER)
    if principal.role == UserRole.RETAILER:
        retailer_id = principal.user_id
    elif retailer_id is None:
        raise ValidationFailure("retailer_id is required", field="retailer_id")
    return RetailerInventoryService(uow).list_for_retailer(retailer_id)


@router.get("/retailer/{material_id}/available")
def retailer_available(material_id: int, uow: UnitOfWorkDep, principal: RequireRetailer):
    units = RetailerInventoryService(uow).get_available_units(material_id, principal.user_id)
    return {"material_id": material_id, "retailer_id": principal.user_id, "available_units": units}


@router.get("/transactions", response_model=List[InventoryTransactionResponse])
def inventory_transactions(
    uow: UnitOfWorkDep,
    principal: CurrentPrincipal,
    owner_kind: Optional[OwnerKind] = None,
    owner_id: Optional[int] = None,
    material_id: Optional[int] = None,
    transaction_type: Optional[TransactionType] = None,
    limit: int = Query(100, le=1000),
):
    """Admins see the whole log; other roles only their own entries."""
    if not principal.is_admin:
        owner_kind = OwnerKind(principal.role.value)
        owner_id = principal.user_id
    return list_transactions(
        uow,
        owner_kind=owner_kind,
        owner_id=owner_id,
        material_id=material_id,
        transaction_type=transaction_type,
        limit=limit,
    )
