"""Goods Receipt Note (GRN) routes."""

from typing import List, Optional

from fastapi import APIRouter, Request

from supplychain.core.rate_limit import limiter
from supplychain.core.rbac import CurrentPrincipal, RequireRetailer, UserRole
from supplychain.db.session import UnitOfWorkDep
from supplychain.models.grn import GRNStatus
from supplychain.schemas.grn import DiscrepancyResponse, GRNConfirm, GRNResponse
from supplychain.services.grn_service import GRNService

router = APIRouter()


@router.get("/", response_model=List[GRNResponse])
def list_grns(uow: UnitOfWorkDep, principal: CurrentPrincipal, status: Optional[GRNStatus] = None):
    service = GRNService(uow)
    if principal.role == UserRole.RETAILER:
        return service.list_for_retailer(principal.user_id, status)
    if principal.role == UserRole.MANUFACTURER:
        return service.list_for_manufacturer(principal.user_id, status)
    return service.list_all(status)


@router.get("/{grn_id}", response_model=GRNResponse)
def get_grn(grn_id: int, uow: UnitOfWorkDep, principal: CurrentPrincipal):
    return GRNService(uow).get_grn(principal, grn_id)


@router.get("/{grn_id}/discrepancies", response_model=List[DiscrepancyResponse])
def grn_discrepancies(grn_id: int, uow: UnitOfWorkDep, principal: CurrentPrincipal):
    service = GRNService(uow)
    return service.discrepancies(service.get_grn(principal, grn_id))


@router.post("/{grn_id}/confirm", response_model=GRNResponse)
@limiter.limit("60/minute")
def confirm_grn(
    request: Request,
    grn_id: int,
    body: GRNConfirm,
    uow: UnitOfWorkDep,
    principal: RequireRetailer,
):
    return GRNService(uow).confirm_grn(principal, grn_id, body.lines, notes=body.notes)
