"""Stock Requisition Note (SRN) routes."""

from typing import List, Optional

from fastapi import APIRouter, Request

from supplychain.core.rate_limit import limiter
from supplychain.core.rbac import CurrentPrincipal, RequireAdmin, RequireRetailer, UserRole
from supplychain.db.session import UnitOfWorkDep
from supplychain.models.srn import SRNStatus
from supplychain.schemas.common import CountResponse
from supplychain.schemas.srn import SRNCreate, SRNLinesUpdate, SRNProcessRequest, SRNResponse
from supplychain.services.srn_service import SRNService

router = APIRouter()


@router.post("/", response_model=SRNResponse, status_code=201)
@limiter.limit("60/minute")
def create_srn(request: Request, body: SRNCreate, uow: UnitOfWorkDep, principal: RequireRetailer):
    return SRNService(uow).create_srn(
        principal,
        body.manufacturer_id,
        lines=body.lines,
        notes=body.notes,
        submit=body.submit,
    )


@router.get("/", response_model=List[SRNResponse])
def list_srns(uow: UnitOfWorkDep, principal: CurrentPrincipal, status: Optional[SRNStatus] = None):
    service = SRNService(uow)
    if principal.role == UserRole.RETAILER:
        return service.list_for_retailer(principal.user_id, status)
    if principal.role == UserRole.MANUFACTURER:
        return service.list_for_manufacturer(principal.user_id, status)
    return service.list_all(status)


@router.get("/pending-count", response_model=CountResponse)
def pending_srn_count(uow: UnitOfWorkDep, principal: RequireAdmin):
    return CountResponse(count=SRNService(uow).pending_count())


@router.get("/{srn_id}", response_model=SRNResponse)
def get_srn(srn_id: int, uow: UnitOfWorkDep, principal: CurrentPrincipal):
    return SRNService(uow).get_srn(principal, srn_id)


@router.put("/{srn_id}/lines", response_model=SRNResponse)
@limiter.limit("60/minute")
def replace_srn_lines(
    request: Request,
    srn_id: int,
    body: SRNLinesUpdate,
    uow: UnitOfWorkDep,
    principal: RequireRetailer,
):
    return SRNService(uow).replace_lines(principal, srn_id, body.lines)


@router.post("/{srn_id}/submit", response_model=SRNResponse)
@limiter.limit("60/minute")
def submit_srn(request: Request, srn_id: int, uow: UnitOfWorkDep, principal: RequireRetailer):
    return SRNService(uow).submit_srn(principal, srn_id)


@router.post("/{srn_id}/process", response_model=SRNResponse)
@limiter.limit("60/minute")
def process_srn(
    request: Request,
    srn_id: int,
    body: SRNProcessRequest,
    uow: UnitOfWorkDep,
    principal: RequireAdmin,
):
    """Approve (fully or partially) or reject a submitted SRN."""
    return SRNService(uow).process_srn(
        principal,
        srn_id,
        body.decision,
        lines=body.lines,
        rejection_note=body.rejection_note,
    )
