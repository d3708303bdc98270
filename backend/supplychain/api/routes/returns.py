"""Return request routes."""

from typing import List, Optional

from fastapi import APIRouter, Request

from supplychain.core.rate_limit import limiter
from supplychain.core.rbac import CurrentPrincipal, RequireAdmin, RequireRetailer, UserRole
from supplychain.db.session import UnitOfWorkDep
from supplychain.models.returns import ReturnStatus
from supplychain.schemas.common import CountResponse
from supplychain.schemas.returns import ReturnCreate, ReturnResolve, ReturnResponse
from supplychain.services.return_service import ReturnService

router = APIRouter()


@router.post("/", response_model=ReturnResponse, status_code=201)
@limiter.limit("30/minute")
def raise_return(request: Request, body: ReturnCreate, uow: UnitOfWorkDep, principal: RequireRetailer):
    return ReturnService(uow).raise_return(
        principal,
        body.manufacturer_id,
        body.reason,
        body.lines,
        grn_id=body.grn_id,
        reason_details=body.reason_details,
    )


@router.get("/", response_model=List[ReturnResponse])
def list_returns(uow: UnitOfWorkDep, principal: CurrentPrincipal, status: Optional[ReturnStatus] = None):
    service = ReturnService(uow)
    if principal.role == UserRole.RETAILER:
        return service.list_for_retailer(principal.user_id, status)
    if principal.role == UserRole.MANUFACTURER:
        return service.list_for_manufacturer(principal.user_id, status)
    return service.list_all(status)


@router.get("/pending-count", response_model=CountResponse)
def pending_return_count(uow: UnitOfWorkDep, principal: RequireAdmin):
    return CountResponse(count=ReturnService(uow).pending_count())


@router.get("/{return_id}", response_model=ReturnResponse)
def get_return(return_id: int, uow: UnitOfWorkDep, principal: CurrentPrincipal):
    return ReturnService(uow).get_return(principal, return_id)


@router.post("/{return_id}/review", response_model=ReturnResponse)
def review_return(return_id: int, uow: UnitOfWorkDep, principal: RequireAdmin):
    return ReturnService(uow).mark_under_review(principal, return_id)


@router.post("/{return_id}/resolve", response_model=ReturnResponse)
@limiter.limit("30/minute")
def resolve_return(
    request: Request,
    return_id: int,
    body: ReturnResolve,
    uow: UnitOfWorkDep,
    principal: RequireAdmin,
):
    return ReturnService(uow).resolve_return(principal, return_id, body.resolution, body.notes)
