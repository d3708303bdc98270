"""Commission routes."""

from typing import List, Optional

from fastapi import APIRouter, Request

from supplychain.core.rate_limit import limiter
from supplychain.core.rbac import CurrentPrincipal, RequireAdmin, UserRole, ensure_role
from supplychain.db.session import UnitOfWorkDep
from supplychain.models.sale import CommissionStatus
from supplychain.schemas.common import CountResponse
from supplychain.schemas.sale import CommissionResponse, CommissionSummary, RetailerCommissionSummary
from supplychain.services.commission_service import CommissionService

router = APIRouter()


@router.get("/", response_model=List[CommissionResponse])
def list_commissions(
    uow: UnitOfWorkDep,
    principal: CurrentPrincipal,
    status: Optional[CommissionStatus] = None,
    retailer_id: Optional[int] = None,
):
    ensure_role(principal, UserRole.ADMIN, UserRole.RETAILER)
    if principal.role == UserRole.RETAILER:
        retailer_id = principal.user_id
    return CommissionService(uow).list_commissions(status=status, retailer_id=retailer_id)


@router.get("/summary", response_model=CommissionSummary)
def commission_summary(uow: UnitOfWorkDep, principal: CurrentPrincipal, retailer_id: Optional[int] = None):
    ensure_role(principal, UserRole.ADMIN, UserRole.RETAILER)
    if principal.role == UserRole.RETAILER:
        retailer_id = principal.user_id
    return CommissionService(uow).summary(retailer_id)


@router.get("/summary/retailers", response_model=List[RetailerCommissionSummary])
def commission_summary_by_retailer(uow: UnitOfWorkDep, principal: RequireAdmin):
    return CommissionService(uow).summary_by_retailer()


@router.post("/retailers/{retailer_id}/pay-all", response_model=CountResponse)
@limiter.limit("30/minute")
def pay_all_commissions(request: Request, retailer_id: int, uow: UnitOfWorkDep, principal: RequireAdmin):
    return CountResponse(count=CommissionService(uow).mark_all_paid_for_retailer(principal, retailer_id))


@router.post("/{commission_id}/pay", response_model=CommissionResponse)
@limiter.limit("60/minute")
def pay_commission(request: Request, commission_id: int, uow: UnitOfWorkDep, principal: RequireAdmin):
    return CommissionService(uow).mark_paid(principal, commission_id)
