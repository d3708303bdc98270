"""Retailer/manufacturer assignment routes."""

from typing import List, Optional

from fastapi import APIRouter, Request

from supplychain.core.rate_limit import limiter
from supplychain.core.rbac import CurrentPrincipal, RequireAdmin, UserRole
from supplychain.db.session import UnitOfWorkDep
from supplychain.schemas.assignment import AssignmentRequest, AssignmentResponse
from supplychain.services.assignment_service import AssignmentService

router = APIRouter()


@router.post("/", response_model=AssignmentResponse, status_code=201)
@limiter.limit("30/minute")
def create_assignment(request: Request, body: AssignmentRequest, uow: UnitOfWorkDep, principal: RequireAdmin):
    return AssignmentService(uow).create_assignment(principal, body.retailer_id, body.manufacturer_id)


@router.post("/deactivate", response_model=AssignmentResponse)
@limiter.limit("30/minute")
def deactivate_assignment(request: Request, body: AssignmentRequest, uow: UnitOfWorkDep, principal: RequireAdmin):
    return AssignmentService(uow).deactivate_assignment(principal, body.retailer_id, body.manufacturer_id)


@router.get("/", response_model=List[AssignmentResponse])
def list_assignments(
    uow: UnitOfWorkDep,
    principal: CurrentPrincipal,
    retailer_id: Optional[int] = None,
    manufacturer_id: Optional[int] = None,
    active_only: bool = True,
):
    """Admins may filter freely; other roles only see their own links."""
    if principal.role == UserRole.RETAILER:
        retailer_id = principal.user_id
    elif principal.role == UserRole.MANUFACTURER:
        manufacturer_id = principal.user_id
    return AssignmentService(uow).list_assignments(
        retailer_id=retailer_id, manufacturer_id=manufacturer_id, active_only=active_only
    )
