"""Dispatch routes.

Manufacturers never see prices on a dispatch; admins and retailers do.
"""

from typing import Optional

from fastapi import APIRouter, Request

from supplychain.core.rate_limit import limiter
from supplychain.core.rbac import CurrentPrincipal, Principal, RequireManufacturer, UserRole
from supplychain.db.session import UnitOfWorkDep
from supplychain.models.dispatch import DispatchOrder, DispatchStatus
from supplychain.schemas.dispatch import (
    DispatchCreate,
    DispatchExecute,
    DispatchPricedResponse,
    DispatchResponse,
)
from supplychain.services.dispatch_service import DispatchService

router = APIRouter()


def serialize_dispatch(dispatch: DispatchOrder, principal: Principal) -> DispatchResponse:
    if principal.role == UserRole.MANUFACTURER:
        return DispatchResponse.model_validate(dispatch)
    return DispatchPricedResponse.model_validate(dispatch)


@router.post("/", status_code=201, response_model=None)
@limiter.limit("60/minute")
def create_dispatch(request: Request, body: DispatchCreate, uow: UnitOfWorkDep, principal: RequireManufacturer):
    dispatch = DispatchService(uow).create_dispatch(principal, body.srn_id, body.delivery_notes)
    return serialize_dispatch(dispatch, principal)


@router.get("/", response_model=None)
def list_dispatches(uow: UnitOfWorkDep, principal: CurrentPrincipal, status: Optional[DispatchStatus] = None):
    service = DispatchService(uow)
    if principal.role == UserRole.MANUFACTURER:
        dispatches = service.list_for_manufacturer(principal.user_id, status)
    elif principal.role == UserRole.RETAILER:
        dispatches = service.list_for_retailer(principal.user_id, status)
    else:
        dispatches = service.list_all(status)
    return [serialize_dispatch(d, principal) for d in dispatches]


@router.get("/{dispatch_id}", response_model=None)
def get_dispatch(dispatch_id: int, uow: UnitOfWorkDep, principal: CurrentPrincipal):
    return serialize_dispatch(DispatchService(uow).get_dispatch(principal, dispatch_id), principal)


@router.post("/{dispatch_id}/execute", response_model=None)
@limiter.limit("60/minute")
def execute_dispatch(
    request: Request,
    dispatch_id: int,
    body: DispatchExecute,
    uow: UnitOfWorkDep,
    principal: RequireManufacturer,
):
    dispatch = DispatchService(uow).execute_dispatch(principal, dispatch_id, body.delivery_notes)
    return serialize_dispatch(dispatch, principal)
