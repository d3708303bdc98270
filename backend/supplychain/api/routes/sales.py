"""Retailer sales routes."""

from typing import List, Optional

from fastapi import APIRouter, Query, Request

from supplychain.core.rate_limit import limiter
from supplychain.core.rbac import CurrentPrincipal, RequireRetailer, UserRole, ensure_role
from supplychain.db.session import UnitOfWorkDep
from supplychain.schemas.sale import SaleCreate, SaleResponse, SaleSummary
from supplychain.services.sale_service import SaleService

router = APIRouter()


@router.post("/", response_model=SaleResponse, status_code=201)
@limiter.limit("120/minute")
def record_sale(request: Request, body: SaleCreate, uow: UnitOfWorkDep, principal: RequireRetailer):
    return SaleService(uow).record_sale(principal, body.material_id, body.units_sold)


@router.get("/", response_model=List[SaleResponse])
def list_sales(
    uow: UnitOfWorkDep,
    principal: CurrentPrincipal,
    retailer_id: Optional[int] = None,
    limit: int = Query(100, le=1000),
):
    ensure_role(principal, UserRole.ADMIN, UserRole.RETAILER)
    if principal.role == UserRole.RETAILER:
        retailer_id = principal.user_id
    return SaleService(uow).list_sales(retailer_id=retailer_id, limit=limit)


@router.get("/summary", response_model=List[SaleSummary])
def sales_summary(uow: UnitOfWorkDep, principal: RequireRetailer):
    return SaleService(uow).sales_summary(principal.user_id)


@router.get("/{sale_id}", response_model=SaleResponse)
def get_sale(sale_id: int, uow: UnitOfWorkDep, principal: CurrentPrincipal):
    return SaleService(uow).get_sale(principal, sale_id)
