"""Production routes."""

from typing import List, Optional

from fastapi import APIRouter, Query, Request

from supplychain.core.rate_limit import limiter
from supplychain.core.rbac import CurrentPrincipal, RequireManufacturer
from supplychain.db.session import UnitOfWorkDep
from supplychain.schemas.production import ProductionBatchResponse, ProductionCreate, ProductionTotal
from supplychain.services.production_service import ProductionService

router = APIRouter()


@router.post("/", response_model=ProductionBatchResponse, status_code=201)
@limiter.limit("60/minute")
def record_production(
    request: Request,
    body: ProductionCreate,
    uow: UnitOfWorkDep,
    principal: RequireManufacturer,
):
    return ProductionService(uow).record_production(principal, **body.model_dump())


@router.get("/batches", response_model=List[ProductionBatchResponse])
def list_batches(
    uow: UnitOfWorkDep,
    principal: CurrentPrincipal,
    material_id: Optional[int] = None,
    limit: int = Query(100, le=500),
):
    return ProductionService(uow).list_batches(principal, material_id=material_id, limit=limit)


@router.get("/batches/{batch_id}", response_model=ProductionBatchResponse)
def get_batch(batch_id: int, uow: UnitOfWorkDep, principal: CurrentPrincipal):
    return ProductionService(uow).get_batch(principal, batch_id)


@router.get("/totals", response_model=List[ProductionTotal])
def production_totals(uow: UnitOfWorkDep, principal: RequireManufacturer):
    return ProductionService(uow).production_totals(principal.user_id)
