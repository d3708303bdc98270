"""Material catalogue routes."""

from typing import List, Optional

from fastapi import APIRouter, Request

from supplychain.core.rate_limit import limiter
from supplychain.core.rbac import CurrentPrincipal, RequireAdmin
from supplychain.db.session import UnitOfWorkDep
from supplychain.schemas.material import MaterialCreate, MaterialResponse, MaterialUpdate
from supplychain.services.material_service import MaterialService

router = APIRouter()


@router.post("/", response_model=MaterialResponse, status_code=201)
@limiter.limit("30/minute")
def create_material(request: Request, body: MaterialCreate, uow: UnitOfWorkDep, principal: RequireAdmin):
    return MaterialService(uow).create_material(principal, **body.model_dump())


@router.get("/", response_model=List[MaterialResponse])
def list_materials(
    uow: UnitOfWorkDep,
    principal: CurrentPrincipal,
    include_inactive: bool = False,
    search: Optional[str] = None,
):
    # Inactive materials are an admin concern
    include_inactive = include_inactive and principal.is_admin
    return MaterialService(uow).list_materials(include_inactive=include_inactive, search=search)


@router.get("/by-code/{sq_code}", response_model=MaterialResponse)
def get_material_by_code(sq_code: str, uow: UnitOfWorkDep, principal: CurrentPrincipal):
    return MaterialService(uow).get_by_sq_code(sq_code)


@router.get("/{material_id}", response_model=MaterialResponse)
def get_material(material_id: int, uow: UnitOfWorkDep, principal: CurrentPrincipal):
    return MaterialService(uow).get_material(material_id)


@router.patch("/{material_id}", response_model=MaterialResponse)
@limiter.limit("30/minute")
def update_material(
    request: Request,
    material_id: int,
    body: MaterialUpdate,
    uow: UnitOfWorkDep,
    principal: RequireAdmin,
):
    return MaterialService(uow).update_material(
        principal, material_id, **body.model_dump(exclude_unset=True)
    )


@router.post("/{material_id}/deactivate", response_model=MaterialResponse)
def deactivate_material(material_id: int, uow: UnitOfWorkDep, principal: RequireAdmin):
    return MaterialService(uow).deactivate_material(principal, material_id)


@router.post("/{material_id}/reactivate", response_model=MaterialResponse)
def reactivate_material(material_id: int, uow: UnitOfWorkDep, principal: RequireAdmin):
    return MaterialService(uow).reactivate_material(principal, material_id)
