"""User directory routes (admin only)."""

from typing import List, Optional

from fastapi import APIRouter, Request

from supplychain.core.rate_limit import limiter
from supplychain.core.rbac import RequireAdmin, UserRole
from supplychain.db.session import UnitOfWorkDep
from supplychain.schemas.user import UserCreate, UserResponse
from supplychain.services.user_service import UserService

router = APIRouter()


@router.post("/", response_model=UserResponse, status_code=201)
@limiter.limit("30/minute")
def create_user(request: Request, body: UserCreate, uow: UnitOfWorkDep, principal: RequireAdmin):
    return UserService(uow).create_user(principal, **body.model_dump())


@router.get("/", response_model=List[UserResponse])
def list_users(uow: UnitOfWorkDep, principal: RequireAdmin, role: Optional[UserRole] = None):
    return UserService(uow).list_users(role=role)


@router.post("/{user_id}/deactivate", response_model=UserResponse)
@limiter.limit("30/minute")
def deactivate_user(request: Request, user_id: int, uow: UnitOfWorkDep, principal: RequireAdmin):
    return UserService(uow).deactivate_user(principal, user_id)
