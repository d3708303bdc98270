"""Invoice routes."""

from typing import List

from fastapi import APIRouter, Request

from supplychain.core.rate_limit import limiter
from supplychain.core.rbac import CurrentPrincipal, RequireAdmin, UserRole, ensure_role
from supplychain.db.session import UnitOfWorkDep
from supplychain.schemas.invoice import InvoiceCreate, InvoiceResponse
from supplychain.services.invoice_service import InvoiceService

router = APIRouter()


@router.post("/", response_model=InvoiceResponse, status_code=201)
@limiter.limit("30/minute")
def generate_invoice(request: Request, body: InvoiceCreate, uow: UnitOfWorkDep, principal: RequireAdmin):
    return InvoiceService(uow).generate_invoice(principal, body.grn_id, is_interstate=body.is_interstate)


@router.get("/", response_model=List[InvoiceResponse])
def list_invoices(uow: UnitOfWorkDep, principal: CurrentPrincipal):
    ensure_role(principal, UserRole.ADMIN, UserRole.RETAILER)
    service = InvoiceService(uow)
    if principal.role == UserRole.RETAILER:
        return service.list_for_retailer(principal.user_id)
    return service.list_all()


@router.get("/{invoice_id}", response_model=InvoiceResponse)
def get_invoice(invoice_id: int, uow: UnitOfWorkDep, principal: CurrentPrincipal):
    ensure_role(principal, UserRole.ADMIN, UserRole.RETAILER)
    return InvoiceService(uow).get_invoice(principal, invoice_id)
