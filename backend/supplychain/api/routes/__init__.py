"""API routes."""

from fastapi import APIRouter

from supplychain.api.routes import (
    assignments,
    commissions,
    dispatch,
    grn,
    inventory,
    invoices,
    materials,
    production,
    returns,
    sales,
    srn,
    users,
)

api_router = APIRouter()

api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(materials.router, prefix="/materials", tags=["materials"])
api_router.include_router(assignments.router, prefix="/assignments", tags=["assignments"])
api_router.include_router(production.router, prefix="/production", tags=["production"])
api_router.include_router(inventory.router, prefix="/inventory", tags=["inventory"])
api_router.include_router(srn.router, prefix="/srns", tags=["srn"])
api_router.include_router(dispatch.router, prefix="/dispatches", tags=["dispatch"])
api_router.include_router(grn.router, prefix="/grns", tags=["grn"])
api_router.include_router(invoices.router, prefix="/invoices", tags=["invoices"])
api_router.include_router(returns.router, prefix="/returns", tags=["returns"])
api_router.include_router(sales.router, prefix="/sales", tags=["sales"])
api_router.include_router(commissions.router, prefix="/commissions", tags=["commissions"])
