"""Role-Based Access Control (RBAC) utilities.

Roles are not hierarchical here: each transition names the exact roles that
may perform it. The core services call ``ensure_role`` themselves, so the
FastAPI dependencies below are a first gate, not the only one.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from supplychain.core.errors import Unauthorized
from supplychain.core.security import decode_access_token


class UserRole(str, Enum):
    """User roles for RBAC."""

    ADMIN = "ADMIN"
    MANUFACTURER = "MANUFACTURER"
    RETAILER = "RETAILER"


@dataclass(frozen=True)
class Principal:
    """Authenticated caller, as asserted by the identity layer."""

    user_id: int
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


def ensure_role(principal: Principal, *roles: UserRole) -> None:
    """Raise Unauthorized unless the principal holds one of ``roles``."""
    if principal.role not in roles:
        allowed = ", ".join(r.value for r in roles)
        raise Unauthorized(
            f"Requires role {allowed}",
            user_id=principal.user_id,
            role=principal.role.value,
        )


def ensure_owner(principal: Principal, owner_id: int, entity: str) -> None:
    """Raise Unauthorized unless the principal is the owning party."""
    if principal.user_id != owner_id:
        raise Unauthorized(
            f"{entity} does not belong to you",
            user_id=principal.user_id,
            owner_id=owner_id,
        )


async def get_current_principal(request: Request) -> Principal:
    """Read the principal from the Authorization bearer token."""
    payload = None
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header.split(" ", 1)[1]
        if token:
            payload = decode_access_token(token)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("sub")
    role = payload.get("role")
    if user_id is None or role is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    try:
        user_role = UserRole(str(role).upper())
        return Principal(user_id=int(user_id), role=user_role)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token claims",
        )


def require_role(*roles: UserRole):
    """Dependency to require one of the given roles."""

    async def role_checker(
        principal: Annotated[Principal, Depends(get_current_principal)]
    ) -> Principal:
        if principal.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires role {', '.join(r.value for r in roles)}",
            )
        return principal

    return role_checker


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
RequireAdmin = Annotated[Principal, Depends(require_role(UserRole.ADMIN))]
RequireManufacturer = Annotated[Principal, Depends(require_role(UserRole.MANUFACTURER))]
RequireRetailer = Annotated[Principal, Depends(require_role(UserRole.RETAILER))]
