"""User directory management (admin only)."""

import logging
from typing import List, Optional

from sqlalchemy import select

from supplychain.core.errors import DuplicateReference, InvalidState, ValidationFailure
from supplychain.core.rbac import Principal, UserRole, ensure_role
from supplychain.db.unit_of_work import UnitOfWork
from supplychain.models.user import User
from supplychain.services.common import get_or_404

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.db = uow.session

    def create_user(
        self,
        principal: Principal,
        email: str,
        name: str,
        role: UserRole,
        business_name: Optional[str] = None,
        gstin: Optional[str] = None,
    ) -> User:
        ensure_role(principal, UserRole.ADMIN)
        email = (email or "").strip().lower()
        if not email or "@" not in email:
            raise ValidationFailure("A valid email is required", field="email")
        if not (name or "").strip():
            raise ValidationFailure("Name is required", field="name")

        with self.uow.transaction():
            existing = self.db.execute(select(User).where(User.email == email)).scalar_one_or_none()
            if existing is not None:
                raise DuplicateReference("A user with this email already exists", email=email)
            user = User(
                email=email,
                name=name.strip(),
                role=UserRole(role),
                business_name=business_name,
                gstin=gstin,
                is_active=True,
            )
            self.db.add(user)
            self.db.flush()
        logger.info(f"User {user.id} created with role {user.role.value}")
        return user

    def deactivate_user(self, principal: Principal, user_id: int) -> User:
        ensure_role(principal, UserRole.ADMIN)
        with self.uow.transaction():
            user = get_or_404(self.uow, User, user_id, "User")
            if user.id == principal.user_id:
                raise InvalidState("You cannot deactivate your own account", user_id=user_id)
            user.is_active = False
            self.db.flush()
        return user

    def get_user(self, user_id: int) -> User:
        return get_or_404(self.uow, User, user_id, "User")

    def require_active(self, user_id: int, role: UserRole, entity: str) -> User:
        """Load a user and check it is an active account with ``role``."""
        user = get_or_404(self.uow, User, user_id, entity)
        if user.role != role:
            raise ValidationFailure(f"{entity} {user_id} is not a {role.value.lower()}", user_id=user_id)
        if not user.is_active:
            raise InvalidState(f"{entity} {user_id} is inactive", user_id=user_id)
        return user

    def list_users(self, role: Optional[UserRole] = None, active_only: bool = False) -> List[User]:
        stmt = select(User)
        if role is not None:
            stmt = stmt.where(User.role == role)
        if active_only:
            stmt = stmt.where(User.is_active.is_(True))
        return list(self.db.execute(stmt.order_by(User.name)).scalars())
