# pyright: reportMissingTypeStubs=false
"""
Authentication and authorization dependencies for FastAPI.

Provides dependency injection functions for user authentication,
role-based access control, and tenant isolation.
"""

import logging
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from core.constants import ROLE_OWNER, ROLE_PLATFORM_ADMIN, ROLE_STAFF
from core.database import get_db
from models import User
from services.jwt_service import jwt_service, TokenPayload
from shared_types import PLATFORM_SCOPE, TenantScope

logger = logging.getLogger(__name__)


class UserContext:
    """Authenticated user context extracted from JWT token and the users table."""

    def __init__(
        self,
        user_id: int,
        email: str,
        name: str,
        role: str,
        library_id: Optional[int] = None,
        branch_id: Optional[int] = None
    ):
        self.user_id = user_id
        self.email = email
        self.name = name
        self.role = role
        self.library_id = library_id
        self.branch_id = branch_id

    def is_platform_admin(self) -> bool:
        return self.role == ROLE_PLATFORM_ADMIN

    def is_owner(self) -> bool:
        return self.role == ROLE_OWNER

    def is_staff(self) -> bool:
        return self.role == ROLE_STAFF

    @property
    def scope(self) -> TenantScope:
        """
        Tenant scope of the user.

        Platform admins see every library, owners their whole library, staff
        and students only their branch.
        """
        if self.is_platform_admin():
            return PLATFORM_SCOPE
        if self.is_owner():
            return TenantScope(library_id=self.library_id)
        return TenantScope(library_id=self.library_id, branch_id=self.branch_id)

    def __repr__(self) -> str:
        return f"UserContext(user_id={self.user_id}, role='{self.role}', library_id={self.library_id})"


# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


def get_token_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[TokenPayload]:
    """Extract and validate JWT token payload."""
    if not credentials:
        return None
    return jwt_service.verify_token(credentials.credentials)


def get_current_user(
    payload: Optional[TokenPayload] = Depends(get_token_payload),
    db: Session = Depends(get_db)
) -> UserContext:
    """Get authenticated user context from JWT token."""
    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication credentials not provided"
        )

    try:
        user_id = int(payload.sub)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token subject"
        )

    user = db.query(User).filter(User.id == user_id, User.email == payload.email).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found"
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account is deactivated"
        )

    # Scope always comes from the database so a stale token cannot widen it
    if user.role != ROLE_PLATFORM_ADMIN and user.library_id is None:
        logger.warning(f"User {user.id} with role {user.role} has no library")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied"
        )
    if user.role == ROLE_STAFF and user.branch_id is None:
        logger.warning(f"Staff user {user.id} has no branch")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied"
        )

    return UserContext(
        user_id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        library_id=user.library_id,
        branch_id=user.branch_id
    )


def require_owner(user: UserContext = Depends(get_current_user)) -> UserContext:
    """Require library owner (or platform admin)."""
    if not (user.is_owner() or user.is_platform_admin()):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Owner access required"
        )
    return user


def require_manager(user: UserContext = Depends(get_current_user)) -> UserContext:
    """
    Require owner, staff or platform admin.

    Used for seat/locker management and booking changes.
    """
    if not (user.is_owner() or user.is_staff() or user.is_platform_admin()):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Owner or staff access required"
        )
    return user


def require_library_member(user: UserContext = Depends(get_current_user)) -> UserContext:
    """Require any authenticated user, students included."""
    return user
