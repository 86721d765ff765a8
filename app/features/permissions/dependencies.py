"""
FastAPI dependencies for route protection.

Checks read the current user's grant set directly; there is no admin bypass,
super-admins pass because their role grants every permission.
"""
from typing import Annotated, Iterable
from fastapi import Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import get_db
from app.features.users.dependencies import get_current_user
from app.features.users.models import User
from app.features.permissions.access import has_any_permission, has_permission
from app.features.permissions.store import SQLAlchemyGrantStore
from app.utils import get_logger


log = get_logger(__name__)


def get_grant_store(db: Annotated[AsyncSession, Depends(get_db)]) -> SQLAlchemyGrantStore:
    return SQLAlchemyGrantStore(db)


def require_permission(permission: str):
    """
    FastAPI dependency to require a specific permission.

    Usage:
        @router.get("/users")
        async def list_users(user: User = Depends(require_permission("list users"))):
            ...

    Raises:
        HTTPException: 403 if user doesn't have permission
    """
    async def permission_dependency(
        current_user: Annotated[User, Depends(get_current_user)]
    ) -> User:
        if not has_permission(current_user, permission):
            log.debug(f"User {current_user.id} denied permission {permission!r}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission denied: {permission}"
            )
        return current_user

    return permission_dependency


def require_any_permission(permissions: Iterable[str]):
    """FastAPI dependency to require ANY of the specified permissions."""
    required = tuple(permissions)

    async def permission_dependency(
        current_user: Annotated[User, Depends(get_current_user)]
    ) -> User:
        if not has_any_permission(current_user, required):
            log.debug(f"User {current_user.id} denied all of {required}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission denied: requires one of {list(required)}"
            )
        return current_user

    return permission_dependency

