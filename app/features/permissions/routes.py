"""
Access model API routes.

Read-only views of the role catalog and permission registry, plus checks
against the current user's grant set. Grant mutations live under /users.
"""
from typing import Annotated, List
from fastapi import APIRouter, Depends, HTTPException, status

from app.features.users.dependencies import get_current_user
from app.features.users.models import User
from app.features.permissions import access, catalog
from app.features.permissions.dependencies import require_any_permission, require_permission
from app.features.permissions.schemas import (
    AccessCheckRequest,
    AccessCheckResponse,
    PermissionGroupResponse,
    PermissionResponse,
    RoleResponse,
    UserGrantsResponse,
)
from app.utils import get_logger


log = get_logger(__name__)
router = APIRouter()


@router.get("/catalog", response_model=List[PermissionGroupResponse])
async def list_permission_catalog(
    current_user: Annotated[User, Depends(require_any_permission(("list permissions", "update users")))]
):
    """List every registered permission grouped by category; permission editors need it too."""
    return [
        PermissionGroupResponse(
            category=category,
            permissions=[PermissionResponse.model_validate(p) for p in permissions],
        )
        for category, permissions in catalog.grouped_permissions().items()
    ]


@router.get("/roles", response_model=List[RoleResponse])
async def list_roles(
    current_user: Annotated[User, Depends(require_permission("list roles"))]
):
    """List catalog roles in priority order."""
    return [RoleResponse.model_validate(role) for role in catalog.ROLES]


@router.get("/roles/{slug}", response_model=RoleResponse)
async def get_role(
    slug: str,
    current_user: Annotated[User, Depends(require_permission("show roles"))]
):
    """Get one catalog role by slug."""
    role = catalog.get_role(slug)
    if role is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Role not found")
    return RoleResponse.model_validate(role)


@router.post("/check", response_model=AccessCheckResponse)
async def check_access(
    check: AccessCheckRequest,
    current_user: Annotated[User, Depends(get_current_user)]
):
    """Check a permission or a role for the current user."""
    if check.permission is not None:
        allowed = access.has_permission(current_user, check.permission)
    else:
        allowed = access.in_role(current_user, check.role)

    log.debug(f"Access check for user {current_user.id}: {check.model_dump(exclude_none=True)} -> {allowed}")
    return AccessCheckResponse(allowed=allowed, primary_role=access.primary_role(current_user))


@router.get("/me", response_model=UserGrantsResponse)
async def get_my_grants(
    current_user: Annotated[User, Depends(get_current_user)]
):
    """Get the current user's roles and granted permissions."""
    return UserGrantsResponse(
        user_id=current_user.id,
        roles=access.role_names(current_user),
        primary_role=access.primary_role(current_user),
        permissions=access.granted_permissions(current_user),
        grants={key: bool(value) for key, value in (current_user.permissions or {}).items()},
    )
