"""
User management routes, including role assignment and permission editing.
"""
from typing import Annotated, Optional
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import config
from app.core.database.engine import get_db
from app.core.limiter import limiter
from app.features.users.models import User
from app.features.users.schemas import UserCreate, UserPublic, UserResponse, UserUpdate
from app.features.users.dependencies import get_current_user
from app.features.permissions import access, catalog
from app.features.permissions.dependencies import get_grant_store, require_permission
from app.features.permissions.exceptions import InvalidPermissionKey
from app.features.permissions.grants import decode_form_permissions
from app.features.permissions.schemas import (
    AssignRole,
    PermissionsUpdate,
    PermissionStatusResponse,
    RoleRemovalResponse,
    UserPermissionsResponse,
)
from app.features.permissions.store import SQLAlchemyGrantStore
from app.utils import get_logger


log = get_logger(__name__)
router = APIRouter(tags=["users"])

SUPER_ADMIN = "super-admin"


async def get_user_or_404(db: AsyncSession, user_id: str) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user


def ensure_assignable(actor: User, role: str) -> None:
    """Reject unknown roles, and super-admin changes by anyone but a super-admin."""
    if catalog.get_role(role) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown role: {role}"
        )
    if role == SUPER_ADMIN and not access.in_role(actor, SUPER_ADMIN):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only a super admin can manage the super admin role"
        )


def permissions_response(user: User) -> UserPermissionsResponse:
    return UserPermissionsResponse(
        user_id=user.id,
        roles=access.role_names(user),
        primary_role=access.primary_role(user),
        groups={
            category: [PermissionStatusResponse.model_validate(s) for s in statuses]
            for category, statuses in access.status_of_permissions(user).items()
        },
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user_profile(
    user: Annotated[User, Depends(get_current_user)]
):
    """Get current authenticated user's profile."""
    return user


@router.get("/", response_model=list[UserPublic])
async def list_users(
    current_user: Annotated[User, Depends(require_permission("list users"))],
    db: Annotated[AsyncSession, Depends(get_db)],
    role: Optional[str] = None,
    skip: int = 0,
    limit: int = 50
):
    """List users, optionally only those holding a role."""
    query = select(User).order_by(User.created_at, User.id)

    if not role:
        result = await db.execute(query.offset(skip).limit(limit))
        return result.scalars().all()

    # Grants live in a JSON column, so the role filter runs in Python
    result = await db.execute(query)
    users = [user for user in result.scalars().all() if access.in_role(user, role)]
    return users[skip:skip + limit]


@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_in: UserCreate,
    current_user: Annotated[User, Depends(require_permission("create users"))],
    db: Annotated[AsyncSession, Depends(get_db)],
    store: Annotated[SQLAlchemyGrantStore, Depends(get_grant_store)]
):
    """Create a user and assign the requested roles."""
    for role in user_in.roles:
        ensure_assignable(current_user, role)

    user = User(email=user_in.email, name=user_in.name, permissions={})
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this email already exists"
        )
    await db.refresh(user)

    for role in user_in.roles:
        await access.assign_role(store, user, role)

    log.info(f"User {current_user.id} created user {user.id} with roles {user_in.roles}")
    return user


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    current_user: Annotated[User, Depends(require_permission("show users"))],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Get a user by ID."""
    return await get_user_or_404(db, user_id)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    update_data: UserUpdate,
    current_user: Annotated[User, Depends(require_permission("update users"))],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Update profile fields of a user."""
    user = await get_user_or_404(db, user_id)

    for key, value in update_data.model_dump(exclude_unset=True).items():
        setattr(user, key, value)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this email already exists"
        )
    await db.refresh(user)
    return user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: str,
    current_user: Annotated[User, Depends(require_permission("delete users"))],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Delete a user. Users cannot delete themselves; super admins are only deletable by super admins."""
    user = await get_user_or_404(db, user_id)

    if user.id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own account"
        )

    if access.in_role(user, SUPER_ADMIN) and not access.in_role(current_user, SUPER_ADMIN):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You cannot delete a super admin user"
        )

    await db.delete(user)
    await db.commit()

    log.info(f"User {current_user.id} deleted user {user_id}")
    return None


# ============================================================================
# Grant Routes
# ============================================================================

@router.get("/{user_id}/permissions", response_model=UserPermissionsResponse)
async def get_user_permissions(
    user_id: str,
    current_user: Annotated[User, Depends(require_permission("show users"))],
    db: Annotated[AsyncSession, Depends(get_db)]
):
    """Every registered permission grouped by category with the user's grant state."""
    user = await get_user_or_404(db, user_id)
    return permissions_response(user)


@router.patch("/{user_id}/permissions", response_model=UserPermissionsResponse)
@limiter.limit(config.RATE_LIMIT)
async def update_user_permissions(
    request: Request,
    user_id: str,
    update: PermissionsUpdate,
    current_user: Annotated[User, Depends(require_permission("update users"))],
    db: Annotated[AsyncSession, Depends(get_db)],
    store: Annotated[SQLAlchemyGrantStore, Depends(get_grant_store)]
):
    """
    Overwrite submitted permissions, leaving the rest of the grant set untouched.

    Keys are encoded permission names; only registered permissions are accepted,
    roles go through the role endpoints.
    """
    try:
        additions = decode_form_permissions(update.permissions)
    except InvalidPermissionKey as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    registered = {permission.name for permission in catalog.all_permissions()}
    unknown = sorted(set(additions) - registered)
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown permissions: {unknown}"
        )

    user = await get_user_or_404(db, user_id)
    await access.update_permissions(store, user, additions)
    return permissions_response(user)


@router.post("/{user_id}/roles", response_model=UserResponse)
@limiter.limit(config.RATE_LIMIT)
async def assign_user_role(
    request: Request,
    user_id: str,
    assignment: AssignRole,
    current_user: Annotated[User, Depends(require_permission("update users"))],
    db: Annotated[AsyncSession, Depends(get_db)],
    store: Annotated[SQLAlchemyGrantStore, Depends(get_grant_store)]
):
    """Assign a role and every permission it confers."""
    ensure_assignable(current_user, assignment.role)
    user = await get_user_or_404(db, user_id)
    return await access.assign_role(store, user, assignment.role)


@router.delete("/{user_id}/roles/{role}", response_model=RoleRemovalResponse)
@limiter.limit(config.RATE_LIMIT)
async def remove_user_role(
    request: Request,
    user_id: str,
    role: str,
    current_user: Annotated[User, Depends(require_permission("update users"))],
    db: Annotated[AsyncSession, Depends(get_db)],
    store: Annotated[SQLAlchemyGrantStore, Depends(get_grant_store)]
):
    """
    Remove a catalog role; 404 when the user does not hold it.

    Permission names are rejected here so a held role never loses part of
    what it confers; use the permission editor for those.
    """
    ensure_assignable(current_user, role)

    user = await get_user_or_404(db, user_id)
    outcome = await access.remove_role(store, user, role)

    if outcome is access.RoleRemoval.NOT_FOUND:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User does not hold role {role}"
        )
    return RoleRemovalResponse(user_id=user.id, role=role, removed=True)
