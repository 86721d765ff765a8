"""
Access operations over a principal's grant set.

Roles and permissions share one namespace: assigning a role records the slug
itself as a grant next to the permissions it expands to, and every check goes
through :func:`app.features.permissions.grants.has`.

Mutations replace ``principal.permissions`` with a new dict (so ORM change
tracking sees the write) and then persist through a :class:`GrantStore`.
Store failures propagate unchanged; the in-memory grant set is not rolled back.
"""
import enum
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, MutableMapping, Optional, Protocol

from app.features.permissions import catalog
from app.features.permissions.grants import (
    GrantSet,
    PermissionView,
    RoleRef,
    RoleView,
    encode_permission_key,
    has,
    merge,
    resolve_role,
)
from app.utils import get_logger


log = get_logger(__name__)


class Principal(Protocol):
    id: Any
    permissions: Optional[MutableMapping[str, Any]]


class GrantStore(Protocol):
    """Persistence collaborator for grant sets."""

    async def load(self, principal_id: str) -> GrantSet:
        ...

    async def save(self, principal: Principal) -> None:
        ...


class RoleRemoval(enum.IntEnum):
    NOT_FOUND = 0
    REMOVED = 1


@dataclass(frozen=True)
class PermissionStatus:
    """One permission as shown in the permission editor."""
    name: str
    description: str
    active: bool
    key: str


# ============================================================================
# Mutations
# ============================================================================

async def assign_role(store: GrantStore, principal: Principal, role: RoleRef) -> Principal:
    """
    Grant a role and every permission it confers, then persist.

    Re-assigning a held role only re-affirms entries that are already true.
    """
    slug = resolve_role(role)
    role_permissions = catalog.permissions_for(slug)

    grants = merge(principal.permissions, {slug: True})
    for permission in role_permissions:
        grants[permission] = True

    principal.permissions = grants
    await store.save(principal)

    log.info(f"Assigned role {slug!r} to user {principal.id} ({len(role_permissions)} permissions)")
    return principal


async def remove_role(store: GrantStore, principal: Principal, role: RoleRef) -> RoleRemoval:
    """
    Revoke a role and the permissions it confers, then persist.

    Permissions that another still-held role also confers are kept. Returns
    ``RoleRemoval.NOT_FOUND`` without writing when the role is not held.
    """
    slug = resolve_role(role)
    current = principal.permissions or {}

    if slug not in current:
        log.debug(f"Role {slug!r} not held by user {principal.id} - nothing to remove")
        return RoleRemoval.NOT_FOUND

    retained: set[str] = set()
    for other in RoleView(current).held():
        if other != slug:
            retained.update(catalog.permissions_for(other))

    grants = merge(current, {})
    del grants[slug]
    for permission in catalog.permissions_for(slug):
        if permission not in retained:
            grants.pop(permission, None)

    principal.permissions = grants
    await store.save(principal)

    log.info(f"Removed role {slug!r} from user {principal.id}")
    return RoleRemoval.REMOVED


async def update_permissions(
    store: GrantStore,
    principal: Principal,
    additions: Mapping[str, Any],
) -> Principal:
    """Overwrite the submitted keys of the grant set (bulk form update), then persist."""
    principal.permissions = merge(principal.permissions, additions)
    await store.save(principal)

    log.info(f"Updated {len(additions)} permission entries for user {principal.id}")
    return principal


# ============================================================================
# Queries
# ============================================================================

def in_role(principal: Principal, role: RoleRef) -> bool:
    return has(principal.permissions, resolve_role(role))


def has_permission(principal: Principal, permission: str) -> bool:
    return has(principal.permissions, permission)


def has_any_permission(principal: Principal, permissions: Iterable[str]) -> bool:
    return any(has(principal.permissions, permission) for permission in permissions)


def has_all_permissions(principal: Principal, permissions: Iterable[str]) -> bool:
    return all(has(principal.permissions, permission) for permission in permissions)


def primary_role(principal: Principal) -> Optional[str]:
    """
    Highest-priority catalog role the principal holds, or None.

    For display only; users may hold several roles at once.
    """
    for slug in catalog.ROLE_PRIORITY:
        if has(principal.permissions, slug):
            return slug
    return None


def role_names(principal: Principal) -> list[str]:
    return RoleView(principal.permissions).held()


def granted_permissions(principal: Principal) -> list[str]:
    return PermissionView(principal.permissions).granted()


def status_of_permissions(principal: Principal) -> dict[str, list[PermissionStatus]]:
    """Every registered permission grouped by category, with its grant state."""
    return {
        category: [
            PermissionStatus(
                name=permission.name,
                description=permission.description,
                active=has(principal.permissions, permission.name),
                key=encode_permission_key(permission.name),
            )
            for permission in permissions
        ]
        for category, permissions in catalog.grouped_permissions().items()
    }
