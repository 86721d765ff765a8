"""
Static role catalog and permission registry.

Roles are fixed process-wide configuration: each role slug expands to an
ordered tuple of permission names. The permission registry groups every known
permission by category for the permission editor.
"""
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from app.utils import get_logger


log = get_logger(__name__)


@dataclass(frozen=True)
class PermissionDefinition:
    """A permission entry in the registry."""
    category: str
    name: str
    description: str


@dataclass(frozen=True)
class RoleDefinition:
    """
    A role and the permissions it confers.

    Exposes ``slug`` so it can be passed anywhere a role reference is accepted.
    """
    slug: str
    name: str
    description: str
    help: str
    permissions: tuple[str, ...]


# ============================================================================
# Permission Registry
# ============================================================================

PERMISSION_GROUPS: tuple[tuple[str, tuple[tuple[str, str], ...]], ...] = (
    ("Platform", (
        ("platform.index", "Access Dashboard"),
        ("platform.systems.index", "Access System Settings"),
    )),
    ("Story Management", (
        ("list stories", "List Stories"),
        ("show stories", "Show Stories"),
        ("create stories", "Create Stories"),
        ("update stories", "Update Stories"),
        ("delete stories", "Delete Stories"),
        ("publish stories", "Publish Stories"),
        ("unpublish stories", "Unpublish Stories"),
    )),
    ("Category Management", (
        ("list categories", "List Categories"),
        ("show categories", "Show Categories"),
        ("create categories", "Create Categories"),
        ("update categories", "Update Categories"),
        ("delete categories", "Delete Categories"),
    )),
    ("Tag Management", (
        ("list tags", "List Tags"),
        ("show tags", "Show Tags"),
        ("create tags", "Create Tags"),
        ("update tags", "Update Tags"),
        ("delete tags", "Delete Tags"),
    )),
    ("User Management", (
        ("list users", "List Admin Users"),
        ("show users", "Show Admin Users"),
        ("create users", "Create Admin Users"),
        ("update users", "Update Admin Users"),
        ("delete users", "Delete Admin Users"),
    )),
    ("Member Management", (
        ("list members", "List Members"),
        ("show members", "Show Members"),
        ("create members", "Create Members"),
        ("update members", "Update Members"),
        ("delete members", "Delete Members"),
        ("activate members", "Activate Members"),
        ("suspend members", "Suspend Members"),
    )),
    ("Role & Permission Management", (
        ("list roles", "List Roles"),
        ("show roles", "Show Roles"),
        ("create roles", "Create Roles"),
        ("update roles", "Update Roles"),
        ("delete roles", "Delete Roles"),
        ("list permissions", "List Permissions"),
        ("show permissions", "Show Permissions"),
    )),
    ("Analytics", (
        ("view analytics", "View Analytics"),
        ("view member analytics", "View Member Analytics"),
        ("view story analytics", "View Story Analytics"),
        ("export analytics", "Export Analytics"),
    )),
    ("System", (
        ("view logs", "View System Logs"),
        ("manage settings", "Manage Settings"),
        ("backup system", "Backup System"),
        ("restore system", "Restore System"),
    )),
)


# ============================================================================
# Role Catalog
# ============================================================================

_SUPER_ADMIN = (
    "platform.index",
    "platform.systems.index",
    # Stories
    "list stories", "show stories", "create stories", "update stories",
    "delete stories", "publish stories", "unpublish stories",
    # Categories
    "list categories", "show categories", "create categories",
    "update categories", "delete categories",
    # Tags
    "list tags", "show tags", "create tags", "update tags", "delete tags",
    # Users
    "list users", "show users", "create users", "update users", "delete users",
    # Roles
    "list roles", "show roles", "create roles", "update roles", "delete roles",
    # Members
    "list members", "show members", "create members", "update members",
    "delete members", "activate members", "suspend members",
    # Roles & permissions (role entries repeat; _ordered_unique drops the repeats)
    "list roles", "show roles", "create roles", "update roles", "delete roles",
    "list permissions", "show permissions",
    # Analytics
    "view analytics", "view member analytics", "view story analytics", "export analytics",
    # System
    "view logs", "manage settings", "backup system", "restore system",
)

_ADMIN = (
    "platform.index",
    "platform.systems.index",
    "list stories", "show stories", "create stories", "update stories",
    "delete stories", "publish stories", "unpublish stories",
    "list categories", "show categories", "create categories",
    "update categories", "delete categories",
    "list tags", "show tags", "create tags", "update tags", "delete tags",
    "list users", "show users", "create users", "update users",
    "list members", "show members", "activate members", "suspend members",
    "view analytics", "view member analytics", "view story analytics",
)

_EDITOR = (
    "platform.index",
    "list stories", "show stories", "create stories", "update stories",
    "publish stories", "unpublish stories",
    "list categories", "show categories",
    "list tags", "show tags", "create tags", "update tags",
    "view story analytics",
)

_AUTHOR = (
    "platform.index",
    "list stories", "show stories", "create stories", "update stories",
    "list categories", "show categories",
    "list tags", "show tags",
)

_VIEWER = (
    "platform.index",
    "list stories", "show stories",
    "list categories", "show categories",
    "list tags", "show tags",
    "view analytics",
)


def _ordered_unique(names: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(names))


ROLES: tuple[RoleDefinition, ...] = (
    RoleDefinition(
        slug="super-admin",
        name="Super Admin",
        description="Full system access with all permissions",
        help="Has access to all features and can manage other administrators",
        permissions=_ordered_unique(_SUPER_ADMIN),
    ),
    RoleDefinition(
        slug="admin",
        name="Admin",
        description="Administrative access with most permissions",
        help="Can manage stories, categories, tags, users, and members",
        permissions=_ordered_unique(_ADMIN),
    ),
    RoleDefinition(
        slug="editor",
        name="Editor",
        description="Content management access",
        help="Can create, edit, and publish stories, manage categories and tags",
        permissions=_ordered_unique(_EDITOR),
    ),
    RoleDefinition(
        slug="author",
        name="Author",
        description="Content creation access",
        help="Can create and edit stories, view categories and tags",
        permissions=_ordered_unique(_AUTHOR),
    ),
    RoleDefinition(
        slug="viewer",
        name="Viewer",
        description="Read-only access",
        help="Can view stories, categories, tags, and analytics",
        permissions=_ordered_unique(_VIEWER),
    ),
)

# Highest priority first; used to pick a user's display role
ROLE_PRIORITY: tuple[str, ...] = tuple(role.slug for role in ROLES)

ROLE_PERMISSIONS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {role.slug: role.permissions for role in ROLES}
)

_ROLES_BY_SLUG: Mapping[str, RoleDefinition] = MappingProxyType({role.slug: role for role in ROLES})

_PERMISSIONS: tuple[PermissionDefinition, ...] = tuple(
    PermissionDefinition(category=category, name=name, description=description)
    for category, entries in PERMISSION_GROUPS
    for name, description in entries
)

_PERMISSION_NAMES = frozenset(permission.name for permission in _PERMISSIONS)

# Roles and permissions share one grant namespace
_collisions = _PERMISSION_NAMES.intersection(ROLE_PERMISSIONS)
if _collisions:
    raise RuntimeError(f"Role slugs collide with permission names: {sorted(_collisions)}")

_unregistered = {name for names in ROLE_PERMISSIONS.values() for name in names} - _PERMISSION_NAMES
if _unregistered:
    raise RuntimeError(f"Roles reference unregistered permissions: {sorted(_unregistered)}")


def permissions_for(role_slug: str) -> tuple[str, ...]:
    """
    Return the permissions a role confers, in catalog order.

    Unknown slugs yield an empty tuple rather than an error.
    """
    permissions = ROLE_PERMISSIONS.get(role_slug)
    if permissions is None:
        log.warning(f"Unknown role slug {role_slug!r} - expanding to no permissions")
        return ()
    return permissions


def get_role(role_slug: str) -> Optional[RoleDefinition]:
    return _ROLES_BY_SLUG.get(role_slug)


def all_permissions() -> list[PermissionDefinition]:
    """Every registered permission, grouped by category in registry order."""
    return list(_PERMISSIONS)


def grouped_permissions() -> dict[str, list[PermissionDefinition]]:
    groups: dict[str, list[PermissionDefinition]] = {}
    for permission in _PERMISSIONS:
        groups.setdefault(permission.category, []).append(permission)
    return groups
