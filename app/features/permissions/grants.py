"""
Grant set primitives.

A grant set is a flat ``dict[str, bool]`` holding both role slugs and
permission names. A key counts as granted only when present with a true
value; missing keys are simply not granted.
"""
import base64
import binascii
from typing import Any, Mapping, Optional, Protocol, Union, runtime_checkable

from app.features.permissions.catalog import ROLE_PRIORITY
from app.features.permissions.exceptions import InvalidPermissionKey, InvalidRoleReference


GrantSet = dict[str, bool]


@runtime_checkable
class SupportsSlug(Protocol):
    slug: Any


RoleRef = Union[str, SupportsSlug]


def has(grants: Optional[Mapping[str, Any]], key: str) -> bool:
    """True iff ``key`` is present in ``grants`` with a true value."""
    if not grants:
        return False
    return bool(grants.get(key, False))


def merge(grants: Optional[Mapping[str, Any]], additions: Mapping[str, Any]) -> GrantSet:
    """
    Return a new grant set with every key of ``additions`` written over ``grants``.

    Keys absent from ``additions`` keep their current value.
    """
    merged: GrantSet = {key: bool(value) for key, value in (grants or {}).items()}
    for key, value in additions.items():
        merged[key] = bool(value)
    return merged


def resolve_role(role: RoleRef) -> str:
    """
    Resolve a role reference to its slug.

    Accepts a slug string or any object with a ``slug`` attribute (a string or a
    zero-argument callable returning one).

    Raises:
        InvalidRoleReference: for anything else, including empty slugs
    """
    if isinstance(role, str):
        slug = role
    elif isinstance(role, SupportsSlug):
        slug = role.slug() if callable(role.slug) else role.slug
    else:
        raise InvalidRoleReference(role)

    if not isinstance(slug, str) or not slug:
        raise InvalidRoleReference(role)
    return slug


class RoleView:
    """Role-shaped reads over a grant set."""

    def __init__(self, grants: Optional[Mapping[str, Any]]):
        self._grants = grants or {}

    def __contains__(self, role: object) -> bool:
        try:
            return has(self._grants, resolve_role(role))  # type: ignore[arg-type]
        except InvalidRoleReference:
            return False

    def held(self) -> list[str]:
        """Catalog roles present in the grant set, highest priority first."""
        return [slug for slug in ROLE_PRIORITY if has(self._grants, slug)]


class PermissionView:
    """Permission-shaped reads over a grant set."""

    def __init__(self, grants: Optional[Mapping[str, Any]]):
        self._grants = grants or {}

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and has(self._grants, name)

    def granted(self) -> list[str]:
        return [
            key for key, value in self._grants.items()
            if value and key not in ROLE_PRIORITY
        ]


# ============================================================================
# Form key transport
# ============================================================================

def encode_permission_key(name: str) -> str:
    """Encode a permission name into a form-field-safe key (URL-safe base64, unpadded)."""
    return base64.urlsafe_b64encode(name.encode("utf-8")).decode("ascii").rstrip("=")


def decode_permission_key(key: str) -> str:
    """Reverse :func:`encode_permission_key`; accepts padded or standard base64 too."""
    normalized = key.replace("+", "-").replace("/", "_").rstrip("=")
    padded = normalized + "=" * (-len(normalized) % 4)
    try:
        name = base64.b64decode(padded.encode("ascii"), altchars=b"-_", validate=True).decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError):
        raise InvalidPermissionKey(key)
    if not name:
        raise InvalidPermissionKey(key)
    return name


def decode_form_permissions(submitted: Mapping[str, Any]) -> GrantSet:
    """Decode every submitted key and coerce checkbox values to booleans."""
    return {decode_permission_key(key): _coerce(value) for key, value in submitted.items()}


def _coerce(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "on", "yes")
    return bool(value)
