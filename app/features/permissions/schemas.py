"""
Pydantic schemas for the access model API.
"""
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator


# ============================================================================
# Catalog Schemas
# ============================================================================

class PermissionResponse(BaseModel):
    """A registered permission."""
    category: str
    name: str
    description: str

    model_config = ConfigDict(from_attributes=True)


class PermissionGroupResponse(BaseModel):
    """Permissions of one category, in registry order."""
    category: str
    permissions: List[PermissionResponse] = []


class RoleResponse(BaseModel):
    """A catalog role with the permissions it confers."""
    slug: str
    name: str
    description: str
    help: str
    permissions: List[str] = []

    model_config = ConfigDict(from_attributes=True)


# ============================================================================
# Grant Schemas
# ============================================================================

class PermissionStatusResponse(BaseModel):
    """One permission with its grant state for a user; ``key`` is the form field key."""
    name: str
    description: str
    active: bool
    key: str

    model_config = ConfigDict(from_attributes=True)


class UserPermissionsResponse(BaseModel):
    """Grouped permission state of a user, as consumed by the permission editor."""
    user_id: str
    roles: List[str] = []
    primary_role: Optional[str] = None
    groups: Dict[str, List[PermissionStatusResponse]] = {}


class UserGrantsResponse(BaseModel):
    """Raw grant set of a user with derived role information."""
    user_id: str
    roles: List[str] = []
    primary_role: Optional[str] = None
    permissions: List[str] = []
    grants: Dict[str, bool] = {}


class PermissionsUpdate(BaseModel):
    """
    Bulk permission update from the permission editor.

    Keys are encoded permission names (see ``encode_permission_key``).
    """
    permissions: Dict[str, bool] = Field(..., description="Encoded permission key -> granted")


# ============================================================================
# Role Assignment Schemas
# ============================================================================

class AssignRole(BaseModel):
    """Schema for assigning a role to a user."""
    role: str = Field(..., min_length=1, max_length=100, description="Role slug")


class RoleRemovalResponse(BaseModel):
    user_id: str
    role: str
    removed: bool


# ============================================================================
# Check Schemas
# ============================================================================

class AccessCheckRequest(BaseModel):
    """Check a permission or a role for the current user."""
    permission: Optional[str] = Field(None, min_length=1, description="Permission name")
    role: Optional[str] = Field(None, min_length=1, description="Role slug")

    @model_validator(mode="after")
    def exactly_one(self) -> "AccessCheckRequest":
        if (self.permission is None) == (self.role is None):
            raise ValueError("Provide exactly one of 'permission' or 'role'")
        return self


class AccessCheckResponse(BaseModel):
    allowed: bool
    primary_role: Optional[str] = None
