"""
Pydantic schemas for user-related requests and responses.
"""
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field


class UserBase(BaseModel):
    """Base user schema with common fields."""
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=255)


class UserCreate(UserBase):
    """Schema for creating a new user."""
    roles: list[str] = Field(default_factory=list, description="Role slugs to assign on creation")


class UserUpdate(BaseModel):
    """Schema for updating user information."""
    email: EmailStr | None = None
    name: str | None = Field(None, min_length=1, max_length=255)
    is_active: bool | None = None


class UserResponse(UserBase):
    """Schema for user responses."""
    id: str
    is_active: bool
    last_login_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    # Derived from the grant set
    roles: list[str] = []
    primary_role: str | None = None

    model_config = {"from_attributes": True}


class UserPublic(BaseModel):
    """List view of a user (limited fields)."""
    id: str
    name: str
    email: EmailStr
    primary_role: str | None = None

    model_config = {"from_attributes": True}
