"""
User model with ULID primary keys.
"""
from datetime import datetime
from typing import Any, Dict
from sqlalchemy import String, Boolean, JSON
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database.base import Base, TimestampMixin, generate_ulid
from app.features.permissions import access


class User(Base, TimestampMixin):
    """
    Back-office user.

    ``permissions`` is the user's grant set: a flat JSON object mapping role
    slugs and permission names to booleans. Replace the whole dict when
    changing it; in-place mutation is not tracked.
    """
    __tablename__ = "users"

    # Primary key using ULID (Universally Unique Lexicographically Sortable Identifier)
    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)

    # User information
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Grant set (roles and permissions share this namespace)
    permissions: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    # Status flags
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Track last login
    last_login_at: Mapped[datetime | None] = mapped_column(nullable=True)

    @property
    def roles(self) -> list[str]:
        """Catalog roles held, highest priority first."""
        return access.role_names(self)

    @property
    def primary_role(self) -> str | None:
        return access.primary_role(self)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email!r})>"
