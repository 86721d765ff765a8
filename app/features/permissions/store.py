"""
SQLAlchemy-backed grant store.

The grant set lives in the ``users.permissions`` JSON column. Writes are a
single commit; errors from the session are not caught here.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.features.permissions.grants import GrantSet
from app.features.users.models import User
from app.utils import get_logger


log = get_logger(__name__)


class SQLAlchemyGrantStore:
    """Loads and saves user grant sets through an async session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def load(self, principal_id: str) -> GrantSet:
        """
        Return the stored grant set of a user.

        Raises:
            LookupError: if no user has this id
        """
        result = await self.db.execute(select(User.permissions).where(User.id == principal_id))
        row = result.first()
        if row is None:
            raise LookupError(f"User {principal_id} not found")
        return dict(row[0] or {})

    async def save(self, principal: User) -> None:
        self.db.add(principal)
        await self.db.commit()
        await self.db.refresh(principal)
        log.debug(f"Saved grant set for user {principal.id} ({len(principal.permissions or {})} entries)")
