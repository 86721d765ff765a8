"""
Seed script creating one back-office user per catalog role.

Run this script after configuring DATABASE_URL:
- Creates super@admin.com, admin@admin.com, editor@admin.com,
  author@admin.com and viewer@admin.com
- Assigns each user its role (and therefore the role's permissions)
- Prints a bearer token per user for local testing

Existing users are left alone apart from re-affirming their role.

Usage:
    python -m scripts.seed_users
"""
import asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database.engine import AsyncSessionLocal, init_db
from app.features.permissions import access, catalog
from app.features.permissions.store import SQLAlchemyGrantStore
from app.features.users.auth import create_access_token
from app.features.users.models import User
from app.utils import get_logger


log = get_logger(__name__)


DEFAULT_USERS = [
    ("super@admin.com", "Super Admin", "super-admin"),
    ("admin@admin.com", "Admin User", "admin"),
    ("editor@admin.com", "Editor User", "editor"),
    ("author@admin.com", "Author User", "author"),
    ("viewer@admin.com", "Viewer User", "viewer"),
]


async def seed_user(db: AsyncSession, email: str, name: str, role: str) -> User:
    """Create a user if missing and assign the role."""
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if user is None:
        user = User(email=email, name=name, permissions={})
        db.add(user)
        await db.commit()
        await db.refresh(user)
        log.info(f"Created user: {email}")
    else:
        log.info(f"User already exists: {email}")

    await access.assign_role(SQLAlchemyGrantStore(db), user, role)
    return user


async def seed_users(db: AsyncSession) -> list[User]:
    users = []
    for email, name, role in DEFAULT_USERS:
        users.append(await seed_user(db, email, name, role))
        log.info(f"  {role}: {len(catalog.permissions_for(role))} permissions")
    return users


async def main():
    """Main seeding function."""
    log.info("Initializing database...")
    await init_db()

    async with AsyncSessionLocal() as db:
        log.info("Seeding users...")
        users = await seed_users(db)

    log.info("Seeding complete. Bearer tokens (valid 1 hour):")
    for user in users:
        log.info(f"  {user.email} ({user.primary_role}): {create_access_token(user.id)}")


if __name__ == "__main__":
    asyncio.run(main())
