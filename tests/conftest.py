"""Shared pytest fixtures: per-test SQLite database, app client, and user factory."""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable, Iterable
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.core.database.engine import build_engine, get_db, init_db
from app.features.permissions import access
from app.features.permissions.grants import merge
from app.features.permissions.store import SQLAlchemyGrantStore
from app.features.users.auth import create_access_token
from app.features.users.models import User
from app.main import app


@pytest_asyncio.fixture()
async def engine(tmp_path) -> AsyncIterator[AsyncEngine]:
    """File-backed SQLite engine with all tables created."""

    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'access.sqlite'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture()
async def db(session_factory: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def async_client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncClient]:
    """HTTPX client bound to the app, with get_db pointed at the test database."""

    async def _get_db() -> AsyncIterator[AsyncSession]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture()
def create_user(
    session_factory: async_sessionmaker[AsyncSession],
) -> Callable[..., Awaitable[User]]:
    """Persist a user, assign roles through the access model, then apply extra grants."""

    async def _create(
        email: str,
        roles: Iterable[str] = (),
        *,
        name: str = "Test User",
        grants: dict[str, bool] | None = None,
        **fields: Any,
    ) -> User:
        async with session_factory() as session:
            user = User(email=email, name=name, permissions={}, **fields)
            session.add(user)
            await session.commit()
            await session.refresh(user)

            store = SQLAlchemyGrantStore(session)
            for role in roles:
                await access.assign_role(store, user, role)
            if grants:
                user.permissions = merge(user.permissions, grants)
                await store.save(user)
            return user

    return _create


@pytest.fixture()
def auth_headers() -> Callable[[User], dict[str, str]]:
    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers
