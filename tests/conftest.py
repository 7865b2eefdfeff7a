"""Shared fixtures: an isolated SQLite database per test and the seeded scenarios."""

import os
from typing import AsyncGenerator, Dict, Tuple

# Settings are cached on first import, so the environment must be ready before app imports
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("ENABLE_RATE_LIMITER", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from main import create_app, seed_defaults
from models.base import Base, get_db, make_engine, make_session_factory
from models.category import Category
from models.user import Role, User
from tests.factories import (
    ADMIN_PASSWORD,
    ADMIN_USERNAME,
    FIXTURE_CATEGORY_ID,
    RESTRICTED_PASSWORD,
    RESTRICTED_ROLE,
    RESTRICTED_USERNAME,
    bearer,
    build_category,
    build_role,
    build_user,
    issue_token,
)


@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = make_session_factory(engine)
    async with factory() as db:
        await seed_defaults(db)
    yield factory
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    app = create_app()

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def admin_headers(client) -> Dict[str, str]:
    return bearer(await issue_token(client, ADMIN_USERNAME, ADMIN_PASSWORD))


@pytest_asyncio.fixture
async def fixture_category(db) -> Category:
    """
    Category 333 "Category 1" directly under the default root, rewrite "category-1.html".
    """
    return await build_category(db, FIXTURE_CATEGORY_ID, "Category 1", attributes={"url_key": "category-1"})


@pytest_asyncio.fixture
async def user_with_new_role(db) -> Tuple[Role, User]:
    """
    Admin user "admin_with_role" whose role "new_role" starts without any rules.
    """
    role = await build_role(db, RESTRICTED_ROLE, [])
    user = await build_user(db, RESTRICTED_USERNAME, RESTRICTED_PASSWORD, role)
    return role, user
