"""
Pytest fixtures for DAX store tests.

Every test gets its own file-backed SQLite database under tmp_path, so all
connections of one store share the same data.
"""

from pathlib import Path
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from daxstore.config import Settings
from daxstore.kernel.identity.identity_service import IdentityService
from daxstore.kernel.models.user import User, UserRole
from daxstore.kernel.store.record_store import RecordStore
from daxstore.schemas.user import UserCreate
from daxstore.store import DataStore


def make_settings(db_path: Path, **overrides) -> Settings:
    """Settings pointing at a test database, ignoring any local .env file."""
    return Settings(
        _env_file=None,
        database_url=f"sqlite+aiosqlite:///{db_path}",
        **overrides,
    )


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "dax-test.db"


@pytest.fixture
def settings(db_path: Path) -> Settings:
    return make_settings(db_path)


@pytest_asyncio.fixture
async def store(settings: Settings) -> AsyncGenerator[DataStore, None]:
    """An initialized store; closed after the test."""
    data_store = DataStore(settings)
    await data_store.initialize()
    yield data_store
    await data_store.close()


@pytest_asyncio.fixture
async def db_session(store: DataStore) -> AsyncGenerator[AsyncSession, None]:
    async with store.session() as session:
        yield session


@pytest_asyncio.fixture
async def records(db_session: AsyncSession) -> RecordStore:
    return RecordStore(db_session)


async def _create_user(session: AsyncSession, user_id: str, role: UserRole = UserRole.USER) -> User:
    return await IdentityService(session).create_user(
        UserCreate(
            id=user_id,
            username=user_id,
            email=f"{user_id}@example.com",
            role=role,
        )
    )


@pytest_asyncio.fixture
async def bob(db_session: AsyncSession) -> User:
    """A regular user with no special grants."""
    return await _create_user(db_session, "bob")


@pytest_asyncio.fixture
async def carol(db_session: AsyncSession) -> User:
    """A second regular user."""
    return await _create_user(db_session, "carol")


@pytest_asyncio.fixture
async def second_admin(db_session: AsyncSession) -> User:
    """An admin other than the default one."""
    return await _create_user(db_session, "root", role=UserRole.ADMIN)
