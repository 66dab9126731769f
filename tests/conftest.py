"""
Shared test fixtures.

Repository and service tests run against a throwaway SQLite file so every
test starts with an empty schema.
"""

from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from homeschool_planner.infrastructure.local.database import Base
from homeschool_planner.services.commitment_index import commitment_index_cache


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture(autouse=True)
def clear_commitment_index_cache():
    commitment_index_cache.clear()
    yield
    commitment_index_cache.clear()


@pytest.fixture
def child_id():
    return uuid4()
