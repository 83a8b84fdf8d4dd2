"""
Shared fixtures: a throwaway SQLite database per test.
"""

from pathlib import Path
from typing import AsyncIterator

import pytest
import pytest_asyncio

from jobseeker_store.config import get_settings
from jobseeker_store.db import Database, JobSeekerStore


@pytest.fixture
def database_url(tmp_path: Path) -> str:
    """URL of an empty SQLite file under the test's tmp dir."""
    return f"sqlite+aiosqlite:///{tmp_path / 'jobseekers.db'}"


@pytest_asyncio.fixture
async def database(database_url: str) -> AsyncIterator[Database]:
    """Create a database with the job seeker tables in place."""
    db = Database(database_url)
    await db.create_tables()
    yield db
    await db.drop_tables()
    await db.dispose()


@pytest.fixture
def store(database: Database) -> JobSeekerStore:
    """Create a store with default settings."""
    return JobSeekerStore(database)


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
