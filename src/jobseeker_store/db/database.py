"""
Async engine and session management.

One ``Database`` owns the engine and its session factory. Each call to
``session()`` yields a fresh transactional ``AsyncSession`` that is
committed on success and rolled back on failure, so concurrent callers
never share a session.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import ArgumentError, InvalidRequestError, NoSuchModuleError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from jobseeker_store.config import Settings
from jobseeker_store.db.models import Base
from jobseeker_store.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class Database:
    """Owns an async engine and hands out transactional sessions."""

    def __init__(self, url: str, echo: bool = False) -> None:
        """
        Build the engine and session factory.

        Args:
            url: SQLAlchemy async connection string.
            echo: Log every SQL statement.

        Raises:
            ConfigurationError: If the URL is malformed or names a driver
                that is missing or not async-capable.
        """
        try:
            self._engine: AsyncEngine = create_async_engine(
                url,
                echo=echo,
                pool_pre_ping=True,
            )
        except (ArgumentError, InvalidRequestError, NoSuchModuleError, ImportError) as e:
            raise ConfigurationError("database_url", str(e)) from e

        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
        logger.debug(f"Database engine created for {self._engine.url.render_as_string(hide_password=True)}")

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Create a Database from application settings."""
        return cls(settings.database_url, echo=settings.database_echo)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Open a transactional session.

        Usage:
            async with database.session() as session:
                result = await session.execute(stmt)
        """
        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except BaseException:
                await session.rollback()
                raise

    async def create_tables(self) -> None:
        """Create all tables that do not exist yet."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created")

    async def drop_tables(self) -> None:
        """Drop all tables owned by this package."""
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.info("Database tables dropped")

    async def dispose(self) -> None:
        """Close pooled connections."""
        await self._engine.dispose()
        logger.debug("Database engine disposed")
