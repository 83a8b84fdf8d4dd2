"""
Repository pattern for database operations.

The contract is split into capabilities expressed as protocols:
``Repository`` carries the generic CRUD surface keyed by an identifier and
``EmailLookup`` the derived existence query. ``JobSeekerRepository``
composes both. ``SqlAlchemyRepository`` provides the CRUD half over an
async SQLAlchemy engine, and ``JobSeekerStore`` adds the email lookup.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    Callable,
    Generic,
    Iterable,
    Protocol,
    TypeVar,
    runtime_checkable,
)
from uuid import UUID, uuid4

from sqlalchemy import delete, exists, func, select
from sqlalchemy.exc import (
    DBAPIError,
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import AsyncSession

from jobseeker_store.config import EmailMatch, IdStrategy, Settings
from jobseeker_store.db.database import Database
from jobseeker_store.db.models import Base, JobSeekerModel
from jobseeker_store.exceptions import ConfigurationError, StorageError, StorageFailure
from jobseeker_store.schemas import JobSeeker

logger = logging.getLogger(__name__)

E = TypeVar("E")
K = TypeVar("K")
M = TypeVar("M", bound=Base)
R = TypeVar("R")


@runtime_checkable
class Repository(Protocol[E, K]):
    """CRUD access to entities of type E keyed by K."""

    async def save(self, entity: E, *, timeout: float | None = None) -> E: ...

    async def save_all(self, entities: Iterable[E], *, timeout: float | None = None) -> list[E]: ...

    async def find_by_id(self, entity_id: K, *, timeout: float | None = None) -> E | None: ...

    async def find_all(self, *, timeout: float | None = None) -> list[E]: ...

    async def find_all_by_ids(self, entity_ids: Iterable[K], *, timeout: float | None = None) -> list[E]: ...

    def stream_all(self) -> AsyncIterator[E]: ...

    async def exists_by_id(self, entity_id: K, *, timeout: float | None = None) -> bool: ...

    async def count(self, *, timeout: float | None = None) -> int: ...

    async def delete_by_id(self, entity_id: K, *, timeout: float | None = None) -> None: ...

    async def delete(self, entity: E, *, timeout: float | None = None) -> None: ...

    async def delete_all(self, *, timeout: float | None = None) -> int: ...


@runtime_checkable
class EmailLookup(Protocol):
    """Existence check by email address."""

    async def exists_by_email(self, email: str, *, timeout: float | None = None) -> bool: ...


@runtime_checkable
class JobSeekerRepository(Repository[JobSeeker, UUID], EmailLookup, Protocol):
    """Everything callers may do with stored job seekers."""


def classify_failure(exc: BaseException) -> StorageFailure:
    """Map a SQLAlchemy or driver exception to a storage failure reason."""
    if isinstance(exc, IntegrityError):
        return "constraint"
    if isinstance(exc, (OperationalError, InterfaceError, DisconnectionError, OSError)):
        return "connectivity"
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return "connectivity"
    return "database"


class SqlAlchemyRepository(ABC, Generic[E, M]):
    """
    Abstract base repository with common CRUD operations.

    Entities of type E are pydantic values carrying an ``id``; M is the
    mapped model storing them. Every operation runs in its own session from
    the shared ``Database``.
    """

    def __init__(
        self,
        database: Database,
        id_strategy: IdStrategy = "store",
        operation_timeout: float | None = None,
    ) -> None:
        """
        Initialize the repository.

        Args:
            database: Engine and session factory to run operations on.
            id_strategy: "store" assigns a uuid4 to entities saved without
                an id; "client" requires callers to supply one.
            operation_timeout: Default deadline in seconds applied when an
                operation is called without its own timeout.
        """
        if id_strategy not in ("store", "client"):
            raise ConfigurationError("id_strategy", f"unknown strategy {id_strategy!r}")
        self._database = database
        self._id_strategy = id_strategy
        self._operation_timeout = operation_timeout

    @property
    @abstractmethod
    def _model_class(self) -> type[M]:
        """Get the model class for this repository."""
        ...

    @abstractmethod
    def _to_entity(self, model: M) -> E:
        """Build the caller-facing value from a loaded row."""
        ...

    @abstractmethod
    def _new_model(self, entity_id: UUID, entity: E) -> M:
        """Build a new row for an entity that is not stored yet."""
        ...

    @abstractmethod
    def _apply(self, model: M, entity: E) -> None:
        """Copy mutable fields from an entity onto an existing row."""
        ...

    async def _run(
        self,
        operation: str,
        work: Callable[[], Awaitable[R]],
        timeout: float | None,
    ) -> R:
        """Run one operation under its deadline, translating failures to StorageError."""
        deadline = timeout if timeout is not None else self._operation_timeout
        try:
            if deadline is None:
                return await work()
            return await asyncio.wait_for(work(), timeout=deadline)
        except asyncio.TimeoutError as e:
            logger.warning(f"{type(self).__name__}.{operation} timed out after {deadline}s")
            raise StorageError(operation, "timeout", f"no result within {deadline}s") from e
        except (SQLAlchemyError, OSError) as e:
            raise self._storage_error(operation, e) from e

    def _storage_error(self, operation: str, exc: BaseException) -> StorageError:
        reason = classify_failure(exc)
        if reason == "constraint":
            logger.warning(f"{type(self).__name__}.{operation} rejected: {exc}")
        else:
            logger.error(f"{type(self).__name__}.{operation} failed: {exc}")
        return StorageError(operation, reason, str(exc))

    def _resolve_id(self, entity: Any) -> UUID:
        if entity.id is not None:
            return entity.id
        if self._id_strategy == "client":
            raise ValueError(
                f"{type(entity).__name__} has no id and identifiers are client-generated"
            )
        return uuid4()

    async def _upsert(self, session: AsyncSession, entity_id: UUID, entity: E) -> M:
        model = await session.get(self._model_class, entity_id)
        if model is None:
            model = self._new_model(entity_id, entity)
            session.add(model)
        else:
            self._apply(model, entity)
        await session.flush()
        return model

    async def save(self, entity: E, *, timeout: float | None = None) -> E:
        """
        Insert a new entity or update the stored one with the same id.

        Args:
            entity: The entity to persist. It is not mutated.
            timeout: Deadline in seconds, defaults to the store setting.

        Returns:
            The persisted entity, with its id populated.

        Raises:
            ValueError: If the entity has no id and ids are client-generated.
            StorageError: On constraint violation, connectivity failure or timeout.
        """
        entity_id = self._resolve_id(entity)

        async def work() -> E:
            async with self._database.session() as session:
                model = await self._upsert(session, entity_id, entity)
                return self._to_entity(model)

        saved = await self._run("save", work, timeout)
        logger.debug(f"Saved {self._model_class.__name__} {entity_id}")
        return saved

    async def save_all(self, entities: Iterable[E], *, timeout: float | None = None) -> list[E]:
        """
        Persist several entities in a single transaction.

        Either every entity is stored or, on failure, none is.

        Args:
            entities: Entities to persist.
            timeout: Deadline in seconds for the whole batch.

        Returns:
            The persisted entities in input order.
        """
        batch = [(self._resolve_id(entity), entity) for entity in entities]
        if not batch:
            return []

        async def work() -> list[E]:
            async with self._database.session() as session:
                models = [await self._upsert(session, entity_id, entity) for entity_id, entity in batch]
                return [self._to_entity(model) for model in models]

        saved = await self._run("save_all", work, timeout)
        logger.debug(f"Saved {len(saved)} {self._model_class.__name__} rows")
        return saved

    async def find_by_id(self, entity_id: UUID, *, timeout: float | None = None) -> E | None:
        """
        Get an entity by its ID.

        Args:
            entity_id: The entity's UUID.

        Returns:
            The entity if found, None otherwise.
        """

        async def work() -> E | None:
            async with self._database.session() as session:
                model = await session.get(self._model_class, entity_id)
                return self._to_entity(model) if model is not None else None

        return await self._run("find_by_id", work, timeout)

    async def find_all(self, *, timeout: float | None = None) -> list[E]:
        """Get every stored entity, in no particular order."""

        async def work() -> list[E]:
            async with self._database.session() as session:
                result = await session.scalars(select(self._model_class))
                return [self._to_entity(model) for model in result.all()]

        return await self._run("find_all", work, timeout)

    async def find_all_by_ids(self, entity_ids: Iterable[UUID], *, timeout: float | None = None) -> list[E]:
        """
        Get the entities whose ids are listed. Unknown ids are ignored.

        Args:
            entity_ids: UUIDs to look up.

        Returns:
            Matching entities, in no particular order.
        """
        ids = list(entity_ids)
        if not ids:
            return []

        async def work() -> list[E]:
            async with self._database.session() as session:
                stmt = select(self._model_class).where(self._model_class.id.in_(ids))
                result = await session.scalars(stmt)
                return [self._to_entity(model) for model in result.all()]

        return await self._run("find_all_by_ids", work, timeout)

    async def stream_all(self) -> AsyncIterator[E]:
        """
        Iterate over every stored entity without loading them all at once.

        The session stays open until the iteration finishes or is closed.
        """
        try:
            async with self._database.session() as session:
                result = await session.stream_scalars(select(self._model_class))
                async for model in result:
                    yield self._to_entity(model)
        except (SQLAlchemyError, OSError) as e:
            raise self._storage_error("stream_all", e) from e

    async def exists_by_id(self, entity_id: UUID, *, timeout: float | None = None) -> bool:
        """Check whether an entity with this id is stored."""

        async def work() -> bool:
            async with self._database.session() as session:
                stmt = select(exists().where(self._model_class.id == entity_id))
                return bool(await session.scalar(stmt))

        return await self._run("exists_by_id", work, timeout)

    async def count(self, *, timeout: float | None = None) -> int:
        """Count stored entities."""

        async def work() -> int:
            async with self._database.session() as session:
                stmt = select(func.count()).select_from(self._model_class)
                return int(await session.scalar(stmt) or 0)

        return await self._run("count", work, timeout)

    async def delete_by_id(self, entity_id: UUID, *, timeout: float | None = None) -> None:
        """
        Delete the entity with this id.

        Deleting an id that is not stored is not an error.
        """

        async def work() -> int:
            async with self._database.session() as session:
                result = await session.execute(
                    delete(self._model_class).where(self._model_class.id == entity_id)
                )
                return result.rowcount

        removed = await self._run("delete_by_id", work, timeout)
        logger.debug(f"delete_by_id {entity_id}: {removed} row(s) removed")

    async def delete(self, entity: E, *, timeout: float | None = None) -> None:
        """Delete a stored entity. Entities without an id are ignored."""
        entity_id = getattr(entity, "id", None)
        if entity_id is None:
            return
        await self.delete_by_id(entity_id, timeout=timeout)

    async def delete_all(self, *, timeout: float | None = None) -> int:
        """
        Delete every stored entity.

        Returns:
            Number of entities removed.
        """

        async def work() -> int:
            async with self._database.session() as session:
                result = await session.execute(delete(self._model_class))
                return result.rowcount

        removed = await self._run("delete_all", work, timeout)
        logger.info(f"Deleted all {self._model_class.__name__} rows ({removed})")
        return removed


class JobSeekerStore(SqlAlchemyRepository[JobSeeker, JobSeekerModel]):
    """Repository for job seeker operations."""

    def __init__(
        self,
        database: Database,
        id_strategy: IdStrategy = "store",
        email_match: EmailMatch = "exact",
        operation_timeout: float | None = None,
    ) -> None:
        super().__init__(database, id_strategy=id_strategy, operation_timeout=operation_timeout)
        if email_match not in ("exact", "case_insensitive"):
            raise ConfigurationError("email_match", f"unknown mode {email_match!r}")
        self._email_match = email_match

    @classmethod
    def from_settings(cls, database: Database, settings: Settings) -> "JobSeekerStore":
        """Create a store configured from application settings."""
        return cls(
            database,
            id_strategy=settings.id_strategy,
            email_match=settings.email_match,
            operation_timeout=settings.operation_timeout,
        )

    @property
    def _model_class(self) -> type[JobSeekerModel]:
        """Get the model class."""
        return JobSeekerModel

    def _to_entity(self, model: JobSeekerModel) -> JobSeeker:
        return JobSeeker(id=model.id, email=model.email, attributes=dict(model.attributes))

    def _new_model(self, entity_id: UUID, entity: JobSeeker) -> JobSeekerModel:
        return JobSeekerModel(id=entity_id, email=entity.email, attributes=dict(entity.attributes))

    def _apply(self, model: JobSeekerModel, entity: JobSeeker) -> None:
        model.email = entity.email
        model.attributes = dict(entity.attributes)

    async def exists_by_email(self, email: str, *, timeout: float | None = None) -> bool:
        """
        Check whether any stored job seeker has this email.

        Comparison is exact unless the store was configured with
        ``email_match="case_insensitive"``.

        Args:
            email: Address to look for.

        Returns:
            True if at least one job seeker matches.
        """
        if self._email_match == "case_insensitive":
            condition = func.lower(JobSeekerModel.email) == func.lower(email)
        else:
            condition = JobSeekerModel.email == email

        async def work() -> bool:
            async with self._database.session() as session:
                return bool(await session.scalar(select(exists().where(condition))))

        return await self._run("exists_by_email", work, timeout)
