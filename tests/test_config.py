"""
Tests for settings loading and store construction from settings.
"""

from uuid import uuid4

import pytest
from pydantic import ValidationError

from jobseeker_store.config import Settings, get_settings
from jobseeker_store.db import Database, JobSeekerStore
from jobseeker_store.schemas import JobSeeker


def test_defaults() -> None:
    settings = Settings()

    assert settings.id_strategy == "store"
    assert settings.email_match == "exact"
    assert settings.operation_timeout is None
    assert settings.database_url.startswith("postgresql+asyncpg://")


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("JOBSEEKER_ID_STRATEGY", "client")
    monkeypatch.setenv("JOBSEEKER_EMAIL_MATCH", "case_insensitive")
    monkeypatch.setenv("JOBSEEKER_OPERATION_TIMEOUT", "2.5")
    monkeypatch.setenv("JOBSEEKER_LOG_LEVEL", "DEBUG")

    settings = get_settings()

    assert settings.id_strategy == "client"
    assert settings.email_match == "case_insensitive"
    assert settings.operation_timeout == 2.5
    assert settings.log_level == "DEBUG"
    assert get_settings() is settings


def test_invalid_values_rejected(monkeypatch) -> None:
    monkeypatch.setenv("JOBSEEKER_EMAIL_MATCH", "fuzzy")

    with pytest.raises(ValidationError):
        Settings()


@pytest.mark.asyncio
async def test_store_from_settings(database_url: str) -> None:
    """Test that the store honours the id strategy and email match it was configured with."""
    settings = Settings(
        database_url=database_url,
        id_strategy="client",
        email_match="case_insensitive",
        operation_timeout=3.0,
    )
    database = Database.from_settings(settings)
    await database.create_tables()
    store = JobSeekerStore.from_settings(database, settings)

    try:
        with pytest.raises(ValueError):
            await store.save(JobSeeker(email="a@example.com"))

        await store.save(JobSeeker(id=uuid4(), email="Mixed@Example.com"))
        assert await store.exists_by_email("mixed@example.com")
    finally:
        await database.dispose()
