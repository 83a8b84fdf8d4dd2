"""
Database module for persistence.

Provides SQLAlchemy models, engine management and the repository
pattern for job seeker persistence.
"""

from jobseeker_store.db.database import Database
from jobseeker_store.db.models import Base, JobSeekerModel
from jobseeker_store.db.repository import (
    EmailLookup,
    JobSeekerRepository,
    JobSeekerStore,
    Repository,
    SqlAlchemyRepository,
)

__all__ = [
    "Base",
    "Database",
    "JobSeekerModel",
    "EmailLookup",
    "JobSeekerRepository",
    "JobSeekerStore",
    "Repository",
    "SqlAlchemyRepository",
]
