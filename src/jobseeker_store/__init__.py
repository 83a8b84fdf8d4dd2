"""
Persistence for job seeker entities.
"""

from jobseeker_store.config import Settings, get_settings
from jobseeker_store.db import Database, JobSeekerRepository, JobSeekerStore, Repository
from jobseeker_store.exceptions import ConfigurationError, JobSeekerStoreError, StorageError
from jobseeker_store.schemas import JobSeeker

__all__ = [
    "ConfigurationError",
    "Database",
    "JobSeeker",
    "JobSeekerRepository",
    "JobSeekerStore",
    "JobSeekerStoreError",
    "Repository",
    "Settings",
    "StorageError",
    "get_settings",
]
