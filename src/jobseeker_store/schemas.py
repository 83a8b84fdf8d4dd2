"""
Pydantic schemas for job seeker entities.
"""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field


class JobSeeker(BaseModel):
    """
    A job seeker as seen by callers of the store.

    Only the identifier and email are interpreted by the store; the rest of
    the profile travels in ``attributes`` and is persisted as-is.
    """

    id: UUID | None = Field(
        default=None,
        description="Unique identifier, None until the entity has been saved",
    )
    email: str = Field(..., description="Email address, compared verbatim by default")
    attributes: dict[str, Any] = Field(
        default_factory=dict,
        description="Free-form profile data (name, phone, location, ...)",
    )
