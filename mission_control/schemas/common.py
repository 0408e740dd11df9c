"""
Shared schemas.
"""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, Field


class Actor(BaseModel):
    """The authenticated caller, as recorded on authored rows."""

    id: str = Field(min_length=1, max_length=255)
    name: str = Field(min_length=1, max_length=255)
    email: str | None = None


class IdResponse(BaseModel):
    """Response carrying the id of the affected record."""

    id: UUID
