"""
Workspace schemas.

Request/response models for workspace lifecycle endpoints.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class WorkspaceCreateRequest(BaseModel):
    """Request body for POST /workspaces."""

    name: str = Field(min_length=1, max_length=100)
    slug: str = Field(min_length=1, max_length=50)
    color: str | None = Field(default=None, max_length=20)
    emoji: str | None = Field(default=None, max_length=16)
    description: str | None = None
    mission_statement: str | None = None
    budget: float | None = Field(default=None, ge=0)


class WorkspaceUpdateRequest(BaseModel):
    """Request body for PATCH /workspaces/{workspace_id}. The slug is immutable."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=100)
    color: str | None = Field(default=None, max_length=20)
    emoji: str | None = Field(default=None, max_length=16)
    description: str | None = None
    mission_statement: str | None = None
    budget: float | None = Field(default=None, ge=0)


class WorkspaceResponse(BaseModel):
    """Workspace detail response."""

    id: UUID
    name: str
    slug: str
    color: str
    emoji: str
    description: str | None
    mission_statement: str | None
    budget: float | None
    is_default: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class WorkspaceListResponse(BaseModel):
    workspaces: list[WorkspaceResponse]
    total: int


class WorkspaceDeletionReport(BaseModel):
    """Result of a workspace cascade delete, with per-table counts."""

    success: bool = True
    deleted_id: UUID
    deleted_data: dict[str, int]
    total_records_deleted: int


class OrphanSweepReport(BaseModel):
    deleted_data: dict[str, int]
    total_records_deleted: int
