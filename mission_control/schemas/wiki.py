"""
Pydantic schemas for wiki pages, history and comments.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from mission_control.models.wiki import PageType


# ---------------------------------------------------------------------------
# Page requests
# ---------------------------------------------------------------------------

class DepartmentCreateRequest(BaseModel):
    """Request body for POST /workspaces/{workspace_id}/wiki/departments."""
    title: str = Field(..., min_length=1, max_length=500)
    emoji: str | None = Field(None, max_length=16)


class PageCreateRequest(BaseModel):
    """Request body for POST /workspaces/{workspace_id}/wiki/pages."""
    parent_id: uuid.UUID
    title: str = Field(..., min_length=1, max_length=500)
    content: str = ""
    emoji: str | None = Field(None, max_length=16)
    task_ids: list[uuid.UUID] | None = None
    epic_id: uuid.UUID | None = None


class PageUpdateRequest(BaseModel):
    """Request body for PATCH /wiki/pages/{page_id}."""
    title: str = Field(..., min_length=1, max_length=500)
    content: str
    emoji: str | None = Field(None, max_length=16)
    task_ids: list[uuid.UUID] | None = None
    epic_id: uuid.UUID | None = None


class PageMoveRequest(BaseModel):
    """Request body for POST /wiki/pages/{page_id}/move."""
    new_parent_id: uuid.UUID
    position: int = Field(..., ge=0)


class PageReorderRequest(BaseModel):
    """Request body for the children/department order endpoints."""
    ordered_ids: list[uuid.UUID]


class PageRestoreRequest(BaseModel):
    """Request body for POST /wiki/pages/{page_id}/restore."""
    history_id: uuid.UUID


# ---------------------------------------------------------------------------
# Page responses
# ---------------------------------------------------------------------------

class PageResponse(BaseModel):
    """Full page detail response."""
    id: uuid.UUID
    workspace_id: uuid.UUID | None
    title: str
    content: str
    emoji: str | None
    parent_id: uuid.UUID | None
    child_ids: list[uuid.UUID]
    position: int
    type: PageType
    task_ids: list[uuid.UUID] | None
    epic_id: uuid.UUID | None
    created_by: str
    created_by_name: str
    updated_by: str
    updated_by_name: str
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PageTreeItem(BaseModel):
    """Lightweight page for the sidebar tree."""
    id: uuid.UUID
    parent_id: uuid.UUID | None
    title: str
    emoji: str | None
    type: PageType
    position: int
    version: int
    updated_at: datetime
    children: list[PageTreeItem] = []

    model_config = {"from_attributes": True}


# Required for self-referential model
PageTreeItem.model_rebuild()


class PageTreeResponse(BaseModel):
    """Response for GET /workspaces/{workspace_id}/wiki/tree."""
    departments: list[PageTreeItem]
    total: int


class PageSearchResponse(BaseModel):
    results: list[PageResponse]
    total: int
    q: str


class PageHistoryResponse(BaseModel):
    """One saved snapshot of a page."""
    id: uuid.UUID
    page_id: uuid.UUID
    title: str
    content: str
    version: int
    saved_by: str
    saved_by_name: str
    saved_at: datetime

    model_config = {"from_attributes": True}


class PageHistoryListResponse(BaseModel):
    history: list[PageHistoryResponse]
    total: int


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------

class CommentCreateRequest(BaseModel):
    """Request body for POST /wiki/pages/{page_id}/comments."""
    content: str = Field(..., min_length=1)
    parent_id: uuid.UUID | None = None


class CommentUpdateRequest(BaseModel):
    """Request body for PATCH /wiki/comments/{comment_id}."""
    content: str = Field(..., min_length=1)


class CommentResponse(BaseModel):
    id: uuid.UUID
    page_id: uuid.UUID
    from_id: str
    from_name: str
    content: str
    parent_id: uuid.UUID | None
    reply_ids: list[uuid.UUID]
    created_at: datetime
    edited_at: datetime | None
    replies: list[CommentResponse] = []

    model_config = {"from_attributes": True}


CommentResponse.model_rebuild()


class CommentListResponse(BaseModel):
    """Root comments with their replies nested."""
    comments: list[CommentResponse]
    total: int
