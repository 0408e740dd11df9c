"""
Member and board access schemas.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from mission_control.models.member import OrgRole


class MemberCreateRequest(BaseModel):
    """Request body for POST /workspaces/{workspace_id}/members."""

    user_id: str = Field(min_length=1, max_length=255)
    role: OrgRole
    all_boards_read: bool = False
    all_boards_write: bool = False
    user_email: str | None = Field(default=None, max_length=255)
    user_name: str | None = Field(default=None, max_length=255)


class MemberUpdateRequest(BaseModel):
    """Request body for PATCH /members/{member_id}."""

    role: OrgRole | None = None
    all_boards_read: bool | None = None
    all_boards_write: bool | None = None


class MemberResponse(BaseModel):
    id: UUID
    workspace_id: UUID
    user_id: str
    user_email: str | None
    user_name: str | None
    role: OrgRole
    all_boards_read: bool
    all_boards_write: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class MembersListResponse(BaseModel):
    """Response for GET /workspaces/{workspace_id}/members."""

    members: list[MemberResponse]
    total: int


class BoardAccessRequest(BaseModel):
    """Request body for PUT /members/{member_id}/board-access."""

    board_id: UUID
    can_read: bool
    can_write: bool


class BoardAccessResponse(BaseModel):
    id: UUID
    member_id: UUID
    workspace_id: UUID
    can_read: bool
    can_write: bool

    model_config = {"from_attributes": True}


class AccessCheckResponse(BaseModel):
    workspace_id: UUID
    user_id: str
    required_role: OrgRole | None
    has_access: bool
