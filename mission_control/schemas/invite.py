"""
Invite schemas.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from mission_control.models.member import OrgRole


class InviteBoardAccessItem(BaseModel):
    """One board grant attached to an invite."""

    workspace_id: UUID
    can_read: bool
    can_write: bool

    model_config = {"from_attributes": True}


class InviteCreateRequest(BaseModel):
    """Request body for POST /workspaces/{workspace_id}/invites."""

    email: str = Field(min_length=3, max_length=255)
    role: OrgRole
    all_boards_read: bool = False
    all_boards_write: bool = False
    board_access: list[InviteBoardAccessItem] = []


class InviteCreatedResponse(BaseModel):
    invite_id: UUID
    token: str


class InviteResponse(BaseModel):
    """Invite detail response."""

    id: UUID
    workspace_id: UUID
    email: str
    role: OrgRole
    token: str
    all_boards_read: bool
    all_boards_write: bool
    invited_by: str
    accepted_by: str | None
    accepted_at: datetime | None
    created_at: datetime
    board_access: list[InviteBoardAccessItem] = []

    model_config = {"from_attributes": True}


class InvitesListResponse(BaseModel):
    invites: list[InviteResponse]
    total: int


class InviteAcceptResponse(BaseModel):
    member_id: UUID
    workspace_id: UUID
