"""
Invitation endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from mission_control.core.database import get_db
from mission_control.core.dependencies import authorize, get_current_actor, require_role
from mission_control.core.errors import NotFoundError
from mission_control.models.invite import Invite
from mission_control.models.member import OrganizationMember, OrgRole
from mission_control.schemas.common import Actor, IdResponse
from mission_control.schemas.invite import (
    InviteAcceptResponse,
    InviteCreatedResponse,
    InviteCreateRequest,
    InviteResponse,
    InvitesListResponse,
)
from mission_control.services.invite_service import InviteService

router = APIRouter()


def get_invite_service(db: AsyncSession = Depends(get_db)) -> InviteService:
    return InviteService(db=db)


@router.get(
    "/workspaces/{workspace_id}/invites",
    response_model=InvitesListResponse,
    summary="List invites of a workspace",
)
async def list_invites(
    workspace_id: UUID,
    _: OrganizationMember = Depends(require_role(OrgRole.admin)),
    service: InviteService = Depends(get_invite_service),
) -> InvitesListResponse:
    invites = await service.get_invites(workspace_id)
    return InvitesListResponse(invites=invites, total=len(invites))


@router.post(
    "/workspaces/{workspace_id}/invites",
    response_model=InviteCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Invite someone by email",
)
async def create_invite(
    workspace_id: UUID,
    data: InviteCreateRequest,
    acting_member: OrganizationMember = Depends(require_role(OrgRole.admin)),
    current_actor: Actor = Depends(get_current_actor),
    service: InviteService = Depends(get_invite_service),
) -> InviteCreatedResponse:
    return await service.create_invite(workspace_id, data, current_actor, acting_member)


@router.get(
    "/invites/{token}",
    response_model=InviteResponse,
    summary="Look up an invite by token",
)
async def get_invite(
    token: str,
    _: Actor = Depends(get_current_actor),
    service: InviteService = Depends(get_invite_service),
) -> InviteResponse:
    return InviteResponse.model_validate(await service.get_by_token(token))


@router.post(
    "/invites/{token}/accept",
    response_model=InviteAcceptResponse,
    summary="Accept an invite as the current user",
)
async def accept_invite(
    token: str,
    current_actor: Actor = Depends(get_current_actor),
    service: InviteService = Depends(get_invite_service),
) -> InviteAcceptResponse:
    return await service.accept_invite(token, current_actor)


@router.delete(
    "/invites/{invite_id}",
    response_model=IdResponse,
    summary="Revoke an invite",
)
async def delete_invite(
    invite_id: UUID,
    current_actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    service: InviteService = Depends(get_invite_service),
) -> IdResponse:
    invite = await db.get(Invite, invite_id)
    if invite is None:
        raise NotFoundError("Invite", invite_id=str(invite_id))
    await authorize(db, invite.workspace_id, current_actor, OrgRole.admin)
    return IdResponse(id=await service.delete_invite(invite_id))
