"""
Organization member and board access endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from mission_control.core.database import get_db
from mission_control.core.dependencies import (
    authorize,
    get_current_actor,
    get_workspace_member,
    require_role,
)
from mission_control.models.member import OrganizationMember, OrgRole
from mission_control.schemas.common import Actor, IdResponse
from mission_control.schemas.member import (
    AccessCheckResponse,
    BoardAccessRequest,
    BoardAccessResponse,
    MemberCreateRequest,
    MemberResponse,
    MembersListResponse,
    MemberUpdateRequest,
)
from mission_control.services.member_service import MemberService

router = APIRouter()


def get_member_service(db: AsyncSession = Depends(get_db)) -> MemberService:
    return MemberService(db=db)


@router.get(
    "/workspaces/{workspace_id}/members",
    response_model=MembersListResponse,
    summary="List workspace members",
)
async def list_members(
    workspace_id: UUID,
    _: OrganizationMember = Depends(get_workspace_member),
    service: MemberService = Depends(get_member_service),
) -> MembersListResponse:
    members = await service.get_members(workspace_id)
    return MembersListResponse(
        members=[MemberResponse.model_validate(m) for m in members],
        total=len(members),
    )


@router.post(
    "/workspaces/{workspace_id}/members",
    response_model=MemberResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a member",
)
async def add_member(
    workspace_id: UUID,
    data: MemberCreateRequest,
    acting_member: OrganizationMember = Depends(require_role(OrgRole.admin)),
    service: MemberService = Depends(get_member_service),
) -> MemberResponse:
    member = await service.add_member(workspace_id, data, acting_member)
    return MemberResponse.model_validate(member)


@router.get(
    "/workspaces/{workspace_id}/members/access",
    response_model=AccessCheckResponse,
    summary="Check whether a user holds a role in the workspace",
)
async def check_access(
    workspace_id: UUID,
    user_id: str | None = Query(None, description="Defaults to the caller"),
    required_role: OrgRole | None = Query(None),
    member: OrganizationMember = Depends(get_workspace_member),
    service: MemberService = Depends(get_member_service),
) -> AccessCheckResponse:
    target = user_id or member.user_id
    return AccessCheckResponse(
        workspace_id=workspace_id,
        user_id=target,
        required_role=required_role,
        has_access=await service.has_access(workspace_id, target, required_role),
    )


@router.patch(
    "/members/{member_id}",
    response_model=MemberResponse,
    summary="Change a member's role or board flags",
)
async def update_member(
    member_id: UUID,
    data: MemberUpdateRequest,
    current_actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    service: MemberService = Depends(get_member_service),
) -> MemberResponse:
    acting_member = await _authorize_admin_for_member(member_id, current_actor, db, service)
    member = await service.update_member(member_id, data, acting_member)
    return MemberResponse.model_validate(member)


@router.delete(
    "/members/{member_id}",
    response_model=IdResponse,
    summary="Remove a member",
)
async def remove_member(
    member_id: UUID,
    current_actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    service: MemberService = Depends(get_member_service),
) -> IdResponse:
    acting_member = await _authorize_admin_for_member(member_id, current_actor, db, service)
    return IdResponse(id=await service.remove_member(member_id, acting_member))


@router.put(
    "/members/{member_id}/board-access",
    response_model=BoardAccessResponse,
    summary="Grant or change a member's access to one board",
)
async def set_board_access(
    member_id: UUID,
    data: BoardAccessRequest,
    current_actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    service: MemberService = Depends(get_member_service),
) -> BoardAccessResponse:
    await _authorize_admin_for_member(member_id, current_actor, db, service)
    return BoardAccessResponse.model_validate(await service.set_board_access(member_id, data))


async def _authorize_admin_for_member(
    member_id: UUID,
    current_actor: Actor,
    db: AsyncSession,
    service: MemberService,
) -> OrganizationMember:
    """Resolve the member's workspace and return the caller's admin-or-better membership."""
    member = await service.get_member(member_id)
    return await authorize(db, member.workspace_id, current_actor, OrgRole.admin)
