"""
Workspace lifecycle endpoints.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from mission_control.core.database import get_db
from mission_control.core.dependencies import (
    authorize,
    get_current_actor,
    get_workspace_member,
    require_role,
)
from mission_control.models.member import OrganizationMember, OrgRole
from mission_control.schemas.common import Actor
from mission_control.schemas.workspace import (
    WorkspaceCreateRequest,
    WorkspaceDeletionReport,
    WorkspaceListResponse,
    WorkspaceResponse,
    WorkspaceUpdateRequest,
)
from mission_control.services.workspace_service import WorkspaceService

router = APIRouter()


def get_workspace_service(db: AsyncSession = Depends(get_db)) -> WorkspaceService:
    return WorkspaceService(db=db)


@router.get(
    "/workspaces",
    response_model=WorkspaceListResponse,
    summary="List all workspaces",
)
async def list_workspaces(
    _: Actor = Depends(get_current_actor),
    service: WorkspaceService = Depends(get_workspace_service),
) -> WorkspaceListResponse:
    workspaces = await service.get_all()
    return WorkspaceListResponse(
        workspaces=[WorkspaceResponse.model_validate(w) for w in workspaces],
        total=len(workspaces),
    )


@router.get(
    "/workspaces/default",
    response_model=WorkspaceResponse,
    summary="Get the default workspace",
)
async def get_default_workspace(
    _: Actor = Depends(get_current_actor),
    service: WorkspaceService = Depends(get_workspace_service),
) -> WorkspaceResponse:
    return WorkspaceResponse.model_validate(await service.get_default())


@router.get(
    "/workspaces/by-slug/{slug}",
    response_model=WorkspaceResponse,
    summary="Get a workspace by slug",
)
async def get_workspace_by_slug(
    slug: str,
    current_actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    service: WorkspaceService = Depends(get_workspace_service),
) -> WorkspaceResponse:
    workspace = await service.get_by_slug(slug)
    await authorize(db, workspace.id, current_actor)
    return WorkspaceResponse.model_validate(workspace)


@router.get(
    "/workspaces/{workspace_id}",
    response_model=WorkspaceResponse,
    summary="Get a workspace",
)
async def get_workspace(
    workspace_id: UUID,
    _: OrganizationMember = Depends(get_workspace_member),
    service: WorkspaceService = Depends(get_workspace_service),
) -> WorkspaceResponse:
    return WorkspaceResponse.model_validate(await service.get_by_id(workspace_id))


@router.post(
    "/workspaces",
    response_model=WorkspaceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a workspace",
)
async def create_workspace(
    data: WorkspaceCreateRequest,
    current_actor: Actor = Depends(get_current_actor),
    service: WorkspaceService = Depends(get_workspace_service),
) -> WorkspaceResponse:
    """Create a workspace. The caller becomes its owner."""
    return WorkspaceResponse.model_validate(await service.create(data, owner=current_actor))


@router.patch(
    "/workspaces/{workspace_id}",
    response_model=WorkspaceResponse,
    summary="Update workspace details",
)
async def update_workspace(
    workspace_id: UUID,
    data: WorkspaceUpdateRequest,
    _: OrganizationMember = Depends(require_role(OrgRole.admin)),
    service: WorkspaceService = Depends(get_workspace_service),
) -> WorkspaceResponse:
    return WorkspaceResponse.model_validate(await service.update(workspace_id, data))


@router.post(
    "/workspaces/{workspace_id}/default",
    response_model=WorkspaceResponse,
    summary="Make a workspace the default",
)
async def set_default_workspace(
    workspace_id: UUID,
    _: OrganizationMember = Depends(require_role(OrgRole.owner)),
    service: WorkspaceService = Depends(get_workspace_service),
) -> WorkspaceResponse:
    return WorkspaceResponse.model_validate(await service.set_default(workspace_id))


@router.delete(
    "/workspaces/{workspace_id}",
    response_model=WorkspaceDeletionReport,
    summary="Delete a workspace and all of its data",
)
async def delete_workspace(
    workspace_id: UUID,
    _: OrganizationMember = Depends(require_role(OrgRole.owner)),
    service: WorkspaceService = Depends(get_workspace_service),
) -> WorkspaceDeletionReport:
    return await service.remove(workspace_id)
