"""
Wiki tree, page history and page comment endpoints.
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
from mission_control.models.wiki import WikiPage
from mission_control.schemas.common import Actor, IdResponse
from mission_control.schemas.wiki import (
    CommentCreateRequest,
    CommentListResponse,
    CommentUpdateRequest,
    DepartmentCreateRequest,
    PageCreateRequest,
    PageHistoryListResponse,
    PageHistoryResponse,
    PageMoveRequest,
    PageReorderRequest,
    PageResponse,
    PageRestoreRequest,
    PageSearchResponse,
    PageTreeResponse,
    PageUpdateRequest,
)
from mission_control.services.wiki_service import WikiService

router = APIRouter()


def get_wiki_service(db: AsyncSession = Depends(get_db)) -> WikiService:
    return WikiService(db=db)


# ---------------------------------------------------------------------------
# Workspace-level tree
# ---------------------------------------------------------------------------

@router.get(
    "/workspaces/{workspace_id}/wiki/tree",
    response_model=PageTreeResponse,
    summary="Get the department/page tree",
)
async def get_tree(
    workspace_id: UUID,
    _: OrganizationMember = Depends(get_workspace_member),
    service: WikiService = Depends(get_wiki_service),
) -> PageTreeResponse:
    departments = await service.get_tree(workspace_id)
    return PageTreeResponse(departments=departments, total=len(departments))


@router.get(
    "/workspaces/{workspace_id}/wiki/search",
    response_model=PageSearchResponse,
    summary="Search page titles and content",
)
async def search_pages(
    workspace_id: UUID,
    q: str = Query("", max_length=200),
    _: OrganizationMember = Depends(get_workspace_member),
    service: WikiService = Depends(get_wiki_service),
) -> PageSearchResponse:
    pages = await service.search(workspace_id, q)
    return PageSearchResponse(
        results=[PageResponse.model_validate(p) for p in pages],
        total=len(pages),
        q=q,
    )


@router.post(
    "/workspaces/{workspace_id}/wiki/departments",
    response_model=IdResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a department",
)
async def create_department(
    workspace_id: UUID,
    data: DepartmentCreateRequest,
    _: OrganizationMember = Depends(require_role(OrgRole.admin)),
    current_actor: Actor = Depends(get_current_actor),
    service: WikiService = Depends(get_wiki_service),
) -> IdResponse:
    page_id = await service.create_department(
        workspace_id, data.title, current_actor, emoji=data.emoji
    )
    return IdResponse(id=page_id)


@router.put(
    "/workspaces/{workspace_id}/wiki/departments/order",
    response_model=IdResponse,
    summary="Reorder departments",
)
async def reorder_departments(
    workspace_id: UUID,
    data: PageReorderRequest,
    _: OrganizationMember = Depends(require_role(OrgRole.admin)),
    service: WikiService = Depends(get_wiki_service),
) -> IdResponse:
    return IdResponse(id=await service.reorder_departments(workspace_id, data.ordered_ids))


@router.post(
    "/workspaces/{workspace_id}/wiki/pages",
    response_model=IdResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a page under a department or page",
)
async def create_page(
    workspace_id: UUID,
    data: PageCreateRequest,
    _: OrganizationMember = Depends(get_workspace_member),
    current_actor: Actor = Depends(get_current_actor),
    service: WikiService = Depends(get_wiki_service),
) -> IdResponse:
    page_id = await service.create_page(
        workspace_id,
        data.parent_id,
        data.title,
        data.content,
        current_actor,
        emoji=data.emoji,
        task_ids=data.task_ids,
        epic_id=data.epic_id,
    )
    return IdResponse(id=page_id)


# ---------------------------------------------------------------------------
# Pages
# ---------------------------------------------------------------------------

@router.get(
    "/wiki/pages/{page_id}",
    response_model=PageResponse,
    summary="Get a page",
)
async def get_page(
    page_id: UUID,
    current_actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    service: WikiService = Depends(get_wiki_service),
) -> PageResponse:
    page = await _get_authorized_page(page_id, current_actor, db, service)
    return PageResponse.model_validate(page)


@router.patch(
    "/wiki/pages/{page_id}",
    response_model=IdResponse,
    summary="Update page content (creates a history entry)",
)
async def update_page(
    page_id: UUID,
    data: PageUpdateRequest,
    current_actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    service: WikiService = Depends(get_wiki_service),
) -> IdResponse:
    await _get_authorized_page(page_id, current_actor, db, service)
    updated_id = await service.update_page(
        page_id,
        data.title,
        data.content,
        current_actor,
        emoji=data.emoji,
        task_ids=data.task_ids,
        epic_id=data.epic_id,
    )
    return IdResponse(id=updated_id)


@router.delete(
    "/wiki/pages/{page_id}",
    response_model=IdResponse,
    summary="Delete a page and its subtree",
)
async def delete_page(
    page_id: UUID,
    current_actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    service: WikiService = Depends(get_wiki_service),
) -> IdResponse:
    await _get_authorized_page(page_id, current_actor, db, service)
    return IdResponse(id=await service.delete_page(page_id))


@router.post(
    "/wiki/pages/{page_id}/move",
    response_model=IdResponse,
    summary="Move a page under a new parent",
)
async def move_page(
    page_id: UUID,
    data: PageMoveRequest,
    current_actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    service: WikiService = Depends(get_wiki_service),
) -> IdResponse:
    await _get_authorized_page(page_id, current_actor, db, service)
    return IdResponse(id=await service.move_page(page_id, data.new_parent_id, data.position))


@router.put(
    "/wiki/pages/{page_id}/children/order",
    response_model=IdResponse,
    summary="Reorder the children of a page",
)
async def reorder_children(
    page_id: UUID,
    data: PageReorderRequest,
    current_actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    service: WikiService = Depends(get_wiki_service),
) -> IdResponse:
    await _get_authorized_page(page_id, current_actor, db, service)
    return IdResponse(id=await service.reorder_pages(page_id, data.ordered_ids))


@router.get(
    "/wiki/pages/{page_id}/history",
    response_model=PageHistoryListResponse,
    summary="List saved versions of a page",
)
async def get_history(
    page_id: UUID,
    limit: int | None = Query(None, ge=1, le=100),
    current_actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    service: WikiService = Depends(get_wiki_service),
) -> PageHistoryListResponse:
    await _get_authorized_page(page_id, current_actor, db, service)
    history = await service.get_history(page_id, limit=limit)
    return PageHistoryListResponse(
        history=[PageHistoryResponse.model_validate(h) for h in history],
        total=len(history),
    )


@router.post(
    "/wiki/pages/{page_id}/restore",
    response_model=IdResponse,
    summary="Restore a saved version of a page",
)
async def restore_page(
    page_id: UUID,
    data: PageRestoreRequest,
    current_actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    service: WikiService = Depends(get_wiki_service),
) -> IdResponse:
    await _get_authorized_page(page_id, current_actor, db, service)
    return IdResponse(id=await service.restore_page(page_id, data.history_id, current_actor))


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------

@router.get(
    "/wiki/pages/{page_id}/comments",
    response_model=CommentListResponse,
    summary="List page comments with nested replies",
)
async def list_comments(
    page_id: UUID,
    current_actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    service: WikiService = Depends(get_wiki_service),
) -> CommentListResponse:
    await _get_authorized_page(page_id, current_actor, db, service)
    comments = await service.get_comments(page_id)
    return CommentListResponse(comments=comments, total=len(comments))


@router.post(
    "/wiki/pages/{page_id}/comments",
    response_model=IdResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Comment on a page or reply to a comment",
)
async def add_comment(
    page_id: UUID,
    data: CommentCreateRequest,
    current_actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    service: WikiService = Depends(get_wiki_service),
) -> IdResponse:
    await _get_authorized_page(page_id, current_actor, db, service)
    comment_id = await service.add_comment(
        page_id, current_actor, data.content, parent_id=data.parent_id
    )
    return IdResponse(id=comment_id)


@router.patch(
    "/wiki/comments/{comment_id}",
    response_model=IdResponse,
    summary="Edit a comment",
)
async def edit_comment(
    comment_id: UUID,
    data: CommentUpdateRequest,
    current_actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    service: WikiService = Depends(get_wiki_service),
) -> IdResponse:
    comment = await service.get_comment(comment_id)
    await authorize(db, comment.workspace_id, current_actor)
    return IdResponse(id=await service.edit_comment(comment_id, data.content))


@router.delete(
    "/wiki/comments/{comment_id}",
    response_model=IdResponse,
    summary="Delete a comment and its replies",
)
async def delete_comment(
    comment_id: UUID,
    current_actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    service: WikiService = Depends(get_wiki_service),
) -> IdResponse:
    comment = await service.get_comment(comment_id)
    await authorize(db, comment.workspace_id, current_actor)
    return IdResponse(id=await service.delete_comment(comment_id))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _get_authorized_page(
    page_id: UUID,
    current_actor: Actor,
    db: AsyncSession,
    service: WikiService,
) -> WikiPage:
    """Load a page and verify the caller is a member of its workspace."""
    page = await service.get_page(page_id)
    await authorize(db, page.workspace_id, current_actor)
    return page
