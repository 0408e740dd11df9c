"""
Wiki business logic.

Handles the page tree (departments and pages), version history and page
comments. The tree is stored in both directions (``parent_id`` on the child,
``child_ids`` on the parent); every structural change updates both sides in
the same transaction and rewrites the sibling positions it touches so that
positions always equal the index in ``child_ids``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from mission_control.core.config import settings
from mission_control.core.errors import NotFoundError, ValidationError
from mission_control.models.base import utcnow
from mission_control.models.wiki import PageType, WikiComment, WikiPage, WikiPageHistory
from mission_control.models.workspace import Workspace
from mission_control.schemas.common import Actor
from mission_control.schemas.wiki import CommentResponse, PageTreeItem

logger = logging.getLogger(__name__)


def _id_list(values: Iterable[UUID | str]) -> list[str]:
    return [str(value) for value in values]


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class WikiService:
    """Handles all wiki page, history and comment operations."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # -----------------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------------

    async def get_tree(self, workspace_id: UUID) -> list[PageTreeItem]:
        """Departments of a workspace with their pages nested by position."""
        result = await self.db.execute(
            select(WikiPage)
            .where(WikiPage.workspace_id == workspace_id)
            .order_by(WikiPage.position, WikiPage.created_at)
        )
        return self._build_tree(list(result.scalars().all()))

    async def get_page(self, page_id: UUID) -> WikiPage:
        return await self._get_page(page_id)

    async def get_history(
        self, page_id: UUID, limit: int | None = None
    ) -> list[WikiPageHistory]:
        """Saved snapshots of a page, newest version first."""
        await self._get_page(page_id)
        result = await self.db.execute(
            select(WikiPageHistory)
            .where(WikiPageHistory.page_id == page_id)
            .order_by(WikiPageHistory.version.desc(), WikiPageHistory.saved_at.desc())
            .limit(limit or settings.WIKI_HISTORY_DEFAULT_LIMIT)
        )
        return list(result.scalars().all())

    async def get_comments(self, page_id: UUID) -> list[CommentResponse]:
        """Root comments oldest first, replies nested in ``reply_ids`` order."""
        await self._get_page(page_id)
        result = await self.db.execute(
            select(WikiComment)
            .where(WikiComment.page_id == page_id)
            .order_by(WikiComment.created_at)
        )
        comments = list(result.scalars().all())
        by_id = {str(comment.id): comment for comment in comments}

        def build(comment: WikiComment) -> CommentResponse:
            replies = [build(by_id[rid]) for rid in comment.reply_ids if rid in by_id]
            return CommentResponse.model_validate(comment).model_copy(
                update={"replies": replies}
            )

        return [build(comment) for comment in comments if comment.parent_id is None]

    async def get_comment(self, comment_id: UUID) -> WikiComment:
        comment = await self.db.get(WikiComment, comment_id)
        if comment is None:
            raise NotFoundError("Comment", comment_id=str(comment_id))
        return comment

    async def search(self, workspace_id: UUID, query: str) -> list[WikiPage]:
        """Case-insensitive substring search over titles and content."""
        if not query or not query.strip():
            return []

        pattern = f"%{_escape_like(query.strip())}%"
        result = await self.db.execute(
            select(WikiPage)
            .where(
                WikiPage.workspace_id == workspace_id,
                or_(
                    WikiPage.title.ilike(pattern, escape="\\"),
                    WikiPage.content.ilike(pattern, escape="\\"),
                ),
            )
            .order_by(WikiPage.updated_at.desc())
            .limit(settings.WIKI_SEARCH_LIMIT)
        )
        return list(result.scalars().all())

    # -----------------------------------------------------------------------
    # Pages: create
    # -----------------------------------------------------------------------

    async def create_department(
        self,
        workspace_id: UUID,
        title: str,
        actor: Actor,
        emoji: str | None = None,
    ) -> UUID:
        """Create a root page. It is ranked after the existing departments."""
        await self._ensure_workspace(workspace_id)
        position = await self._count_departments(workspace_id)

        page = WikiPage(
            workspace_id=workspace_id,
            title=title,
            content="",
            emoji=emoji,
            parent_id=None,
            child_ids=[],
            position=position,
            type=PageType.department,
            created_by=actor.id,
            created_by_name=actor.name,
            updated_by=actor.id,
            updated_by_name=actor.name,
            version=1,
        )
        self.db.add(page)
        await self.db.flush()

        logger.info("Created department %s in workspace %s", page.id, workspace_id)
        return page.id

    async def create_page(
        self,
        workspace_id: UUID,
        parent_id: UUID,
        title: str,
        content: str,
        actor: Actor,
        emoji: str | None = None,
        task_ids: list[UUID] | None = None,
        epic_id: UUID | None = None,
    ) -> UUID:
        """Create a page as the last child of ``parent_id``."""
        parent = await self._get_page(parent_id, workspace_id=workspace_id, resource="Parent page")

        page = WikiPage(
            workspace_id=workspace_id,
            title=title,
            content=content,
            emoji=emoji,
            parent_id=parent.id,
            child_ids=[],
            position=len(parent.child_ids),
            type=PageType.page,
            task_ids=_id_list(task_ids) if task_ids is not None else None,
            epic_id=epic_id,
            created_by=actor.id,
            created_by_name=actor.name,
            updated_by=actor.id,
            updated_by_name=actor.name,
            version=1,
        )
        self.db.add(page)
        await self.db.flush()

        parent.child_ids = [*parent.child_ids, str(page.id)]
        await self.db.flush()

        logger.info("Created page %s under %s", page.id, parent.id)
        return page.id

    # -----------------------------------------------------------------------
    # Pages: content and history
    # -----------------------------------------------------------------------

    async def update_page(
        self,
        page_id: UUID,
        title: str,
        content: str,
        actor: Actor,
        emoji: str | None = None,
        task_ids: list[UUID] | None = None,
        epic_id: UUID | None = None,
    ) -> UUID:
        """Snapshot the current state, then write the new content."""
        page = await self._get_page(page_id)
        self._snapshot(page, actor)
        await self.db.flush()

        page.title = title
        page.content = content
        if emoji is not None:
            page.emoji = emoji
        if task_ids is not None:
            page.task_ids = _id_list(task_ids)
        if epic_id is not None:
            page.epic_id = epic_id
        self._touch(page, actor)
        await self.db.flush()

        logger.info("Updated page %s to version %d", page.id, page.version)
        return page.id

    async def restore_page(self, page_id: UUID, history_id: UUID, actor: Actor) -> UUID:
        """Bring back a saved snapshot as a new version."""
        page = await self._get_page(page_id)
        entry = await self.db.get(WikiPageHistory, history_id)
        if entry is None or entry.page_id != page.id:
            raise NotFoundError("History entry", history_id=str(history_id))

        self._snapshot(page, actor)
        await self.db.flush()

        page.title = entry.title
        page.content = entry.content
        self._touch(page, actor)
        await self.db.flush()

        logger.info(
            "Restored page %s from version %d as version %d",
            page.id,
            entry.version,
            page.version,
        )
        return page.id

    # -----------------------------------------------------------------------
    # Pages: structure
    # -----------------------------------------------------------------------

    async def delete_page(self, page_id: UUID) -> UUID:
        """Delete a page, its whole subtree, and their comments and history."""
        page = await self._get_page(page_id)
        workspace_id = page.workspace_id
        was_department = page.parent_id is None

        removed = await self._delete_subtree(page, renumber_parent=True)
        if was_department:
            await self._renumber_departments(workspace_id)
        await self.db.flush()

        logger.info("Deleted page %s (%d page(s) removed)", page_id, removed)
        return page_id

    async def move_page(self, page_id: UUID, new_parent_id: UUID, position: int) -> UUID:
        """
        Reparent a page and insert it at ``position`` among its new siblings.

        Positions past the end append. Siblings on both sides are renumbered.
        """
        page = await self._get_page(page_id)
        new_parent = await self._get_page(new_parent_id, resource="New parent page")

        if new_parent.workspace_id != page.workspace_id:
            raise ValidationError(
                "Pages can only be moved within their workspace",
                page_id=str(page_id),
                new_parent_id=str(new_parent_id),
            )
        if new_parent.id == page.id or await self._is_descendant(new_parent, page.id):
            raise ValidationError(
                "A page cannot be moved under itself or one of its descendants",
                page_id=str(page_id),
                new_parent_id=str(new_parent_id),
            )

        was_department = page.parent_id is None
        if page.parent_id is not None:
            old_parent = await self.db.get(WikiPage, page.parent_id)
            if old_parent is not None:
                await self._set_children(
                    old_parent, [cid for cid in old_parent.child_ids if cid != str(page.id)]
                )

        siblings = [cid for cid in new_parent.child_ids if cid != str(page.id)]
        siblings.insert(min(position, len(siblings)), str(page.id))

        page.parent_id = new_parent.id
        page.type = PageType.page
        await self._set_children(new_parent, siblings)
        if was_department:
            # The department query must not see the moved page any more
            await self.db.flush()
            await self._renumber_departments(page.workspace_id)
        await self.db.flush()

        logger.info("Moved page %s under %s at position %d", page.id, new_parent.id, page.position)
        return page.id

    async def reorder_pages(self, parent_id: UUID, ordered_child_ids: list[UUID]) -> UUID:
        """Replace the order of a parent's children. Membership must not change."""
        parent = await self._get_page(parent_id, resource="Parent page")
        ordered = _id_list(ordered_child_ids)
        if len(set(ordered)) != len(ordered) or set(ordered) != set(parent.child_ids):
            raise ValidationError(
                "Ordered ids must be a permutation of the current children",
                parent_id=str(parent_id),
                expected=len(parent.child_ids),
                received=len(ordered),
            )

        await self._set_children(parent, ordered)
        await self.db.flush()
        return parent.id

    async def reorder_departments(
        self, workspace_id: UUID, ordered_department_ids: list[UUID]
    ) -> UUID:
        departments = await self._list_departments(workspace_id)
        ordered = _id_list(ordered_department_ids)
        current = {str(dept.id): dept for dept in departments}
        if len(set(ordered)) != len(ordered) or set(ordered) != set(current):
            raise ValidationError(
                "Ordered ids must be a permutation of the current departments",
                workspace_id=str(workspace_id),
                expected=len(current),
                received=len(ordered),
            )

        for index, dept_id in enumerate(ordered):
            current[dept_id].position = index
        await self.db.flush()
        return workspace_id

    # -----------------------------------------------------------------------
    # Comments
    # -----------------------------------------------------------------------

    async def add_comment(
        self,
        page_id: UUID,
        actor: Actor,
        content: str,
        parent_id: UUID | None = None,
    ) -> UUID:
        page = await self._get_page(page_id)

        parent: WikiComment | None = None
        if parent_id is not None:
            parent = await self.db.get(WikiComment, parent_id)
            if parent is None or parent.page_id != page.id:
                raise NotFoundError("Parent comment", comment_id=str(parent_id))

        comment = WikiComment(
            workspace_id=page.workspace_id,
            page_id=page.id,
            from_id=actor.id,
            from_name=actor.name,
            content=content,
            parent_id=parent_id,
            reply_ids=[],
        )
        self.db.add(comment)
        await self.db.flush()

        if parent is not None:
            parent.reply_ids = [*parent.reply_ids, str(comment.id)]
            await self.db.flush()

        return comment.id

    async def edit_comment(self, comment_id: UUID, content: str) -> UUID:
        comment = await self.get_comment(comment_id)
        comment.content = content
        comment.edited_at = utcnow()
        await self.db.flush()
        return comment.id

    async def delete_comment(self, comment_id: UUID) -> UUID:
        comment = await self.get_comment(comment_id)
        removed = await self._delete_comment_tree(comment)
        logger.info("Deleted comment %s (%d comment(s) removed)", comment_id, removed)
        return comment_id

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    async def _ensure_workspace(self, workspace_id: UUID) -> None:
        if await self.db.get(Workspace, workspace_id) is None:
            raise NotFoundError("Workspace", workspace_id=str(workspace_id))

    async def _get_page(
        self,
        page_id: UUID,
        workspace_id: UUID | None = None,
        resource: str = "Page",
    ) -> WikiPage:
        page = await self.db.get(WikiPage, page_id)
        if page is None or (workspace_id is not None and page.workspace_id != workspace_id):
            raise NotFoundError(resource, page_id=str(page_id))
        return page

    def _department_filter(self, workspace_id: UUID | None):
        return and_(
            WikiPage.workspace_id == workspace_id,
            WikiPage.type == PageType.department,
            WikiPage.parent_id.is_(None),
        )

    async def _count_departments(self, workspace_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count(WikiPage.id)).where(self._department_filter(workspace_id))
        )
        return result.scalar_one()

    async def _list_departments(self, workspace_id: UUID | None) -> list[WikiPage]:
        result = await self.db.execute(
            select(WikiPage)
            .where(self._department_filter(workspace_id))
            .order_by(WikiPage.position, WikiPage.created_at)
        )
        return list(result.scalars().all())

    async def _renumber_departments(self, workspace_id: UUID | None) -> None:
        for index, dept in enumerate(await self._list_departments(workspace_id)):
            dept.position = index

    async def _set_children(self, parent: WikiPage, child_ids: list[str]) -> None:
        """Store the child order on the parent and mirror it into positions."""
        parent.child_ids = list(child_ids)
        if not child_ids:
            return
        result = await self.db.execute(
            select(WikiPage).where(WikiPage.id.in_([UUID(cid) for cid in child_ids]))
        )
        children = {str(child.id): child for child in result.scalars().all()}
        for index, child_id in enumerate(child_ids):
            child = children.get(child_id)
            if child is not None:
                child.position = index

    async def _is_descendant(self, candidate: WikiPage, ancestor_id: UUID) -> bool:
        seen: set[UUID] = set()
        current_id = candidate.parent_id
        while current_id is not None and current_id not in seen:
            if current_id == ancestor_id:
                return True
            seen.add(current_id)
            current = await self.db.get(WikiPage, current_id)
            current_id = current.parent_id if current is not None else None
        return False

    async def _delete_subtree(self, page: WikiPage, renumber_parent: bool) -> int:
        """Post-order delete. Returns the number of pages removed."""
        removed = 0
        for child_id in list(page.child_ids):
            child = await self.db.get(WikiPage, UUID(child_id))
            if child is None:
                raise NotFoundError("Page", page_id=child_id)
            removed += await self._delete_subtree(child, renumber_parent=False)

        if page.parent_id is not None:
            parent = await self.db.get(WikiPage, page.parent_id)
            if parent is not None:
                remaining = [cid for cid in parent.child_ids if cid != str(page.id)]
                if renumber_parent:
                    await self._set_children(parent, remaining)
                else:
                    parent.child_ids = remaining

        await self.db.execute(delete(WikiComment).where(WikiComment.page_id == page.id))
        await self.db.execute(delete(WikiPageHistory).where(WikiPageHistory.page_id == page.id))
        await self.db.delete(page)
        await self.db.flush()
        return removed + 1

    async def _delete_comment_tree(self, comment: WikiComment) -> int:
        if comment.parent_id is not None:
            parent = await self.db.get(WikiComment, comment.parent_id)
            if parent is not None:
                parent.reply_ids = [rid for rid in parent.reply_ids if rid != str(comment.id)]

        removed = 0
        for reply_id in list(comment.reply_ids):
            reply = await self.db.get(WikiComment, UUID(reply_id))
            if reply is None:
                raise NotFoundError("Comment", comment_id=reply_id)
            removed += await self._delete_comment_tree(reply)

        await self.db.delete(comment)
        await self.db.flush()
        return removed + 1

    def _snapshot(self, page: WikiPage, actor: Actor) -> None:
        self.db.add(
            WikiPageHistory(
                workspace_id=page.workspace_id,
                page_id=page.id,
                title=page.title,
                content=page.content,
                version=page.version,
                saved_by=actor.id,
                saved_by_name=actor.name,
                saved_at=utcnow(),
            )
        )

    @staticmethod
    def _touch(page: WikiPage, actor: Actor) -> None:
        page.updated_by = actor.id
        page.updated_by_name = actor.name
        page.updated_at = utcnow()
        page.version = page.version + 1

    def _build_tree(self, pages: list[WikiPage]) -> list[PageTreeItem]:
        """Build nested tree from a flat, position-ordered page list."""
        items = {page.id: PageTreeItem.model_validate(page) for page in pages}
        roots: list[PageTreeItem] = []

        for page in pages:
            item = items[page.id]
            if page.parent_id is None:
                if page.type == PageType.department:
                    roots.append(item)
            elif page.parent_id in items:
                items[page.parent_id].children.append(item)

        return roots
