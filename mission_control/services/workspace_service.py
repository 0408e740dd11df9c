"""
Workspace business logic.

Handles workspace creation, the single-default rule and the cascading
delete. The cascade and the orphan sweep share one ordered list of
workspace-scoped tables so both always clean up the same data.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from sqlalchemy import and_, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from mission_control.core.config import settings
from mission_control.core.errors import (
    ConflictError,
    LimitExceededError,
    NotFoundError,
    ValidationError,
)
from mission_control.models import (
    Activity,
    Alert,
    AlertEvent,
    AlertRule,
    Anomaly,
    BoardAccess,
    CalendarEvent,
    Decision,
    Document,
    Epic,
    ExecutionLog,
    Goal,
    Invite,
    InviteBoardAccess,
    Mention,
    Message,
    Notification,
    OrganizationMember,
    OrgRole,
    PresenceIndicator,
    Setting,
    StrategicReport,
    Task,
    TaskComment,
    TaskPattern,
    TaskSubscription,
    ThreadSubscription,
    WikiComment,
    WikiPage,
    WikiPageHistory,
    Workspace,
)
from mission_control.models.setting import TASK_COUNTER_KEY
from mission_control.models.workspace import DEFAULT_COLOR, DEFAULT_EMOJI
from mission_control.schemas.common import Actor
from mission_control.schemas.workspace import (
    OrphanSweepReport,
    WorkspaceCreateRequest,
    WorkspaceDeletionReport,
    WorkspaceUpdateRequest,
)

logger = logging.getLogger(__name__)

SLUG_PATTERN = re.compile(r"^[a-z0-9-]+$")

# Builds the row filter for one workspace id column.
Matcher = Callable[[Any], Any]


@dataclass(frozen=True)
class CascadeTarget:
    """A workspace-scoped table and how its rows are matched."""

    model: type
    related: tuple[tuple[Any, Any, Any], ...] = field(default=())
    self_ref: str | None = None

    @property
    def table_name(self) -> str:
        return self.model.__tablename__

    def scope(self, match: Matcher):
        clause = match(self.model.workspace_id)
        for column, parent_id, parent_workspace_id in self.related:
            clause = or_(clause, column.in_(select(parent_id).where(match(parent_workspace_id))))
        return clause


# Deletion order: children before the rows they reference.
CASCADE_TARGETS: tuple[CascadeTarget, ...] = (
    CascadeTarget(Task),
    CascadeTarget(Epic),
    CascadeTarget(Goal),
    CascadeTarget(Message),
    CascadeTarget(Activity),
    CascadeTarget(Document),
    CascadeTarget(ThreadSubscription),
    CascadeTarget(ExecutionLog),
    CascadeTarget(Alert),
    CascadeTarget(AlertRule),
    CascadeTarget(AlertEvent),
    CascadeTarget(Decision),
    CascadeTarget(StrategicReport),
    CascadeTarget(CalendarEvent),
    CascadeTarget(TaskComment),
    CascadeTarget(Notification),
    CascadeTarget(Mention),
    CascadeTarget(TaskSubscription),
    CascadeTarget(PresenceIndicator),
    CascadeTarget(TaskPattern),
    CascadeTarget(Anomaly),
    CascadeTarget(Setting),
    CascadeTarget(WikiPageHistory),
    CascadeTarget(WikiComment, self_ref="parent_id"),
    CascadeTarget(WikiPage, self_ref="parent_id"),
    CascadeTarget(
        InviteBoardAccess,
        related=((InviteBoardAccess.invite_id, Invite.id, Invite.workspace_id),),
    ),
    CascadeTarget(Invite),
    CascadeTarget(
        BoardAccess,
        related=((BoardAccess.member_id, OrganizationMember.id, OrganizationMember.workspace_id),),
    ),
    CascadeTarget(OrganizationMember),
)


class WorkspaceService:
    """Handles all workspace operations."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # -----------------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------------

    async def get_all(self) -> list[Workspace]:
        result = await self.db.execute(select(Workspace).order_by(Workspace.name))
        return list(result.scalars().all())

    async def get_by_id(self, workspace_id: UUID) -> Workspace:
        workspace = await self.db.get(Workspace, workspace_id)
        if workspace is None:
            raise NotFoundError("Workspace", workspace_id=str(workspace_id))
        return workspace

    async def get_by_slug(self, slug: str) -> Workspace:
        result = await self.db.execute(select(Workspace).where(Workspace.slug == slug))
        workspace = result.scalar_one_or_none()
        if workspace is None:
            raise NotFoundError("Workspace", slug=slug)
        return workspace

    async def get_default(self) -> Workspace:
        workspace = await self._current_default()
        if workspace is None:
            raise NotFoundError("Default workspace")
        return workspace

    # -----------------------------------------------------------------------
    # Create / Update
    # -----------------------------------------------------------------------

    async def create(
        self, data: WorkspaceCreateRequest, owner: Actor | None = None
    ) -> Workspace:
        """
        Create a workspace.

        - Validates the slug format and uniqueness
        - Enforces the MAX_WORKSPACES cap
        - The first workspace becomes the default
        - Seeds the task counter setting
        - Adds ``owner`` (when given) as an owner member
        """
        if not SLUG_PATTERN.match(data.slug):
            raise ValidationError(
                "Slug must contain only lowercase letters, numbers, and hyphens",
                slug=data.slug,
            )

        existing = await self.db.execute(select(Workspace.id).where(Workspace.slug == data.slug))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(f'Slug "{data.slug}" is already taken', slug=data.slug)

        count = await self._count()
        if count >= settings.MAX_WORKSPACES:
            raise LimitExceededError(
                f"Maximum {settings.MAX_WORKSPACES} workspaces allowed",
                limit=settings.MAX_WORKSPACES,
            )

        is_default = count == 0
        if is_default:
            await self._clear_default()

        workspace = Workspace(
            name=data.name,
            slug=data.slug,
            color=data.color or DEFAULT_COLOR,
            emoji=data.emoji or DEFAULT_EMOJI,
            description=data.description,
            mission_statement=data.mission_statement,
            budget=data.budget,
            is_default=is_default,
        )
        self.db.add(workspace)
        await self.db.flush()

        self.db.add(Setting(workspace_id=workspace.id, key=TASK_COUNTER_KEY, value="0"))
        if owner is not None:
            self.db.add(
                OrganizationMember(
                    workspace_id=workspace.id,
                    user_id=owner.id,
                    user_email=owner.email,
                    user_name=owner.name,
                    role=OrgRole.owner,
                    all_boards_read=True,
                    all_boards_write=True,
                )
            )
        await self.db.flush()
        await self.db.refresh(workspace)

        logger.info(
            "Created workspace %s (slug=%s, default=%s)", workspace.id, workspace.slug, is_default
        )
        return workspace

    async def update(self, workspace_id: UUID, data: WorkspaceUpdateRequest) -> Workspace:
        workspace = await self.get_by_id(workspace_id)

        for key, value in data.model_dump(exclude_none=True).items():
            setattr(workspace, key, value)

        await self.db.flush()
        await self.db.refresh(workspace)
        logger.info("Updated workspace %s", workspace.id)
        return workspace

    async def set_default(self, workspace_id: UUID) -> Workspace:
        """Make ``workspace_id`` the default. Idempotent."""
        workspace = await self.get_by_id(workspace_id)
        if workspace.is_default:
            return workspace

        await self._clear_default()
        workspace.is_default = True
        await self.db.flush()

        logger.info("Workspace %s is now the default", workspace.id)
        return workspace

    # -----------------------------------------------------------------------
    # Delete
    # -----------------------------------------------------------------------

    async def remove(self, workspace_id: UUID) -> WorkspaceDeletionReport:
        """
        Delete a workspace and every row scoped to it.

        Refuses to delete the only workspace or the current default.
        Runs inside the caller's transaction.
        """
        workspace = await self.get_by_id(workspace_id)

        if await self._count() <= 1:
            raise ConflictError(
                "Cannot delete the only workspace", workspace_id=str(workspace_id)
            )
        if workspace.is_default:
            raise ConflictError(
                "Cannot delete the default workspace. Set another workspace as default first.",
                workspace_id=str(workspace_id),
            )

        deleted_data = await self._delete_scoped(lambda column: column == workspace_id)
        await self.db.delete(workspace)
        await self.db.flush()

        total = sum(deleted_data.values())
        logger.info(
            "Deleted workspace %s (%d scoped rows): %s",
            workspace_id,
            total,
            {name: count for name, count in deleted_data.items() if count},
        )
        return WorkspaceDeletionReport(
            deleted_id=workspace_id,
            deleted_data=deleted_data,
            total_records_deleted=total,
        )

    async def sweep_orphans(self) -> OrphanSweepReport:
        """Delete scoped rows whose workspace no longer exists."""
        live_ids = select(Workspace.id)
        deleted_data = await self._delete_scoped(
            lambda column: and_(column.is_not(None), column.not_in(live_ids))
        )
        await self.db.flush()

        total = sum(deleted_data.values())
        if total:
            logger.warning(
                "Orphan sweep removed %d rows: %s",
                total,
                {name: count for name, count in deleted_data.items() if count},
            )
        else:
            logger.info("Orphan sweep found nothing to remove")
        return OrphanSweepReport(deleted_data=deleted_data, total_records_deleted=total)

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    async def _count(self) -> int:
        result = await self.db.execute(select(func.count(Workspace.id)))
        return result.scalar_one()

    async def _current_default(self) -> Workspace | None:
        result = await self.db.execute(
            select(Workspace).where(Workspace.is_default.is_(True)).limit(1)
        )
        return result.scalar_one_or_none()

    async def _clear_default(self) -> None:
        current = await self._current_default()
        if current is not None:
            current.is_default = False
            await self.db.flush()

    async def _delete_scoped(self, match: Matcher) -> dict[str, int]:
        deleted: dict[str, int] = {}
        for target in CASCADE_TARGETS:
            deleted[target.table_name] = await self._delete_target(target, match)
        return deleted

    async def _delete_target(self, target: CascadeTarget, match: Matcher) -> int:
        model = target.model
        scope = target.scope(match)

        if target.self_ref is not None:
            await self.db.execute(
                update(model)
                .where(scope, getattr(model, target.self_ref).is_not(None))
                .values({target.self_ref: None})
            )

        total = 0
        while True:
            result = await self.db.execute(
                select(model.id).where(scope).limit(settings.CASCADE_BATCH_SIZE)
            )
            batch = list(result.scalars().all())
            if not batch:
                break
            await self.db.execute(delete(model).where(model.id.in_(batch)))
            total += len(batch)

        if total:
            logger.debug("Deleted %d rows from %s", total, target.table_name)
        return total
