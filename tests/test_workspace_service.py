"""
Workspace lifecycle tests.

Verifies that:
- Slugs are validated, unique and immutable
- The workspace cap holds
- Exactly one workspace is the default at all times
- Deleting a workspace removes every row scoped to it, and nothing else
- The orphan sweep cleans rows whose workspace is gone
"""

import uuid

import pytest
from pydantic import ValidationError as SchemaValidationError
from sqlalchemy import delete, func, select

from mission_control.core.config import settings
from mission_control.core.errors import ConflictError, LimitExceededError, NotFoundError, ValidationError
from mission_control.models import (
    Anomaly,
    BoardAccess,
    Invite,
    InviteBoardAccess,
    Mention,
    OrganizationMember,
    OrgRole,
    PresenceIndicator,
    Setting,
    Task,
    TaskPattern,
    TaskSubscription,
    WikiComment,
    WikiPage,
    WikiPageHistory,
    Workspace,
)
from mission_control.schemas.invite import InviteBoardAccessItem, InviteCreateRequest
from mission_control.schemas.workspace import WorkspaceCreateRequest, WorkspaceUpdateRequest
from mission_control.services.invite_service import InviteService
from mission_control.services.wiki_service import WikiService
from mission_control.services.workspace_service import CASCADE_TARGETS, WorkspaceService


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def create_workspace(db, slug: str, owner=None) -> Workspace:
    return await WorkspaceService(db).create(
        WorkspaceCreateRequest(name=slug.title(), slug=slug), owner=owner
    )


async def default_ids(db) -> list:
    result = await db.execute(select(Workspace.id).where(Workspace.is_default.is_(True)))
    return list(result.scalars().all())


async def count_rows(db, model, *criteria) -> int:
    result = await db.execute(select(func.count()).select_from(model).where(*criteria))
    return result.scalar_one()


async def populate(db, workspace_id, owner) -> None:
    """Give a workspace wiki pages, comments, history, tasks, agent records, an invite and grants."""
    wiki = WikiService(db)
    dept = await wiki.create_department(workspace_id, "Engineering", owner)
    page = await wiki.create_page(workspace_id, dept, "Runbook", "", owner)
    await wiki.create_page(workspace_id, page, "Nested", "", owner)
    await wiki.update_page(page, "Runbook v2", "steps", owner)
    root = await wiki.add_comment(page, owner, "Question")
    await wiki.add_comment(page, owner, "Answer", parent_id=root)

    for n in range(3):
        db.add(Task(workspace_id=workspace_id, title=f"Task {n}"))

    db.add_all([
        Mention(
            workspace_id=workspace_id,
            mentioned_id="agent-1",
            mentioned_by="agent-2",
            context="task_comment",
            context_id="c-1",
        ),
        TaskSubscription(workspace_id=workspace_id, task_id=uuid.uuid4(), subscriber_id="agent-1"),
        PresenceIndicator(workspace_id=workspace_id, subject_id="agent-1", status="online"),
        TaskPattern(workspace_id=workspace_id, pattern="design>backend"),
        Anomaly(workspace_id=workspace_id, subject_id="agent-1", type="error_rate", message="spike"),
    ])

    await InviteService(db).create_invite(
        workspace_id,
        InviteCreateRequest(
            email=f"invitee-{workspace_id.hex[:6]}@example.com",
            role=OrgRole.member,
            board_access=[InviteBoardAccessItem(workspace_id=workspace_id, can_read=True, can_write=False)],
        ),
        owner,
    )
    await db.flush()


# ---------------------------------------------------------------------------
# 1. Create
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_first_workspace_is_default_and_seeded(db, owner):
    workspace = await create_workspace(db, "acme", owner=owner)

    assert workspace.is_default is True
    assert workspace.color == "#6366f1"
    assert workspace.emoji == "🚀"

    result = await db.execute(select(Setting).where(Setting.workspace_id == workspace.id))
    setting = result.scalar_one()
    assert (setting.key, setting.value) == ("taskCounter", "0")

    result = await db.execute(
        select(OrganizationMember).where(OrganizationMember.workspace_id == workspace.id)
    )
    member = result.scalar_one()
    assert member.user_id == owner.id
    assert member.role == OrgRole.owner


@pytest.mark.asyncio
async def test_later_workspaces_are_not_default(db):
    await create_workspace(db, "acme")
    second = await create_workspace(db, "beta")

    assert second.is_default is False
    assert len(await default_ids(db)) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("slug", ["Acme", "acme corp", "acme_corp", "ácme"])
async def test_invalid_slug_rejected(db, slug):
    with pytest.raises(ValidationError):
        await create_workspace(db, slug)
    assert await count_rows(db, Workspace) == 0


@pytest.mark.asyncio
async def test_duplicate_slug_conflicts(db):
    await create_workspace(db, "acme")
    with pytest.raises(ConflictError):
        await create_workspace(db, "acme")


@pytest.mark.asyncio
async def test_workspace_cap(db):
    existing = [await create_workspace(db, f"ws-{n}") for n in range(settings.MAX_WORKSPACES)]
    before = {w.id: (w.slug, w.is_default) for w in await WorkspaceService(db).get_all()}

    with pytest.raises(LimitExceededError):
        await create_workspace(db, "one-too-many")

    after = {w.id: (w.slug, w.is_default) for w in await WorkspaceService(db).get_all()}
    assert after == before
    assert len(after) == len(existing)


# ---------------------------------------------------------------------------
# 2. Read / Update
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_lookups(db):
    acme = await create_workspace(db, "acme")
    service = WorkspaceService(db)

    assert (await service.get_by_slug("acme")).id == acme.id
    assert (await service.get_default()).id == acme.id
    with pytest.raises(NotFoundError):
        await service.get_by_slug("nope")
    with pytest.raises(NotFoundError):
        await service.get_by_id(uuid.uuid4())


@pytest.mark.asyncio
async def test_get_default_without_workspaces(db):
    with pytest.raises(NotFoundError):
        await WorkspaceService(db).get_default()


@pytest.mark.asyncio
async def test_update_leaves_slug_unchanged(db):
    acme = await create_workspace(db, "acme")

    updated = await WorkspaceService(db).update(
        acme.id, WorkspaceUpdateRequest(name="Acme Corp", mission_statement="Ship it")
    )

    assert updated.slug == "acme"
    assert updated.name == "Acme Corp"
    assert updated.mission_statement == "Ship it"


def test_update_schema_has_no_slug():
    with pytest.raises(SchemaValidationError):
        WorkspaceUpdateRequest(slug="renamed")
    assert "slug" not in WorkspaceUpdateRequest.model_fields


# ---------------------------------------------------------------------------
# 3. Default
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_set_default_moves_the_flag(db):
    acme = await create_workspace(db, "acme")
    beta = await create_workspace(db, "beta")
    service = WorkspaceService(db)

    await service.set_default(beta.id)
    assert await default_ids(db) == [beta.id]

    await service.set_default(beta.id)
    assert await default_ids(db) == [beta.id]

    await service.set_default(acme.id)
    assert await default_ids(db) == [acme.id]


@pytest.mark.asyncio
async def test_default_is_unique_across_operations(db):
    service = WorkspaceService(db)
    acme = await create_workspace(db, "acme")
    beta = await create_workspace(db, "beta")
    gamma = await create_workspace(db, "gamma")

    await service.set_default(gamma.id)
    await service.remove(acme.id)
    await service.set_default(beta.id)
    await service.remove(gamma.id)

    assert await default_ids(db) == [beta.id]


# ---------------------------------------------------------------------------
# 4. Remove
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_remove_refuses_only_and_default_workspace(db):
    acme = await create_workspace(db, "acme")
    service = WorkspaceService(db)

    with pytest.raises(ConflictError):
        await service.remove(acme.id)

    await create_workspace(db, "beta")
    with pytest.raises(ConflictError):
        await service.remove(acme.id)

    with pytest.raises(NotFoundError):
        await service.remove(uuid.uuid4())


@pytest.mark.asyncio
async def test_remove_cascades_to_scoped_rows(db, owner):
    keep = await create_workspace(db, "keep", owner=owner)
    doomed = await create_workspace(db, "doomed", owner=owner)
    await populate(db, keep.id, owner)
    await populate(db, doomed.id, owner)

    report = await WorkspaceService(db).remove(doomed.id)

    assert report.success is True
    assert report.deleted_id == doomed.id
    assert report.deleted_data["wiki_pages"] == 3
    assert report.deleted_data["wiki_comments"] == 2
    assert report.deleted_data["wiki_page_history"] == 1
    assert report.deleted_data["tasks"] == 3
    assert report.deleted_data["settings"] == 1
    assert report.deleted_data["invites"] == 1
    assert report.deleted_data["invite_board_access"] == 1
    assert report.deleted_data["organization_members"] == 1
    for table in ("mentions", "task_subscriptions", "presence_indicators", "task_patterns", "anomalies"):
        assert report.deleted_data[table] == 1, table
    assert set(report.deleted_data) == {t.table_name for t in CASCADE_TARGETS}
    assert report.total_records_deleted == sum(report.deleted_data.values())

    assert await count_rows(db, Workspace, Workspace.id == doomed.id) == 0
    for target in CASCADE_TARGETS:
        assert await count_rows(db, target.model, target.model.workspace_id == doomed.id) == 0

    assert await count_rows(db, WikiPage, WikiPage.workspace_id == keep.id) == 3
    assert await count_rows(db, Task, Task.workspace_id == keep.id) == 3
    assert await count_rows(db, Anomaly, Anomaly.workspace_id == keep.id) == 1
    assert await count_rows(db, OrganizationMember, OrganizationMember.workspace_id == keep.id) == 1


@pytest.mark.asyncio
async def test_remove_drops_grants_pointing_at_or_held_in_workspace(db, owner):
    keep = await create_workspace(db, "keep", owner=owner)
    doomed = await create_workspace(db, "doomed", owner=owner)
    keep_member = (
        await db.execute(select(OrganizationMember).where(OrganizationMember.workspace_id == keep.id))
    ).scalar_one()
    doomed_member = (
        await db.execute(select(OrganizationMember).where(OrganizationMember.workspace_id == doomed.id))
    ).scalar_one()
    other_board = uuid.uuid4()
    db.add_all([
        BoardAccess(member_id=keep_member.id, workspace_id=doomed.id, can_read=True),
        BoardAccess(member_id=doomed_member.id, workspace_id=other_board, can_read=True),
        BoardAccess(member_id=keep_member.id, workspace_id=other_board, can_read=True),
    ])
    await db.flush()

    report = await WorkspaceService(db).remove(doomed.id)

    assert report.deleted_data["board_access"] == 2
    remaining = (await db.execute(select(BoardAccess))).scalars().all()
    assert [(g.member_id, g.workspace_id) for g in remaining] == [(keep_member.id, other_board)]


@pytest.mark.asyncio
async def test_remove_deletes_in_batches(db, owner, monkeypatch):
    monkeypatch.setattr(settings, "CASCADE_BATCH_SIZE", 2)
    await create_workspace(db, "keep")
    doomed = await create_workspace(db, "doomed")
    for n in range(7):
        db.add(Task(workspace_id=doomed.id, title=f"Task {n}"))
    await db.flush()

    report = await WorkspaceService(db).remove(doomed.id)

    assert report.deleted_data["tasks"] == 7
    assert await count_rows(db, Task) == 0


# ---------------------------------------------------------------------------
# 5. Orphan sweep
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_sweep_removes_rows_of_missing_workspaces(db, owner):
    keep = await create_workspace(db, "keep", owner=owner)
    gone = await create_workspace(db, "gone", owner=owner)
    await populate(db, keep.id, owner)
    await populate(db, gone.id, owner)
    db.add(Task(workspace_id=None, title="Unscoped legacy task"))
    await db.execute(delete(Workspace).where(Workspace.id == gone.id))
    await db.flush()

    report = await WorkspaceService(db).sweep_orphans()

    assert report.deleted_data["wiki_pages"] == 3
    assert report.deleted_data["organization_members"] == 1
    assert report.deleted_data["invite_board_access"] == 1
    assert report.total_records_deleted == sum(report.deleted_data.values())
    for model in (WikiPage, WikiComment, WikiPageHistory, Task, Setting, Invite, InviteBoardAccess):
        assert await count_rows(db, model, model.workspace_id == gone.id) == 0
    assert await count_rows(db, WikiPage, WikiPage.workspace_id == keep.id) == 3
    assert await count_rows(db, Task, Task.workspace_id.is_(None)) == 1

    again = await WorkspaceService(db).sweep_orphans()
    assert again.total_records_deleted == 0
