"""
Wiki tree tests.

Verifies that:
- parent_id and child_ids always agree, and positions match child order
- Moves insert at the requested position and refuse cycles
- Deleting a page removes its subtree with comments and history
- Every update bumps the version and snapshots the previous state
- Comment threads nest replies and delete them with their parent
"""

import uuid

import pytest
from sqlalchemy import func, select

from mission_control.core.errors import NotFoundError, ValidationError
from mission_control.models import PageType, WikiComment, WikiPage, WikiPageHistory
from mission_control.schemas.common import Actor
from mission_control.schemas.workspace import WorkspaceCreateRequest
from mission_control.services.wiki_service import WikiService
from mission_control.services.workspace_service import WorkspaceService


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def page(db, page_id) -> WikiPage:
    result = await db.execute(select(WikiPage).where(WikiPage.id == page_id))
    return result.scalar_one()


async def count_rows(db, model, *criteria) -> int:
    result = await db.execute(select(func.count()).select_from(model).where(*criteria))
    return result.scalar_one()


async def assert_tree_consistent(db, workspace_id) -> None:
    """Every child link has a matching parent link and positions are dense."""
    result = await db.execute(select(WikiPage).where(WikiPage.workspace_id == workspace_id))
    pages = {str(p.id): p for p in result.scalars().all()}

    for p in pages.values():
        for index, child_id in enumerate(p.child_ids):
            child = pages[child_id]
            assert child.parent_id == p.id
            assert child.position == index

        occurrences = sum(other.child_ids.count(str(p.id)) for other in pages.values())
        assert occurrences == (0 if p.parent_id is None else 1)

    departments = sorted(
        (p for p in pages.values() if p.parent_id is None), key=lambda p: p.position
    )
    assert [d.position for d in departments] == list(range(len(departments)))


async def build_tree(service: WikiService, workspace_id, actor: Actor, *titles: str):
    """Create a department with one page per title under it."""
    dept_id = await service.create_department(workspace_id, "Engineering", actor)
    page_ids = [
        await service.create_page(workspace_id, dept_id, title, "", actor) for title in titles
    ]
    return dept_id, page_ids


# ---------------------------------------------------------------------------
# 1. Creation
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_departments_are_ranked_in_creation_order(db, workspace, owner):
    service = WikiService(db)
    first = await service.create_department(workspace.id, "Engineering", owner, emoji="🛠")
    second = await service.create_department(workspace.id, "Sales", owner)

    first_page = await page(db, first)
    assert first_page.type == PageType.department
    assert first_page.parent_id is None
    assert first_page.position == 0
    assert first_page.version == 1
    assert first_page.created_by == owner.id
    assert first_page.created_by_name == owner.name
    assert (await page(db, second)).position == 1


@pytest.mark.asyncio
async def test_create_department_in_missing_workspace(db, owner):
    with pytest.raises(NotFoundError):
        await WikiService(db).create_department(uuid.uuid4(), "Ghost", owner)


@pytest.mark.asyncio
async def test_create_page_appends_to_parent(db, workspace, owner):
    service = WikiService(db)
    dept_id, (a, b) = await build_tree(service, workspace.id, owner, "A", "B")

    dept = await page(db, dept_id)
    assert dept.child_ids == [str(a), str(b)]
    assert (await page(db, a)).position == 0
    assert (await page(db, b)).position == 1
    assert (await page(db, b)).type == PageType.page
    await assert_tree_consistent(db, workspace.id)


@pytest.mark.asyncio
async def test_create_page_requires_parent_in_same_workspace(db, workspace, owner):
    service = WikiService(db)
    other = await WorkspaceService(db).create(WorkspaceCreateRequest(name="Beta", slug="beta"))
    foreign_dept = await service.create_department(other.id, "Foreign", owner)

    with pytest.raises(NotFoundError):
        await service.create_page(workspace.id, foreign_dept, "Stray", "", owner)


@pytest.mark.asyncio
async def test_positions_stay_unique_after_delete_and_recreate(db, workspace, owner):
    service = WikiService(db)
    dept_id, (a, b) = await build_tree(service, workspace.id, owner, "A", "B")

    await service.delete_page(a)
    c = await service.create_page(workspace.id, dept_id, "C", "", owner)

    assert (await page(db, b)).position == 0
    assert (await page(db, c)).position == 1
    await assert_tree_consistent(db, workspace.id)


# ---------------------------------------------------------------------------
# 2. Moving and reordering
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_and_reparent_scenario(db, workspace, owner):
    service = WikiService(db)
    dept_id, (a, b) = await build_tree(service, workspace.id, owner, "A", "B")

    await service.move_page(a, b, 0)

    assert (await page(db, b)).child_ids == [str(a)]
    assert (await page(db, dept_id)).child_ids == [str(b)]
    assert (await page(db, a)).parent_id == b
    assert (await page(db, b)).position == 0
    await assert_tree_consistent(db, workspace.id)


@pytest.mark.asyncio
async def test_move_within_parent_shifts_siblings(db, workspace, owner):
    service = WikiService(db)
    dept_id, (a, b, c) = await build_tree(service, workspace.id, owner, "A", "B", "C")

    await service.move_page(c, dept_id, 0)

    assert (await page(db, dept_id)).child_ids == [str(c), str(a), str(b)]
    await assert_tree_consistent(db, workspace.id)


@pytest.mark.asyncio
async def test_move_past_end_appends(db, workspace, owner):
    service = WikiService(db)
    dept_id, (a, b) = await build_tree(service, workspace.id, owner, "A", "B")
    other_dept = await service.create_department(workspace.id, "Ops", owner)
    x = await service.create_page(workspace.id, other_dept, "X", "", owner)

    await service.move_page(a, other_dept, 99)

    assert (await page(db, other_dept)).child_ids == [str(x), str(a)]
    assert (await page(db, a)).position == 1
    assert (await page(db, dept_id)).child_ids == [str(b)]
    assert (await page(db, b)).position == 0
    await assert_tree_consistent(db, workspace.id)


@pytest.mark.asyncio
async def test_move_into_own_subtree_is_rejected(db, workspace, owner):
    service = WikiService(db)
    dept_id, (a,) = await build_tree(service, workspace.id, owner, "A")
    child = await service.create_page(workspace.id, a, "Child", "", owner)
    grandchild = await service.create_page(workspace.id, child, "Grandchild", "", owner)

    with pytest.raises(ValidationError):
        await service.move_page(a, a, 0)
    with pytest.raises(ValidationError):
        await service.move_page(a, grandchild, 0)

    assert (await page(db, a)).parent_id == dept_id
    await assert_tree_consistent(db, workspace.id)


@pytest.mark.asyncio
async def test_moved_department_becomes_page(db, workspace, owner):
    service = WikiService(db)
    first = await service.create_department(workspace.id, "First", owner)
    second = await service.create_department(workspace.id, "Second", owner)
    third = await service.create_department(workspace.id, "Third", owner)

    await service.move_page(first, second, 0)

    moved = await page(db, first)
    assert moved.type == PageType.page
    assert moved.parent_id == second
    assert (await page(db, second)).position == 0
    assert (await page(db, third)).position == 1
    assert [d.id for d in await service.get_tree(workspace.id)] == [second, third]
    await assert_tree_consistent(db, workspace.id)


@pytest.mark.asyncio
async def test_department_created_after_move_gets_next_free_rank(db, workspace, owner):
    service = WikiService(db)
    first = await service.create_department(workspace.id, "First", owner)
    second = await service.create_department(workspace.id, "Second", owner)
    third = await service.create_department(workspace.id, "Third", owner)

    await service.move_page(first, second, 0)
    fourth = await service.create_department(workspace.id, "Fourth", owner)

    departments = await service.get_tree(workspace.id)
    assert [(d.id, d.position) for d in departments] == [(second, 0), (third, 1), (fourth, 2)]
    await assert_tree_consistent(db, workspace.id)


@pytest.mark.asyncio
async def test_reorder_pages(db, workspace, owner):
    service = WikiService(db)
    dept_id, (a, b, c) = await build_tree(service, workspace.id, owner, "A", "B", "C")

    await service.reorder_pages(dept_id, [c, a, b])

    assert (await page(db, dept_id)).child_ids == [str(c), str(a), str(b)]
    assert [(await page(db, pid)).position for pid in (c, a, b)] == [0, 1, 2]


@pytest.mark.asyncio
async def test_reorder_pages_rejects_changed_membership(db, workspace, owner):
    service = WikiService(db)
    dept_id, (a, b) = await build_tree(service, workspace.id, owner, "A", "B")

    with pytest.raises(ValidationError):
        await service.reorder_pages(dept_id, [a])
    with pytest.raises(ValidationError):
        await service.reorder_pages(dept_id, [a, b, uuid.uuid4()])
    with pytest.raises(ValidationError):
        await service.reorder_pages(dept_id, [a, a])

    assert (await page(db, dept_id)).child_ids == [str(a), str(b)]


@pytest.mark.asyncio
async def test_reorder_departments(db, workspace, owner):
    service = WikiService(db)
    first = await service.create_department(workspace.id, "First", owner)
    second = await service.create_department(workspace.id, "Second", owner)

    await service.reorder_departments(workspace.id, [second, first])

    assert [d.id for d in await service.get_tree(workspace.id)] == [second, first]
    with pytest.raises(ValidationError):
        await service.reorder_departments(workspace.id, [second])


# ---------------------------------------------------------------------------
# 3. Deleting
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_delete_page_removes_subtree_comments_and_history(db, workspace, owner):
    service = WikiService(db)
    dept_id, (a, sibling) = await build_tree(service, workspace.id, owner, "A", "Sibling")
    child = await service.create_page(workspace.id, a, "Child", "", owner)
    grandchild = await service.create_page(workspace.id, child, "Grandchild", "", owner)
    await service.update_page(child, "Child v2", "body", owner)
    root_comment = await service.add_comment(a, owner, "On A")
    await service.add_comment(a, owner, "Reply", parent_id=root_comment)
    await service.add_comment(grandchild, owner, "On grandchild")

    await service.delete_page(a)

    removed = [a, child, grandchild]
    assert await count_rows(db, WikiPage, WikiPage.id.in_(removed)) == 0
    assert await count_rows(db, WikiComment, WikiComment.page_id.in_(removed)) == 0
    assert await count_rows(db, WikiPageHistory, WikiPageHistory.page_id.in_(removed)) == 0
    assert (await page(db, dept_id)).child_ids == [str(sibling)]
    assert (await page(db, sibling)).position == 0
    await assert_tree_consistent(db, workspace.id)


@pytest.mark.asyncio
async def test_delete_department_renumbers_remaining(db, workspace, owner):
    service = WikiService(db)
    first = await service.create_department(workspace.id, "First", owner)
    second = await service.create_department(workspace.id, "Second", owner)
    await service.create_page(workspace.id, first, "Under first", "", owner)

    await service.delete_page(first)

    assert (await page(db, second)).position == 0
    assert await count_rows(db, WikiPage, WikiPage.workspace_id == workspace.id) == 1


@pytest.mark.asyncio
async def test_delete_missing_page(db, workspace):
    with pytest.raises(NotFoundError):
        await WikiService(db).delete_page(uuid.uuid4())


# ---------------------------------------------------------------------------
# 4. Versions and history
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_updates_bump_version_and_snapshot_previous_state(db, workspace, owner):
    service = WikiService(db)
    _, (a,) = await build_tree(service, workspace.id, owner, "Draft")
    editor = Actor(id="user-editor", name="Eddie Editor")

    versions = []
    for n in range(1, 4):
        await service.update_page(a, f"Title {n}", f"Body {n}", editor)
        versions.append((await page(db, a)).version)

    assert versions == [2, 3, 4]
    history = await service.get_history(a)
    assert len(history) == 3
    assert [h.version for h in history] == [3, 2, 1]
    assert history[-1].title == "Draft"
    assert history[0].title == "Title 2"
    assert history[0].saved_by == editor.id

    current = await page(db, a)
    assert current.title == "Title 3"
    assert current.updated_by_name == editor.name


@pytest.mark.asyncio
async def test_history_limit(db, workspace, owner):
    service = WikiService(db)
    _, (a,) = await build_tree(service, workspace.id, owner, "Draft")
    for n in range(5):
        await service.update_page(a, f"Title {n}", "", owner)

    history = await service.get_history(a, limit=2)
    assert [h.version for h in history] == [5, 4]


@pytest.mark.asyncio
async def test_update_keeps_optional_fields_unless_given(db, workspace, owner):
    service = WikiService(db)
    dept_id = await service.create_department(workspace.id, "Engineering", owner)
    task_id = uuid.uuid4()
    a = await service.create_page(
        workspace.id, dept_id, "A", "", owner, emoji="📄", task_ids=[task_id]
    )

    await service.update_page(a, "A2", "new", owner)
    updated = await page(db, a)
    assert updated.emoji == "📄"
    assert updated.task_ids == [str(task_id)]

    await service.update_page(a, "A3", "newer", owner, emoji="📘")
    assert (await page(db, a)).emoji == "📘"


@pytest.mark.asyncio
async def test_restore_creates_new_version(db, workspace, owner):
    service = WikiService(db)
    _, (a,) = await build_tree(service, workspace.id, owner, "Original")
    await service.update_page(a, "Rewritten", "changed", owner)
    original = (await service.get_history(a))[0]

    await service.restore_page(a, original.id, owner)

    restored = await page(db, a)
    assert restored.title == "Original"
    assert restored.content == ""
    assert restored.version == 3
    history = await service.get_history(a)
    assert [h.title for h in history] == ["Rewritten", "Original"]


@pytest.mark.asyncio
async def test_restore_rejects_history_of_other_page(db, workspace, owner):
    service = WikiService(db)
    _, (a, b) = await build_tree(service, workspace.id, owner, "A", "B")
    await service.update_page(b, "B2", "", owner)
    entry = (await service.get_history(b))[0]

    with pytest.raises(NotFoundError):
        await service.restore_page(a, entry.id, owner)


# ---------------------------------------------------------------------------
# 5. Tree and search
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_get_tree_nests_pages_under_departments(db, workspace, owner):
    service = WikiService(db)
    eng, (a, b) = await build_tree(service, workspace.id, owner, "A", "B")
    a1 = await service.create_page(workspace.id, a, "A1", "", owner)
    sales = await service.create_department(workspace.id, "Sales", owner)

    tree = await service.get_tree(workspace.id)

    assert [d.id for d in tree] == [eng, sales]
    assert [p.id for p in tree[0].children] == [a, b]
    assert [p.id for p in tree[0].children[0].children] == [a1]
    assert tree[1].children == []


@pytest.mark.asyncio
async def test_search_matches_title_and_content(db, workspace, owner):
    service = WikiService(db)
    dept_id = await service.create_department(workspace.id, "Engineering", owner)
    runbook = await service.create_page(workspace.id, dept_id, "Deploy Runbook", "", owner)
    notes = await service.create_page(
        workspace.id, dept_id, "Notes", "how we DEPLOY on fridays", owner
    )
    await service.create_page(workspace.id, dept_id, "Hiring", "100% remote", owner)

    found = {p.id for p in await service.search(workspace.id, "deploy")}
    assert found == {runbook, notes}
    assert await service.search(workspace.id, "   ") == []
    assert [p.title for p in await service.search(workspace.id, "100%")] == ["Hiring"]
    assert await service.search(workspace.id, "0%r") == []


# ---------------------------------------------------------------------------
# 6. Comments
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_comment_replies_are_nested(db, workspace, owner):
    service = WikiService(db)
    _, (a,) = await build_tree(service, workspace.id, owner, "A")
    root = await service.add_comment(a, owner, "Looks good?")
    reply = await service.add_comment(a, owner, "Yes", parent_id=root)
    nested = await service.add_comment(a, owner, "Agreed", parent_id=reply)
    other_root = await service.add_comment(a, owner, "Separate thread")

    comments = await service.get_comments(a)

    assert [c.id for c in comments] == [root, other_root]
    assert [r.id for r in comments[0].replies] == [reply]
    assert [r.id for r in comments[0].replies[0].replies] == [nested]
    assert comments[0].from_name == owner.name


@pytest.mark.asyncio
async def test_reply_must_target_comment_on_same_page(db, workspace, owner):
    service = WikiService(db)
    _, (a, b) = await build_tree(service, workspace.id, owner, "A", "B")
    on_b = await service.add_comment(b, owner, "On B")

    with pytest.raises(NotFoundError):
        await service.add_comment(a, owner, "Cross-page reply", parent_id=on_b)


@pytest.mark.asyncio
async def test_edit_comment_marks_edited(db, workspace, owner):
    service = WikiService(db)
    _, (a,) = await build_tree(service, workspace.id, owner, "A")
    comment_id = await service.add_comment(a, owner, "Typo")

    await service.edit_comment(comment_id, "Fixed")

    comment = await service.get_comment(comment_id)
    assert comment.content == "Fixed"
    assert comment.edited_at is not None


@pytest.mark.asyncio
async def test_delete_comment_removes_replies_and_parent_link(db, workspace, owner):
    service = WikiService(db)
    _, (a,) = await build_tree(service, workspace.id, owner, "A")
    root = await service.add_comment(a, owner, "Root")
    reply = await service.add_comment(a, owner, "Reply", parent_id=root)
    await service.add_comment(a, owner, "Nested", parent_id=reply)
    keep = await service.add_comment(a, owner, "Keep", parent_id=root)

    await service.delete_comment(reply)

    assert await count_rows(db, WikiComment, WikiComment.page_id == a) == 2
    root_comment = await service.get_comment(root)
    assert root_comment.reply_ids == [str(keep)]
