"""baseline_schema

Revision ID: 3f9a1c2b7d10
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""
from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import ENUM, JSONB, UUID

revision = "3f9a1c2b7d10"
down_revision = None
branch_labels = None
depends_on = None

# Tables written by the board side of the platform; only their workspace
# scoping matters to this service.
BOARD_TABLES: dict[str, list[sa.Column]] = {
    "tasks": [
        sa.Column("ticket_number", sa.Integer(), nullable=True),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("status", sa.String(50), nullable=False, server_default="backlog"),
        sa.Column("epic_id", UUID(as_uuid=True), nullable=True),
        sa.Column("assignee_ids", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
    ],
    "epics": [
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("status", sa.String(50), nullable=False, server_default="planning"),
    ],
    "goals": [
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("progress", sa.Integer(), nullable=False, server_default=sa.text("0")),
    ],
    "messages": [
        sa.Column("task_id", UUID(as_uuid=True), nullable=True),
        sa.Column("from_id", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
    ],
    "activities": [
        sa.Column("type", sa.String(100), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
    ],
    "documents": [
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
    ],
    "thread_subscriptions": [
        sa.Column("task_id", UUID(as_uuid=True), nullable=False),
        sa.Column("subscriber_id", sa.String(255), nullable=False),
    ],
    "execution_log": [
        sa.Column("task_id", UUID(as_uuid=True), nullable=True),
        sa.Column("status", sa.String(50), nullable=False),
        sa.Column("output", sa.Text(), nullable=True),
    ],
    "alerts": [
        sa.Column("severity", sa.String(20), nullable=False, server_default="info"),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("resolved", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    ],
    "alert_rules": [
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("condition", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.text("true")),
    ],
    "alert_events": [
        sa.Column("rule_id", UUID(as_uuid=True), nullable=True),
        sa.Column("payload", JSONB, nullable=False, server_default=sa.text("'{}'::jsonb")),
    ],
    "decisions": [
        sa.Column("summary", sa.Text(), nullable=False),
        sa.Column("rationale", sa.Text(), nullable=True),
    ],
    "strategic_reports": [
        sa.Column("week", sa.String(20), nullable=False),
        sa.Column("body", sa.Text(), nullable=False, server_default=""),
    ],
    "calendar_events": [
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("starts_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ends_at", sa.DateTime(timezone=True), nullable=False),
    ],
    "task_comments": [
        sa.Column("task_id", UUID(as_uuid=True), nullable=False),
        sa.Column("author_id", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
    ],
    "notifications": [
        sa.Column("recipient_id", sa.String(255), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    ],
    "mentions": [
        sa.Column("mentioned_id", sa.String(255), nullable=False),
        sa.Column("mentioned_by", sa.String(255), nullable=False),
        sa.Column("context", sa.String(50), nullable=False),
        sa.Column("context_id", sa.String(255), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    ],
    "task_subscriptions": [
        sa.Column("task_id", UUID(as_uuid=True), nullable=False),
        sa.Column("subscriber_id", sa.String(255), nullable=False),
        sa.Column("notify_on", sa.String(20), nullable=False, server_default="all"),
    ],
    "presence_indicators": [
        sa.Column("subject_id", sa.String(255), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="offline"),
        sa.Column("current_activity", sa.String(500), nullable=True),
    ],
    "task_patterns": [
        sa.Column("pattern", sa.String(500), nullable=False),
        sa.Column("occurrences", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("success_rate", sa.Integer(), nullable=False, server_default=sa.text("0")),
    ],
    "anomalies": [
        sa.Column("subject_id", sa.String(255), nullable=False),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("severity", sa.String(20), nullable=False, server_default="low"),
        sa.Column("message", sa.Text(), nullable=False),
    ],
}

INDEXED_COLUMNS: dict[str, list[str]] = {
    "tasks": ["epic_id"],
    "messages": ["task_id"],
    "thread_subscriptions": ["task_id"],
    "execution_log": ["task_id"],
    "alert_events": ["rule_id"],
    "task_comments": ["task_id"],
    "notifications": ["recipient_id"],
    "mentions": ["mentioned_id"],
    "task_subscriptions": ["task_id"],
    "presence_indicators": ["subject_id"],
    "anomalies": ["subject_id"],
}


def _id_column() -> sa.Column:
    return sa.Column(
        "id",
        UUID(as_uuid=True),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def _workspace_column() -> sa.Column:
    return sa.Column("workspace_id", UUID(as_uuid=True), nullable=True)


def _timestamp_columns() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    # Workspaces
    op.create_table(
        "workspaces",
        _id_column(),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("slug", sa.String(50), nullable=False),
        sa.Column("color", sa.String(20), nullable=False, server_default="#6366f1"),
        sa.Column("emoji", sa.String(16), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("mission_statement", sa.Text(), nullable=True),
        sa.Column("budget", sa.Float(), nullable=True),
        sa.Column("is_default", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *_timestamp_columns(),
    )
    op.create_index("ix_workspaces_slug", "workspaces", ["slug"], unique=True)
    op.create_index(
        "uq_workspaces_single_default",
        "workspaces",
        ["is_default"],
        unique=True,
        postgresql_where=sa.text("is_default"),
    )

    # Settings
    op.create_table(
        "settings",
        _id_column(),
        _workspace_column(),
        sa.Column("key", sa.String(100), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        *_timestamp_columns(),
    )
    op.create_index("ix_settings_workspace_id", "settings", ["workspace_id"])
    op.create_index("ix_settings_workspace_key", "settings", ["workspace_id", "key"], unique=True)

    # Members
    op.create_table(
        "organization_members",
        _id_column(),
        _workspace_column(),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("user_email", sa.String(255), nullable=True),
        sa.Column("user_name", sa.String(255), nullable=True),
        sa.Column("role", sa.Enum("owner", "admin", "member", name="org_role"), nullable=False),
        sa.Column("all_boards_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("all_boards_write", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *_timestamp_columns(),
        sa.UniqueConstraint("workspace_id", "user_id", name="uq_organization_members_workspace_user"),
    )
    op.create_index("ix_organization_members_workspace_id", "organization_members", ["workspace_id"])
    op.create_index("ix_organization_members_user_id", "organization_members", ["user_id"])

    op.create_table(
        "board_access",
        _id_column(),
        _workspace_column(),
        sa.Column("member_id", UUID(as_uuid=True), sa.ForeignKey("organization_members.id"), nullable=False),
        sa.Column("can_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("can_write", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        *_timestamp_columns(),
        sa.UniqueConstraint("member_id", "workspace_id", name="uq_board_access_member_board"),
    )
    op.create_index("ix_board_access_workspace_id", "board_access", ["workspace_id"])
    op.create_index("ix_board_access_member_id", "board_access", ["member_id"])

    # Invites
    op.create_table(
        "invites",
        _id_column(),
        _workspace_column(),
        sa.Column("token", sa.String(64), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("role", ENUM("owner", "admin", "member", name="org_role", create_type=False), nullable=False),
        sa.Column("all_boards_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("all_boards_write", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("invited_by", sa.String(255), nullable=False),
        sa.Column("accepted_by", sa.String(255), nullable=True),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamp_columns(),
    )
    op.create_index("ix_invites_workspace_id", "invites", ["workspace_id"])
    op.create_index("ix_invites_token", "invites", ["token"], unique=True)
    op.create_index("ix_invites_email", "invites", ["email"])

    op.create_table(
        "invite_board_access",
        _id_column(),
        _workspace_column(),
        sa.Column("invite_id", UUID(as_uuid=True), sa.ForeignKey("invites.id"), nullable=False),
        sa.Column("can_read", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("can_write", sa.Boolean(), nullable=False, server_default=sa.text("false")),
    )
    op.create_index("ix_invite_board_access_workspace_id", "invite_board_access", ["workspace_id"])
    op.create_index("ix_invite_board_access_invite_id", "invite_board_access", ["invite_id"])

    # Wiki
    op.create_table(
        "wiki_pages",
        _id_column(),
        _workspace_column(),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.Column("emoji", sa.String(16), nullable=True),
        sa.Column("parent_id", UUID(as_uuid=True), sa.ForeignKey("wiki_pages.id"), nullable=True),
        sa.Column("child_ids", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("position", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("type", sa.Enum("department", "page", name="wiki_page_type"), nullable=False),
        sa.Column("task_ids", JSONB, nullable=True),
        sa.Column("epic_id", UUID(as_uuid=True), nullable=True),
        sa.Column("created_by", sa.String(255), nullable=False),
        sa.Column("created_by_name", sa.String(255), nullable=False),
        sa.Column("updated_by", sa.String(255), nullable=False),
        sa.Column("updated_by_name", sa.String(255), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        *_timestamp_columns(),
    )
    op.create_index("ix_wiki_pages_workspace_id", "wiki_pages", ["workspace_id"])
    op.create_index("ix_wiki_pages_parent_id", "wiki_pages", ["parent_id"])
    op.create_index("ix_wiki_pages_workspace_type", "wiki_pages", ["workspace_id", "type"])
    op.create_index("ix_wiki_pages_workspace_parent", "wiki_pages", ["workspace_id", "parent_id"])

    op.create_table(
        "wiki_page_history",
        _id_column(),
        _workspace_column(),
        sa.Column("page_id", UUID(as_uuid=True), sa.ForeignKey("wiki_pages.id"), nullable=False),
        sa.Column("title", sa.String(500), nullable=False),
        sa.Column("content", sa.Text(), nullable=False, server_default=""),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("saved_by", sa.String(255), nullable=False),
        sa.Column("saved_by_name", sa.String(255), nullable=False),
        sa.Column("saved_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_wiki_page_history_workspace_id", "wiki_page_history", ["workspace_id"])
    op.create_index("ix_wiki_page_history_page_id", "wiki_page_history", ["page_id"])
    op.create_index("ix_wiki_page_history_page_version", "wiki_page_history", ["page_id", "version"])

    op.create_table(
        "wiki_comments",
        _id_column(),
        _workspace_column(),
        sa.Column("page_id", UUID(as_uuid=True), sa.ForeignKey("wiki_pages.id"), nullable=False),
        sa.Column("from_id", sa.String(255), nullable=False),
        sa.Column("from_name", sa.String(255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("parent_id", UUID(as_uuid=True), sa.ForeignKey("wiki_comments.id"), nullable=True),
        sa.Column("reply_ids", JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("edited_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_wiki_comments_workspace_id", "wiki_comments", ["workspace_id"])
    op.create_index("ix_wiki_comments_page_id", "wiki_comments", ["page_id"])
    op.create_index("ix_wiki_comments_parent_id", "wiki_comments", ["parent_id"])

    # Board tables
    for table, columns in BOARD_TABLES.items():
        op.create_table(
            table,
            _id_column(),
            _workspace_column(),
            *columns,
            *_timestamp_columns(),
        )
        op.create_index(f"ix_{table}_workspace_id", table, ["workspace_id"])
        for column in INDEXED_COLUMNS.get(table, []):
            op.create_index(f"ix_{table}_{column}", table, [column])


def downgrade() -> None:
    for table in reversed(list(BOARD_TABLES)):
        op.drop_table(table)

    op.drop_table("wiki_comments")
    op.drop_table("wiki_page_history")
    op.drop_table("wiki_pages")
    op.drop_table("invite_board_access")
    op.drop_table("invites")
    op.drop_table("board_access")
    op.drop_table("organization_members")
    op.drop_table("settings")
    op.drop_table("workspaces")

    sa.Enum(name="wiki_page_type").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="org_role").drop(op.get_bind(), checkfirst=True)
