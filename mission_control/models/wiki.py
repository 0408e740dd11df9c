"""
ORM models for wiki pages, page history and page comments.

Pages form a forest per workspace. The tree is stored both ways: every page
points at its parent (``parent_id``) and every parent keeps the ordered list of
its children (``child_ids``). Comment threads use the same layout with
``parent_id`` / ``reply_ids``.
"""

from __future__ import annotations

import enum
from datetime import datetime
from uuid import UUID

from sqlalchemy import JSON, DateTime, Enum, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from mission_control.models.base import (
    Base,
    TimestampMixin,
    UUIDMixin,
    WorkspaceScopedMixin,
    utcnow,
)


class PageType(str, enum.Enum):
    """Root pages are departments, everything below is a page."""

    department = "department"
    page = "page"


class WikiPage(Base, UUIDMixin, TimestampMixin, WorkspaceScopedMixin):
    __tablename__ = "wiki_pages"
    __table_args__ = (
        Index("ix_wiki_pages_workspace_type", "workspace_id", "type"),
        Index("ix_wiki_pages_workspace_parent", "workspace_id", "parent_id"),
    )

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    emoji: Mapped[str | None] = mapped_column(String(16), nullable=True)
    parent_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("wiki_pages.id"), nullable=True, index=True
    )
    child_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    type: Mapped[PageType] = mapped_column(
        Enum(PageType, name="wiki_page_type"), nullable=False
    )
    task_ids: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    epic_id: Mapped[UUID | None] = mapped_column(nullable=True)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False)
    created_by_name: Mapped[str] = mapped_column(String(255), nullable=False)
    updated_by: Mapped[str] = mapped_column(String(255), nullable=False)
    updated_by_name: Mapped[str] = mapped_column(String(255), nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    def __repr__(self) -> str:
        return f"<WikiPage id={self.id} type={self.type} title={self.title!r}>"


class WikiPageHistory(Base, UUIDMixin, WorkspaceScopedMixin):
    """Immutable snapshot of a page as it was before an update or restore."""

    __tablename__ = "wiki_page_history"
    __table_args__ = (Index("ix_wiki_page_history_page_version", "page_id", "version"),)

    page_id: Mapped[UUID] = mapped_column(
        ForeignKey("wiki_pages.id"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    saved_by: Mapped[str] = mapped_column(String(255), nullable=False)
    saved_by_name: Mapped[str] = mapped_column(String(255), nullable=False)
    saved_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class WikiComment(Base, UUIDMixin, WorkspaceScopedMixin):
    __tablename__ = "wiki_comments"

    page_id: Mapped[UUID] = mapped_column(
        ForeignKey("wiki_pages.id"), nullable=False, index=True
    )
    from_id: Mapped[str] = mapped_column(String(255), nullable=False)
    from_name: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    parent_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("wiki_comments.id"), nullable=True, index=True
    )
    reply_ids: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    edited_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
