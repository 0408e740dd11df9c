"""
Workspace ORM model.
"""

from __future__ import annotations

from sqlalchemy import Boolean, Float, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from mission_control.models.base import Base, TimestampMixin, UUIDMixin

DEFAULT_COLOR = "#6366f1"
DEFAULT_EMOJI = "🚀"


class Workspace(Base, UUIDMixin, TimestampMixin):
    """A tenant partition. Exactly one workspace is the default."""

    __tablename__ = "workspaces"
    __table_args__ = (
        Index(
            "uq_workspaces_single_default",
            "is_default",
            unique=True,
            postgresql_where=text("is_default"),
            sqlite_where=text("is_default = 1"),
        ),
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    color: Mapped[str] = mapped_column(String(20), nullable=False, default=DEFAULT_COLOR)
    emoji: Mapped[str] = mapped_column(String(16), nullable=False, default=DEFAULT_EMOJI)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    mission_statement: Mapped[str | None] = mapped_column(Text, nullable=True)
    budget: Mapped[float | None] = mapped_column(Float, nullable=True)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<Workspace id={self.id} slug={self.slug!r} default={self.is_default}>"
