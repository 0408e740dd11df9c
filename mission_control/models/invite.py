"""
Invite ORM models.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from mission_control.models.base import Base, TimestampMixin, UUIDMixin, WorkspaceScopedMixin
from mission_control.models.member import OrgRole


class Invite(Base, UUIDMixin, TimestampMixin, WorkspaceScopedMixin):
    """Pending membership grant bound to an email address and a token."""

    __tablename__ = "invites"

    token: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    role: Mapped[OrgRole] = mapped_column(Enum(OrgRole, name="org_role"), nullable=False)
    all_boards_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    all_boards_write: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    invited_by: Mapped[str] = mapped_column(String(255), nullable=False)
    accepted_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<Invite id={self.id} email={self.email!r} workspace_id={self.workspace_id}>"


class InviteBoardAccess(Base, UUIDMixin, WorkspaceScopedMixin):
    """Board grant copied onto the member when the invite is accepted."""

    __tablename__ = "invite_board_access"

    invite_id: Mapped[UUID] = mapped_column(
        ForeignKey("invites.id"), nullable=False, index=True
    )
    can_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    can_write: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
