"""
OrganizationMember and BoardAccess ORM models.
"""

from __future__ import annotations

import enum
from uuid import UUID

from sqlalchemy import Boolean, Enum, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from mission_control.models.base import Base, TimestampMixin, UUIDMixin, WorkspaceScopedMixin


class OrgRole(str, enum.Enum):
    """Organization member role enumeration."""

    owner = "owner"
    admin = "admin"
    member = "member"


ROLE_RANK: dict[OrgRole, int] = {
    OrgRole.owner: 3,
    OrgRole.admin: 2,
    OrgRole.member: 1,
}


class OrganizationMember(Base, UUIDMixin, TimestampMixin, WorkspaceScopedMixin):
    """Links an external user id to a workspace with a role."""

    __tablename__ = "organization_members"
    __table_args__ = (
        UniqueConstraint("workspace_id", "user_id", name="uq_organization_members_workspace_user"),
    )

    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    user_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    user_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[OrgRole] = mapped_column(Enum(OrgRole, name="org_role"), nullable=False)
    all_boards_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    all_boards_write: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return (
            f"<OrganizationMember workspace_id={self.workspace_id} "
            f"user_id={self.user_id!r} role={self.role}>"
        )


class BoardAccess(Base, UUIDMixin, TimestampMixin, WorkspaceScopedMixin):
    """
    Per-board grant for a member.

    ``workspace_id`` here is the board the grant opens, which is not
    necessarily the member's own workspace.
    """

    __tablename__ = "board_access"
    __table_args__ = (
        UniqueConstraint("member_id", "workspace_id", name="uq_board_access_member_board"),
    )

    member_id: Mapped[UUID] = mapped_column(
        ForeignKey("organization_members.id"), nullable=False, index=True
    )
    can_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    can_write: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
