"""
Membership and role checks.

Roles are ranked owner > admin > member. A check for a role passes for that
role and every role above it.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from mission_control.core.errors import ConflictError, ForbiddenError, NotFoundError
from mission_control.models.member import ROLE_RANK, BoardAccess, OrganizationMember, OrgRole
from mission_control.models.workspace import Workspace
from mission_control.schemas.member import (
    BoardAccessRequest,
    MemberCreateRequest,
    MemberUpdateRequest,
)

logger = logging.getLogger(__name__)


def check_role_assignment(acting_member: OrganizationMember | None, role: OrgRole) -> None:
    """Only owners may hand out the owner role. ``None`` is a trusted internal caller."""
    if acting_member is not None and role == OrgRole.owner and acting_member.role != OrgRole.owner:
        raise ForbiddenError("Admins cannot assign the owner role", role=role.value)


class MemberService:
    """Handles organization members and board grants."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # -----------------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------------

    async def get_members(self, workspace_id: UUID) -> list[OrganizationMember]:
        result = await self.db.execute(
            select(OrganizationMember)
            .where(OrganizationMember.workspace_id == workspace_id)
            .order_by(OrganizationMember.created_at)
        )
        return list(result.scalars().all())

    async def get_member(self, member_id: UUID) -> OrganizationMember:
        member = await self.db.get(OrganizationMember, member_id)
        if member is None:
            raise NotFoundError("Member", member_id=str(member_id))
        return member

    async def get_member_by_user(self, workspace_id: UUID, user_id: str) -> OrganizationMember:
        member = await self._find_member(workspace_id, user_id)
        if member is None:
            raise NotFoundError("Member", workspace_id=str(workspace_id), user_id=user_id)
        return member

    async def has_access(
        self,
        workspace_id: UUID,
        user_id: str,
        required_role: OrgRole | None = None,
    ) -> bool:
        """True when the user is a member ranked at least ``required_role``."""
        member = await self._find_member(workspace_id, user_id)
        if member is None:
            return False
        if required_role is None:
            return True
        return ROLE_RANK[member.role] >= ROLE_RANK[required_role]

    async def can_access_board(
        self,
        workspace_id: UUID,
        user_id: str,
        board_id: UUID,
        write: bool = False,
    ) -> bool:
        member = await self._find_member(workspace_id, user_id)
        if member is None:
            return False
        if member.all_boards_write or (not write and member.all_boards_read):
            return True

        result = await self.db.execute(
            select(BoardAccess).where(
                BoardAccess.member_id == member.id,
                BoardAccess.workspace_id == board_id,
            )
        )
        grant = result.scalar_one_or_none()
        if grant is None:
            return False
        return grant.can_write if write else (grant.can_read or grant.can_write)

    # -----------------------------------------------------------------------
    # Guards
    # -----------------------------------------------------------------------

    async def require_role(
        self, workspace_id: UUID, user_id: str, role: OrgRole
    ) -> OrganizationMember:
        """Return the caller's member row, or raise ForbiddenError."""
        member = await self._find_member(workspace_id, user_id)
        if member is None:
            raise ForbiddenError(
                "You are not a member of this workspace", workspace_id=str(workspace_id)
            )
        if ROLE_RANK[member.role] < ROLE_RANK[role]:
            raise ForbiddenError(
                f"Required role: {role.value}",
                workspace_id=str(workspace_id),
                role=member.role.value,
            )
        return member

    async def require_admin(self, workspace_id: UUID, user_id: str) -> OrganizationMember:
        return await self.require_role(workspace_id, user_id, OrgRole.admin)

    async def require_owner(self, workspace_id: UUID, user_id: str) -> OrganizationMember:
        return await self.require_role(workspace_id, user_id, OrgRole.owner)

    # -----------------------------------------------------------------------
    # Mutations
    # -----------------------------------------------------------------------

    async def add_member(
        self,
        workspace_id: UUID,
        data: MemberCreateRequest,
        acting_member: OrganizationMember | None = None,
    ) -> OrganizationMember:
        """
        Add a user to a workspace.

        - Admins cannot add owners
        """
        if await self.db.get(Workspace, workspace_id) is None:
            raise NotFoundError("Workspace", workspace_id=str(workspace_id))
        check_role_assignment(acting_member, data.role)
        if await self._find_member(workspace_id, data.user_id) is not None:
            raise ConflictError(
                "User is already a member of this workspace",
                workspace_id=str(workspace_id),
                user_id=data.user_id,
            )

        member = OrganizationMember(
            workspace_id=workspace_id,
            user_id=data.user_id,
            user_email=data.user_email.lower() if data.user_email else None,
            user_name=data.user_name,
            role=data.role,
            all_boards_read=data.all_boards_read,
            all_boards_write=data.all_boards_write,
        )
        self.db.add(member)
        await self.db.flush()
        await self.db.refresh(member)

        logger.info(
            "Added member %s (%s) to workspace %s", data.user_id, data.role.value, workspace_id
        )
        return member

    async def update_member(
        self,
        member_id: UUID,
        data: MemberUpdateRequest,
        acting_member: OrganizationMember | None = None,
    ) -> OrganizationMember:
        """
        Change a member's role or board flags.

        - Admins cannot assign the owner role
        - Admins cannot change an owner
        - The last owner cannot be demoted
        """
        member = await self.get_member(member_id)

        if acting_member is not None and acting_member.role != OrgRole.owner:
            if member.role == OrgRole.owner:
                raise ForbiddenError("Admins cannot change an owner", member_id=str(member_id))
            if data.role is not None:
                check_role_assignment(acting_member, data.role)

        if (
            data.role is not None
            and member.role == OrgRole.owner
            and data.role != OrgRole.owner
            and await self._count_owners(member.workspace_id) <= 1
        ):
            raise ConflictError(
                "Cannot demote the last owner", member_id=str(member_id)
            )

        for key, value in data.model_dump(exclude_none=True).items():
            setattr(member, key, value)

        await self.db.flush()
        await self.db.refresh(member)
        logger.info("Updated member %s", member.id)
        return member

    async def remove_member(
        self, member_id: UUID, acting_member: OrganizationMember | None = None
    ) -> UUID:
        """
        Delete a member and its board grants.

        - Admins cannot remove owners or other admins (leaving is allowed)
        - The last owner cannot be removed
        """
        member = await self.get_member(member_id)

        if (
            acting_member is not None
            and acting_member.role != OrgRole.owner
            and acting_member.id != member.id
            and ROLE_RANK[member.role] >= ROLE_RANK[acting_member.role]
        ):
            raise ForbiddenError(
                f"Admins cannot remove a member with role {member.role.value}",
                member_id=str(member_id),
            )

        if member.role == OrgRole.owner and await self._count_owners(member.workspace_id) <= 1:
            raise ConflictError("Cannot remove the last owner", member_id=str(member_id))

        await self.db.execute(delete(BoardAccess).where(BoardAccess.member_id == member.id))
        await self.db.delete(member)
        await self.db.flush()

        logger.info("Removed member %s from workspace %s", member_id, member.workspace_id)
        return member_id

    async def set_board_access(self, member_id: UUID, data: BoardAccessRequest) -> BoardAccess:
        """Create or replace the member's grant for one board."""
        member = await self.get_member(member_id)

        result = await self.db.execute(
            select(BoardAccess).where(
                BoardAccess.member_id == member.id,
                BoardAccess.workspace_id == data.board_id,
            )
        )
        grant = result.scalar_one_or_none()
        if grant is None:
            grant = BoardAccess(member_id=member.id, workspace_id=data.board_id)
            self.db.add(grant)

        grant.can_read = data.can_read
        grant.can_write = data.can_write
        await self.db.flush()
        return grant

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    async def _find_member(self, workspace_id: UUID, user_id: str) -> OrganizationMember | None:
        result = await self.db.execute(
            select(OrganizationMember).where(
                OrganizationMember.workspace_id == workspace_id,
                OrganizationMember.user_id == user_id,
            )
        )
        return result.scalar_one_or_none()

    async def _count_owners(self, workspace_id: UUID | None) -> int:
        result = await self.db.execute(
            select(func.count(OrganizationMember.id)).where(
                OrganizationMember.workspace_id == workspace_id,
                OrganizationMember.role == OrgRole.owner,
            )
        )
        return result.scalar_one()
