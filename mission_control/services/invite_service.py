"""
Invitation business logic.

Invites are bound to a lower-cased email and a random token. Accepting one
creates the member, copies the invite's board grants onto it and marks the
invite accepted, all in one transaction.
"""

from __future__ import annotations

import logging
import secrets
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from mission_control.core.config import settings
from mission_control.core.errors import ConflictError, ForbiddenError, NotFoundError
from mission_control.models.base import utcnow
from mission_control.models.invite import Invite, InviteBoardAccess
from mission_control.models.member import BoardAccess, OrganizationMember
from mission_control.models.workspace import Workspace
from mission_control.schemas.common import Actor
from mission_control.schemas.invite import (
    InviteAcceptResponse,
    InviteBoardAccessItem,
    InviteCreatedResponse,
    InviteCreateRequest,
    InviteResponse,
)
from mission_control.services.member_service import check_role_assignment

logger = logging.getLogger(__name__)


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


class InviteService:
    """Handles invite creation, lookup and acceptance."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # -----------------------------------------------------------------------
    # Create Invite
    # -----------------------------------------------------------------------

    async def create_invite(
        self,
        workspace_id: UUID,
        data: InviteCreateRequest,
        invited_by: Actor,
        acting_member: OrganizationMember | None = None,
    ) -> InviteCreatedResponse:
        """
        Create an invitation for ``data.email``.

        - Admins cannot invite owners
        - Rejects a second pending invite for the same email
        - Generates a unique 32-character hex token
        - Stores the optional per-board grants with the invite
        """
        if await self.db.get(Workspace, workspace_id) is None:
            raise NotFoundError("Workspace", workspace_id=str(workspace_id))
        check_role_assignment(acting_member, data.role)

        email = normalize_email(data.email)
        pending = await self.db.execute(
            select(Invite.id).where(
                Invite.workspace_id == workspace_id,
                Invite.email == email,
                Invite.accepted_at.is_(None),
            )
        )
        if pending.scalar_one_or_none() is not None:
            raise ConflictError(
                "A pending invitation already exists for this email", email=email
            )

        invite = Invite(
            workspace_id=workspace_id,
            token=await self._generate_token(),
            email=email,
            role=data.role,
            all_boards_read=data.all_boards_read,
            all_boards_write=data.all_boards_write,
            invited_by=invited_by.id,
        )
        self.db.add(invite)
        await self.db.flush()

        for grant in data.board_access:
            self.db.add(
                InviteBoardAccess(
                    invite_id=invite.id,
                    workspace_id=grant.workspace_id,
                    can_read=grant.can_read,
                    can_write=grant.can_write,
                )
            )
        await self.db.flush()

        logger.info("Created invite %s for workspace %s", invite.id, workspace_id)
        return InviteCreatedResponse(invite_id=invite.id, token=invite.token)

    # -----------------------------------------------------------------------
    # Queries
    # -----------------------------------------------------------------------

    async def get_invites(self, workspace_id: UUID) -> list[InviteResponse]:
        """All invites of a workspace, newest first, with their board grants."""
        result = await self.db.execute(
            select(Invite)
            .where(Invite.workspace_id == workspace_id)
            .order_by(Invite.created_at.desc())
        )
        invites = list(result.scalars().all())
        if not invites:
            return []

        grants_result = await self.db.execute(
            select(InviteBoardAccess).where(
                InviteBoardAccess.invite_id.in_([invite.id for invite in invites])
            )
        )
        grants: dict[UUID, list[InviteBoardAccessItem]] = {}
        for grant in grants_result.scalars().all():
            grants.setdefault(grant.invite_id, []).append(
                InviteBoardAccessItem.model_validate(grant)
            )

        return [
            InviteResponse.model_validate(invite).model_copy(
                update={"board_access": grants.get(invite.id, [])}
            )
            for invite in invites
        ]

    async def get_by_token(self, token: str) -> Invite:
        result = await self.db.execute(select(Invite).where(Invite.token == token))
        invite = result.scalar_one_or_none()
        if invite is None:
            raise NotFoundError("Invite")
        return invite

    async def get_by_email(self, email: str) -> list[Invite]:
        """Pending invites addressed to ``email``."""
        result = await self.db.execute(
            select(Invite)
            .where(Invite.email == normalize_email(email), Invite.accepted_at.is_(None))
            .order_by(Invite.created_at.desc())
        )
        return list(result.scalars().all())

    # -----------------------------------------------------------------------
    # Accept Invite
    # -----------------------------------------------------------------------

    async def accept_invite(self, token: str, user: Actor) -> InviteAcceptResponse:
        """
        Accept an invite for ``user``.

        The invite row is claimed with a conditional UPDATE on
        ``accepted_at IS NULL`` so only one of two concurrent calls wins.
        """
        invite = await self.get_by_token(token)

        if normalize_email(invite.email) != normalize_email(user.email):
            raise ForbiddenError("This invite was sent to a different email address")
        if invite.accepted_at is not None:
            raise ConflictError("Invite has already been accepted", invite_id=str(invite.id))

        existing = await self.db.execute(
            select(OrganizationMember.id).where(
                OrganizationMember.workspace_id == invite.workspace_id,
                OrganizationMember.user_id == user.id,
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(
                "You are already a member of this workspace",
                workspace_id=str(invite.workspace_id),
            )

        claimed = await self.db.execute(
            update(Invite)
            .where(Invite.id == invite.id, Invite.accepted_at.is_(None))
            .values(accepted_by=user.id, accepted_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount != 1:
            raise ConflictError("Invite has already been accepted", invite_id=str(invite.id))
        await self.db.refresh(invite)

        member = OrganizationMember(
            workspace_id=invite.workspace_id,
            user_id=user.id,
            user_email=normalize_email(user.email),
            user_name=user.name,
            role=invite.role,
            all_boards_read=invite.all_boards_read,
            all_boards_write=invite.all_boards_write,
        )
        self.db.add(member)
        await self.db.flush()

        grants = await self.db.execute(
            select(InviteBoardAccess).where(InviteBoardAccess.invite_id == invite.id)
        )
        for grant in grants.scalars().all():
            self.db.add(
                BoardAccess(
                    member_id=member.id,
                    workspace_id=grant.workspace_id,
                    can_read=grant.can_read,
                    can_write=grant.can_write,
                )
            )
        await self.db.flush()

        logger.info(
            "Invite %s accepted by %s; member %s added to workspace %s",
            invite.id,
            user.id,
            member.id,
            invite.workspace_id,
        )
        return InviteAcceptResponse(member_id=member.id, workspace_id=invite.workspace_id)

    # -----------------------------------------------------------------------
    # Delete Invite
    # -----------------------------------------------------------------------

    async def delete_invite(self, invite_id: UUID) -> UUID:
        invite = await self.db.get(Invite, invite_id)
        if invite is None:
            raise NotFoundError("Invite", invite_id=str(invite_id))

        await self.db.execute(
            delete(InviteBoardAccess).where(InviteBoardAccess.invite_id == invite.id)
        )
        await self.db.delete(invite)
        await self.db.flush()

        logger.info("Deleted invite %s", invite_id)
        return invite_id

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------

    async def _generate_token(self) -> str:
        for _ in range(settings.INVITE_TOKEN_MAX_ATTEMPTS):
            token = secrets.token_hex(16)
            taken = await self.db.execute(select(Invite.id).where(Invite.token == token))
            if taken.scalar_one_or_none() is None:
                return token
            logger.warning("Invite token collision, regenerating")
        raise ConflictError("Could not generate a unique invite token")
