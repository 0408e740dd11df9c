"""
FastAPI dependency injection functions.

Provides the current actor and workspace role enforcement.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from mission_control.core.database import get_db
from mission_control.core.errors import NotFoundError
from mission_control.core.security import decode_access_token
from mission_control.models.member import OrganizationMember, OrgRole
from mission_control.models.workspace import Workspace
from mission_control.schemas.common import Actor
from mission_control.services.member_service import MemberService

# ---------------------------------------------------------------------------
# HTTP Bearer scheme (auto_error=False so we can return custom 401)
# ---------------------------------------------------------------------------

bearer_scheme = HTTPBearer(auto_error=False)


# ---------------------------------------------------------------------------
# Current actor
# ---------------------------------------------------------------------------

async def get_current_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Actor:
    """
    Validate Bearer JWT and return the caller as an Actor.

    Raises 401 if no token is provided or the token is invalid or expired.
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "MISSING_TOKEN", "message": "Authorization header required"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        payload = decode_access_token(credentials.credentials)
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "INVALID_TOKEN", "message": "Token is invalid or expired"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id: str = payload["sub"]
    email: str | None = payload.get("email")
    return Actor(id=user_id, name=payload.get("name") or email or user_id, email=email)


# ---------------------------------------------------------------------------
# Workspace membership + role enforcement
# ---------------------------------------------------------------------------

async def authorize(
    db: AsyncSession,
    workspace_id: UUID | None,
    actor: Actor,
    role: OrgRole = OrgRole.member,
) -> OrganizationMember:
    """
    Verify the workspace exists and the actor holds at least ``role`` in it.

    Raises 404 if the workspace is missing, 403 if the actor is not a member
    or ranks below ``role``.
    """
    if workspace_id is None or await db.get(Workspace, workspace_id) is None:
        raise NotFoundError("Workspace", workspace_id=str(workspace_id))
    return await MemberService(db).require_role(workspace_id, actor.id, role)


def require_role(role: OrgRole):
    """
    Dependency factory for routes with a ``workspace_id`` path parameter.

    Usage:
        @router.post("/workspaces/{workspace_id}/...")
        async def endpoint(
            member: OrganizationMember = Depends(require_role(OrgRole.admin)),
        ):
            ...
    """
    async def role_checker(
        workspace_id: UUID,
        actor: Actor = Depends(get_current_actor),
        db: AsyncSession = Depends(get_db),
    ) -> OrganizationMember:
        return await authorize(db, workspace_id, actor, role)

    return role_checker


get_workspace_member = require_role(OrgRole.member)
