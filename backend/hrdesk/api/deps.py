# ruff: noqa: B008
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, status

from hrdesk.db import SessionDep
from hrdesk.exceptions import AppError
from hrdesk.models.user import User
from hrdesk.schemas.auth import Capabilities
from hrdesk.services.access import AccessResolver


async def get_current_user(
    session: SessionDep,
    x_user_id: int = Header(),
) -> User:
    """Load the acting user named by the dev auth header."""
    user = await session.get(User, x_user_id)
    if user is None:
        raise AppError("Unknown user", status_code=status.HTTP_401_UNAUTHORIZED)
    return user


CurrentUserDep = Annotated[User, Depends(get_current_user)]


async def get_actor(session: SessionDep, user: CurrentUserDep) -> Capabilities:
    """Resolve the acting user's capabilities once per request."""
    return await AccessResolver(session).resolve(user)


ActorDep = Annotated[Capabilities, Depends(get_actor)]


async def require_privileged(actor: ActorDep) -> Capabilities:
    """Require superadmin or HRD for the request."""
    if not actor.is_privileged:
        raise AppError("Superadmin or HRD access required", status_code=status.HTTP_403_FORBIDDEN)
    return actor


PrivilegedDep = Annotated[Capabilities, Depends(require_privileged)]
