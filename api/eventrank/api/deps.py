from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import AsyncIterator

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from eventrank.core.config import settings
from eventrank.core.security import ROLE_ADMIN, ROLE_CURATOR, decode_token
from eventrank.db.session import get_session

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.api_prefix}/auth/token", auto_error=False)


@dataclass(slots=True, frozen=True)
class CurrentUser:
    """Identity asserted by the external auth boundary."""

    id: uuid.UUID
    roles: frozenset[str] = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return ROLE_ADMIN in self.roles or str(self.id).lower() in settings.admin_user_ids

    @property
    def is_curator(self) -> bool:
        return self.is_admin or ROLE_CURATOR in self.roles


async def get_db() -> AsyncIterator[AsyncSession]:
    async for session in get_session():
        yield session


def _resolve_user_from_token(token: str) -> CurrentUser:
    payload = decode_token(token)
    if not payload or payload.get("type") != "access":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    try:
        user_id = uuid.UUID(str(payload.get("sub")))
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc
    roles = payload.get("roles") or []
    if not isinstance(roles, list):
        roles = []
    return CurrentUser(id=user_id, roles=frozenset(str(role) for role in roles))


async def get_current_user(token: str | None = Depends(oauth2_scheme)) -> CurrentUser:
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return _resolve_user_from_token(token)


async def get_optional_current_user(token: str | None = Depends(oauth2_scheme)) -> CurrentUser | None:
    if not token:
        return None
    return _resolve_user_from_token(token)


async def require_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not current_user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user


async def require_curator(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not current_user.is_curator:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Curator access required")
    return current_user
