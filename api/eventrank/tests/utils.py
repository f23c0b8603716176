"""Shared helpers for API tests."""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from eventrank.core.security import ROLE_ADMIN, ROLE_CURATOR, create_access_token
from eventrank.models.event import Event


def auth_headers(user_id: uuid.UUID | None = None, *, roles: Iterable[str] = ()) -> dict[str, str]:
    """Bearer headers for a user id as the upstream auth service would mint them."""
    token = create_access_token(str(user_id or uuid.uuid4()), roles=roles)
    return {"Authorization": f"Bearer {token}"}


def admin_headers(user_id: uuid.UUID | None = None) -> dict[str, str]:
    return auth_headers(user_id, roles=[ROLE_ADMIN])


def curator_headers(user_id: uuid.UUID | None = None) -> dict[str, str]:
    return auth_headers(user_id, roles=[ROLE_CURATOR])


async def make_event(
    session: AsyncSession,
    *,
    title: str = "Event",
    start_at: datetime | None = None,
    embedding: list[float] | None = None,
    rarity: int | None = 5,
    unique: int | None = 5,
    magnitude: int | None = 5,
    score: int | None = None,
) -> Event:
    """Persist an event; ``start_at`` is stored in UTC so SQLite comparisons line up."""
    start = start_at or datetime.now(timezone.utc) + timedelta(days=1)
    event = Event(
        title=title,
        start_at=start.astimezone(timezone.utc),
        embedding=embedding,
        score_rarity=rarity,
        score_unique=unique,
        score_magnitude=magnitude,
        score=score,
    )
    session.add(event)
    await session.commit()
    return event
