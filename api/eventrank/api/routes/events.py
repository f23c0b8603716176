"""Event ranking and moderation endpoints."""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from eventrank.api.deps import CurrentUser, get_db, require_admin, require_curator
from eventrank.schema.feed import TopEventsRead
from eventrank.schema.scoring import AdminOverrideSet, CuratorBoostSet, ScoreBreakdownRead, ScoreUpdateRead
from eventrank.services import feed_service, scoring_service

router = APIRouter()


@router.get("/top", response_model=TopEventsRead)
async def read_top_events(
    session: AsyncSession = Depends(get_db),
    limit: int | None = Query(None, ge=1, le=200),
) -> TopEventsRead:
    """Upcoming events ranked by persisted total score."""
    return await feed_service.top_ranked_events(session, limit=limit)


@router.get("/{event_id}/score", response_model=ScoreBreakdownRead)
async def read_score(
    event_id: uuid.UUID,
    session: AsyncSession = Depends(get_db),
    _: CurrentUser = Depends(require_curator),
) -> ScoreBreakdownRead:
    """Return the scoring breakdown shown in the moderation panel."""
    return await scoring_service.get_score_breakdown(session, event_id)


@router.put("/{event_id}/score/admin-override", response_model=ScoreUpdateRead)
async def set_admin_override(
    event_id: uuid.UUID,
    payload: AdminOverrideSet,
    session: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> ScoreUpdateRead:
    """Set absolute category values that supersede AI scores and boosts."""
    return await scoring_service.set_admin_override(session, event_id, str(admin.id), payload)


@router.delete("/{event_id}/score/admin-override", response_model=ScoreUpdateRead)
async def clear_admin_override(
    event_id: uuid.UUID,
    session: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
) -> ScoreUpdateRead:
    """Clear the admin override, leaving curator boosts intact."""
    return await scoring_service.clear_admin_override(session, event_id, str(admin.id))


@router.put("/{event_id}/score/curator-boost", response_model=ScoreUpdateRead)
async def set_curator_boost(
    event_id: uuid.UUID,
    payload: CuratorBoostSet,
    session: AsyncSession = Depends(get_db),
    curator: CurrentUser = Depends(require_curator),
) -> ScoreUpdateRead:
    """Set or replace the caller's boost for this event."""
    return await scoring_service.set_curator_boost(session, event_id, str(curator.id), payload)


@router.delete("/{event_id}/score/curator-boost", response_model=ScoreUpdateRead)
async def remove_curator_boost(
    event_id: uuid.UUID,
    session: AsyncSession = Depends(get_db),
    curator: CurrentUser = Depends(require_curator),
) -> ScoreUpdateRead:
    """Withdraw the caller's boost for this event."""
    return await scoring_service.remove_curator_boost(session, event_id, str(curator.id))
