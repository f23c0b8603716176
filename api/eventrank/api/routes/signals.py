"""User endpoints for taste signals and the derived taste profile."""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from eventrank.api.deps import CurrentUser, get_current_user, get_db
from eventrank.models.signal import SignalPolarity, SignalType
from eventrank.schema.signal import (
    SignalCreate,
    SignalRead,
    TasteHistory,
    TasteProfileRead,
    TasteProfileRefresh,
)
from eventrank.services import centroid_service, signal_service

router = APIRouter()


@router.post("/me/signals", response_model=SignalRead)
async def record_signal(
    payload: SignalCreate,
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    """Record a signal; repeating an active one returns it unchanged."""
    return await signal_service.record_signal(session, current_user.id, payload.event_id, payload.signal_type)


@router.delete(
    "/me/signals/{event_id}/{signal_type}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_model=None,
)
async def remove_signal(
    event_id: uuid.UUID,
    signal_type: SignalType,
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> None:
    """Retract a signal; retracting a missing signal is a no-op."""
    await signal_service.remove_signal(session, current_user.id, event_id, signal_type)


@router.post("/me/signals/reactivate", response_model=SignalRead)
async def reactivate_signal(
    payload: SignalCreate,
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
):
    """Restore a previously retracted signal from history."""
    return await signal_service.reactivate_signal(session, current_user.id, payload.event_id, payload.signal_type)


@router.get("/me/taste", response_model=TasteHistory)
async def read_taste_history(
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> TasteHistory:
    """Return the current user's signal history."""
    return await signal_service.get_taste_history(session, current_user.id)


async def _profile_status(session: AsyncSession, user_id: uuid.UUID) -> TasteProfileRead:
    profile = await centroid_service.get_profile(session, user_id)
    counts = await signal_service.count_active_signals(
        session, user_id, since=centroid_service.signal_window_start()
    )
    return TasteProfileRead(
        user_id=user_id,
        computed_at=profile.computed_at,
        signal_version=profile.signal_version,
        has_positive=profile.positive_centroid is not None,
        has_negative=profile.negative_centroid is not None,
        active_positive_signals=counts[SignalPolarity.POSITIVE],
        active_negative_signals=counts[SignalPolarity.NEGATIVE],
    )


@router.get("/me/taste-profile", response_model=TasteProfileRead)
async def read_taste_profile(
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> TasteProfileRead:
    """Return centroid cache status for the current user."""
    return await _profile_status(session, current_user.id)


@router.post("/me/taste-profile/refresh", response_model=TasteProfileRead)
async def refresh_taste_profile(
    payload: TasteProfileRefresh,
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> TasteProfileRead:
    """Recompute centroids now (or serve the cache when ``force`` is false)."""
    await centroid_service.get_centroids(session, current_user.id, force_refresh=payload.force)
    return await _profile_status(session, current_user.id)
