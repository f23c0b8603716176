"""Centroid builder: lazily derived taste vectors with a versioned cache.

Implementation notes:
- A cache row with ``computed_at`` set and younger than the TTL is served as-is.
- Recomputation reads the active signals inside the rolling window, bulk-loads
  their embeddings in one query, and averages each polarity separately.
- The result is written back only if ``signal_version`` has not moved since the
  read, so a slow recompute never clobbers a newer invalidation.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from eventrank.core.config import settings
from eventrank.db.dialect import upsert_insert
from eventrank.models.event import Event
from eventrank.models.signal import SignalPolarity
from eventrank.models.taste_profile import UserTasteProfile
from eventrank.services import signal_service
from eventrank.utils.datetime import as_utc, utcnow
from eventrank.utils.vectors import mean_vector

logger = logging.getLogger("eventrank.services.centroids")


@dataclass(slots=True)
class Centroids:
    """Positive/negative taste vectors; None means no contributing events."""

    positive: list[float] | None
    negative: list[float] | None
    computed_at: datetime | None = None
    signal_version: int = 0


def signal_window_start(now: datetime | None = None) -> datetime:
    """Oldest signal timestamp that still counts toward the taste model."""
    return (now or utcnow()) - timedelta(days=settings.signal_window_days)


def is_cache_fresh(profile: UserTasteProfile, now: datetime) -> bool:
    computed_at = as_utc(profile.computed_at)
    if computed_at is None:
        return False
    ttl_minutes = settings.centroid_cache_ttl_minutes
    if ttl_minutes <= 0:
        return True
    return now - computed_at < timedelta(minutes=ttl_minutes)


async def _get_or_create_profile(session: AsyncSession, user_id: uuid.UUID) -> UserTasteProfile:
    now = utcnow()
    await session.execute(
        upsert_insert(session, UserTasteProfile)
        .values(id=uuid.uuid4(), user_id=user_id, signal_version=0, created_at=now, updated_at=now)
        .on_conflict_do_nothing(index_elements=["user_id"])
    )
    await session.commit()
    result = await session.execute(
        select(UserTasteProfile)
        .where(UserTasteProfile.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def _load_embeddings(session: AsyncSession, event_ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, list[float]]:
    """Fetch embeddings for many events in a single round trip."""
    ids = list(set(event_ids))
    if not ids:
        return {}
    result = await session.execute(
        select(Event.id, Event.embedding).where(Event.id.in_(ids), Event.embedding.is_not(None))
    )
    embeddings: dict[uuid.UUID, list[float]] = {}
    for event_id, embedding in result.all():
        if not embedding:
            continue
        if len(embedding) != settings.embedding_dimensions:
            logger.warning(
                "Skipping embedding with unexpected dimensions",
                extra={"event_id": str(event_id), "dimensions": len(embedding)},
            )
            continue
        embeddings[event_id] = embedding
    return embeddings


async def compute_centroids(session: AsyncSession, user_id: uuid.UUID, *, now: datetime | None = None) -> Centroids:
    """Derive centroids from the current active-signal set without touching the cache.

    Each referenced event contributes once per polarity, even when several
    positive signal types point at it.
    """
    now = now or utcnow()
    signals = await signal_service.list_active_signals(session, user_id, since=signal_window_start(now))
    positive_ids = {signal.event_id for signal in signals if signal.polarity is SignalPolarity.POSITIVE}
    negative_ids = {signal.event_id for signal in signals if signal.polarity is SignalPolarity.NEGATIVE}
    embeddings = await _load_embeddings(session, positive_ids | negative_ids)

    positive_vectors = [embeddings[event_id] for event_id in sorted(positive_ids) if event_id in embeddings]
    negative_vectors = [embeddings[event_id] for event_id in sorted(negative_ids) if event_id in embeddings]
    logger.info(
        "Computed centroids",
        extra={
            "user_id": str(user_id),
            "positive_events": len(positive_vectors),
            "positive_signals": len(positive_ids),
            "negative_events": len(negative_vectors),
            "negative_signals": len(negative_ids),
        },
    )
    return Centroids(
        positive=mean_vector(positive_vectors),
        negative=mean_vector(negative_vectors),
        computed_at=now,
    )


async def get_centroids(
    session: AsyncSession, user_id: uuid.UUID, *, force_refresh: bool = False
) -> Centroids:
    """Return cached centroids or recompute and cache them."""
    profile = await _get_or_create_profile(session, user_id)
    now = utcnow()
    if not force_refresh and is_cache_fresh(profile, now):
        return Centroids(
            positive=profile.positive_centroid,
            negative=profile.negative_centroid,
            computed_at=as_utc(profile.computed_at),
            signal_version=profile.signal_version,
        )

    seen_version = profile.signal_version
    centroids = await compute_centroids(session, user_id, now=now)
    centroids.signal_version = seen_version
    result = await session.execute(
        update(UserTasteProfile)
        .where(UserTasteProfile.user_id == user_id, UserTasteProfile.signal_version == seen_version)
        .values(
            positive_centroid=centroids.positive,
            negative_centroid=centroids.negative,
            computed_at=now,
            updated_at=now,
        )
        .execution_options(synchronize_session=False)
    )
    await session.commit()
    if not result.rowcount:
        logger.info(
            "Centroid cache moved on during recompute; serving uncached result",
            extra={"user_id": str(user_id), "seen_version": seen_version},
        )
    return centroids


async def get_profile(session: AsyncSession, user_id: uuid.UUID) -> UserTasteProfile:
    """Return the (possibly stale) cache row for status reporting."""
    return await _get_or_create_profile(session, user_id)
