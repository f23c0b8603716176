"""Ranking pipeline for the personalized feed and the global top list.

Invariants:
- Candidates, centroids, and liked anchors are materialized before the scoring
  loop; the loop itself never queries the database.
- Buckets follow local wall-clock days in ``settings.local_timezone``.
- Events without embeddings never enter the personalized feed but stay eligible
  for the global ranking by persisted ``score``.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventrank.core.config import settings
from eventrank.models.event import Event
from eventrank.models.signal import SignalPolarity
from eventrank.schema.feed import (
    Bucket,
    FeedEventRead,
    FeedExplanation,
    FeedMeta,
    FeedStatus,
    PersonalizedFeedRead,
    ScoredEventRead,
    TopEventsRead,
)
from eventrank.services import centroid_service, personalization_service, signal_service
from eventrank.utils.datetime import utcnow
from eventrank.utils.timezone import local_date_of, local_day_bounds, local_today, start_of_local_day

logger = logging.getLogger("eventrank.services.feed")

BUCKET_ORDER: dict[str, int] = {"today": 0, "tomorrow": 1, "week": 2, "later": 3}


def feed_window(now: datetime | None = None) -> tuple[datetime, datetime]:
    """From local midnight today through the end of the last local day in the window."""
    today = local_today(now)
    _, end = local_day_bounds(today + timedelta(days=settings.feed_window_days))
    return start_of_local_day(today), end


def assign_bucket(start_at: datetime, today: date) -> Bucket:
    """Bucket by local calendar day relative to ``today``."""
    days_out = (local_date_of(start_at) - today).days
    if days_out <= 0:
        return "today"
    if days_out == 1:
        return "tomorrow"
    if days_out < 7:
        return "week"
    return "later"


def rank_scored_events(entries: list[ScoredEventRead]) -> list[ScoredEventRead]:
    """Order by bucket, then score descending, then earliest start."""
    return sorted(
        entries,
        key=lambda entry: (BUCKET_ORDER[entry.bucket], -entry.score, entry.event.start_at, str(entry.event.id)),
    )


async def _load_candidates(session: AsyncSession, window_start: datetime, window_end: datetime) -> list[Event]:
    result = await session.execute(
        select(Event).where(Event.start_at >= window_start, Event.start_at < window_end)
    )
    return list(result.scalars().all())


async def build_personalized_feed(
    session: AsyncSession, user_id: uuid.UUID, *, now: datetime | None = None
) -> PersonalizedFeedRead:
    """Score, filter, tier, explain, bucket, and order upcoming events for a user."""
    now = now or utcnow()
    window_start, window_end = feed_window(now)
    signal_since = centroid_service.signal_window_start(now)
    signal_counts = await signal_service.count_active_signals(session, user_id, since=signal_since)
    meta = FeedMeta(
        signal_count=signal_counts[SignalPolarity.POSITIVE] + signal_counts[SignalPolarity.NEGATIVE],
        window_start=window_start,
        window_end=window_end,
    )

    centroids = await centroid_service.get_centroids(session, user_id)
    if centroids.positive is None:
        logger.info("Personalization unavailable", extra={"user_id": str(user_id)})
        return PersonalizedFeedRead(status=FeedStatus.NOT_ENOUGH_SIGNAL, meta=meta)

    hidden = {
        signal.event_id
        for signal in await signal_service.list_active_signals(
            session, user_id, polarity=SignalPolarity.NEGATIVE
        )
    }
    candidates = await _load_candidates(session, window_start, window_end)
    anchors = await personalization_service.load_liked_anchors(session, user_id, since=signal_since)
    today = local_today(now)

    entries: list[ScoredEventRead] = []
    for event in candidates:
        if not event.embedding:
            meta.candidates_without_embedding += 1
            continue
        if event.id in hidden:
            continue
        meta.candidates_considered += 1
        try:
            score = personalization_service.score_event(event.embedding, centroids.positive, centroids.negative)
        except ValueError:
            logger.warning("Skipping event with mismatched embedding", extra={"event_id": str(event.id)})
            continue
        if not personalization_service.is_included(score):
            continue
        tier = personalization_service.get_score_tier(score)
        explanation = None
        if tier is not None:
            other_anchors = [anchor for anchor in anchors if anchor.event_id != event.id]
            nearest = personalization_service.find_nearest_liked_event(event.embedding, other_anchors)
            if nearest:
                explanation = FeedExplanation(event_id=nearest.event_id, title=nearest.title)
        entries.append(
            ScoredEventRead(
                event=FeedEventRead.model_validate(event),
                score=score,
                tier=tier,
                explanation=explanation,
                bucket=assign_bucket(event.start_at, today),
            )
        )

    ranked = rank_scored_events(entries)
    logger.info(
        "Built personalized feed",
        extra={
            "user_id": str(user_id),
            "returned": len(ranked),
            "considered": meta.candidates_considered,
            "great": sum(1 for entry in ranked if entry.tier == "great"),
            "good": sum(1 for entry in ranked if entry.tier == "good"),
        },
    )
    return PersonalizedFeedRead(status=FeedStatus.READY, events=ranked, meta=meta)


async def top_ranked_events(
    session: AsyncSession, *, limit: int | None = None, now: datetime | None = None
) -> TopEventsRead:
    """Global top-N upcoming events by persisted total score."""
    window_start, window_end = feed_window(now)
    result = await session.execute(
        select(Event)
        .where(
            Event.start_at >= window_start,
            Event.start_at < window_end,
            Event.score.is_not(None),
        )
        .order_by(Event.score.desc(), Event.start_at.asc())
        .limit(limit or settings.top_events_limit)
    )
    return TopEventsRead(
        events=[FeedEventRead.model_validate(event) for event in result.scalars().all()],
        window_start=window_start,
        window_end=window_end,
    )
