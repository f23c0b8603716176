"""Similarity scoring, tiering, and nearest-liked-event explanations."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventrank.core.config import settings
from eventrank.models.event import Event
from eventrank.models.signal import SignalPolarity
from eventrank.services import signal_service
from eventrank.utils.datetime import as_utc
from eventrank.utils.vectors import Vector, cosine_similarity

Tier = Literal["great", "good"]


@dataclass(slots=True, frozen=True)
class LikedAnchor:
    """An event the user signaled positively, materialized for comparison."""

    event_id: uuid.UUID
    title: str
    embedding: Sequence[float]
    signaled_at: datetime


@dataclass(slots=True, frozen=True)
class NearestLiked:
    event_id: uuid.UUID
    title: str
    similarity: float


def score_event(
    embedding: Vector,
    positive_centroid: Vector,
    negative_centroid: Vector | None,
) -> float:
    """Map similarity to the taste centroids onto [0, 1].

    Non-decreasing in similarity to the positive centroid and non-increasing in
    similarity to the negative one; without a negative centroid its term is 0.
    """
    if embedding is None or positive_centroid is None:
        raise ValueError("score_event requires an embedding and a positive centroid")
    cos_pos = cosine_similarity(embedding, positive_centroid)
    cos_neg = cosine_similarity(embedding, negative_centroid) if negative_centroid is not None else 0.0
    return max(0.0, min(1.0, 0.5 + 0.5 * (cos_pos - cos_neg)))


def is_included(score: float) -> bool:
    """Scores at or below the cutoff are not relevant and leave the feed."""
    return score > settings.personalization_inclusion_cutoff


def get_score_tier(score: float) -> Tier | None:
    if score >= settings.tier_great_threshold:
        return "great"
    if score >= settings.tier_good_threshold:
        return "good"
    return None


def find_nearest_liked_event(embedding: Vector, anchors: Sequence[LikedAnchor]) -> NearestLiked | None:
    """Most similar liked event; ties go to the most recently signaled one."""
    best: tuple[float, datetime, LikedAnchor] | None = None
    for anchor in anchors:
        similarity = cosine_similarity(embedding, anchor.embedding)
        signaled_at = as_utc(anchor.signaled_at)
        if best is None or (similarity, signaled_at) > (best[0], best[1]):
            best = (similarity, signaled_at, anchor)
    if best is None:
        return None
    return NearestLiked(event_id=best[2].event_id, title=best[2].title, similarity=best[0])


async def load_liked_anchors(
    session: AsyncSession, user_id: uuid.UUID, *, since: datetime | None = None, limit: int | None = None
) -> list[LikedAnchor]:
    """Materialize the user's most recent liked events that carry embeddings.

    Capped to ``explanation_signal_limit`` signals so the pairwise comparison
    stays bounded; one anchor per event, stamped with its latest signal.
    """
    signals = await signal_service.list_active_signals(
        session,
        user_id,
        polarity=SignalPolarity.POSITIVE,
        since=since,
        limit=limit or settings.explanation_signal_limit,
    )
    latest: dict[uuid.UUID, datetime] = {}
    for signal in signals:
        signaled_at = as_utc(signal.signaled_at)
        if signal.event_id not in latest or signaled_at > latest[signal.event_id]:
            latest[signal.event_id] = signaled_at
    if not latest:
        return []
    result = await session.execute(
        select(Event.id, Event.title, Event.embedding).where(
            Event.id.in_(list(latest)), Event.embedding.is_not(None)
        )
    )
    return [
        LikedAnchor(event_id=event_id, title=title, embedding=embedding, signaled_at=latest[event_id])
        for event_id, title, embedding in result.all()
        if embedding and len(embedding) == settings.embedding_dimensions
    ]
