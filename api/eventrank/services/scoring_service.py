"""Deterministic event scoring with curator boosts and admin overrides.

Invariants:
- An admin override replaces its category outright; it is never added to the
  AI score or to curator boosts.
- Aggregated curator boosts are clamped per category to [-6, +6]; final
  categories are clamped to [0, 10], so totals always land in [0, 30].
- Clearing the admin override never touches curator boosts.
"""

from __future__ import annotations

import logging
import uuid
from typing import Iterable, Mapping

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from eventrank.models.event import SCORE_CATEGORIES, Event
from eventrank.schema.scoring import (
    AdminOverride,
    AdminOverrideSet,
    AIScores,
    CategoryDeltas,
    CuratorBoost,
    CuratorBoostSet,
    FinalScores,
    ScoreBreakdownRead,
    ScoreOverride,
    ScoreUpdateRead,
)
from eventrank.utils.datetime import utcnow

BOOST_AGGREGATE_LIMIT = 6
CATEGORY_MIN = 0
CATEGORY_MAX = 10

logger = logging.getLogger("eventrank.services.scoring")


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def aggregate_curator_boosts(boosts: Iterable[CuratorBoost] | None) -> CategoryDeltas:
    """Sum boosts per category across curators, clamping each sum to +/-6."""
    totals = {category: 0 for category in SCORE_CATEGORIES}
    for boost in boosts or ():
        for category in SCORE_CATEGORIES:
            totals[category] += getattr(boost, category) or 0
    return CategoryDeltas(
        **{
            category: _clamp(value, -BOOST_AGGREGATE_LIMIT, BOOST_AGGREGATE_LIMIT)
            for category, value in totals.items()
        }
    )


def calculate_final_scores(
    ai_scores: AIScores | Mapping[str, int], override: ScoreOverride | None
) -> FinalScores:
    """Combine AI sub-scores, boosts, and the admin override into final scores."""
    if not isinstance(ai_scores, AIScores):
        # Missing or null sub-scores read as 0.
        ai_scores = AIScores(**{category: ai_scores.get(category) or 0 for category in SCORE_CATEGORIES})
    boosts = aggregate_curator_boosts(override.curator_boosts if override else None)
    admin = override.admin_override if override else None

    finals: dict[str, int] = {}
    for category in SCORE_CATEGORIES:
        admin_value = getattr(admin, category) if admin else None
        if admin_value is not None:
            finals[category] = admin_value
        else:
            finals[category] = _clamp(
                getattr(ai_scores, category) + getattr(boosts, category), CATEGORY_MIN, CATEGORY_MAX
            )
    return FinalScores(**finals, total=sum(finals.values()))


def format_curator_boosts(boosts: Iterable[CuratorBoost] | None) -> str | None:
    """Human summary of aggregated boosts without curator names."""
    totals = aggregate_curator_boosts(boosts)
    parts = [
        f"{value:+d} {category}"
        for category in SCORE_CATEGORIES
        if (value := getattr(totals, category)) != 0
    ]
    if not parts:
        return None
    return f"Curator boosts: {', '.join(parts)}"


def load_override(event: Event) -> ScoreOverride:
    """Parse the persisted override document (empty when unset)."""
    return ScoreOverride.model_validate(event.score_override or {})


def _store_override(event: Event, override: ScoreOverride) -> FinalScores:
    """Persist the override document and the recomputed total on the event."""
    finals = calculate_final_scores(event.ai_scores(), override)
    event.score_override = override.model_dump(mode="json")
    event.score = finals.total
    return finals


async def _get_event_for_update(session: AsyncSession, event_id: uuid.UUID) -> Event:
    # Row lock on PostgreSQL; SQLite serializes writers on its own.
    result = await session.execute(
        select(Event).where(Event.id == event_id).with_for_update().execution_options(populate_existing=True)
    )
    event = result.scalar_one_or_none()
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return event


async def _commit_update(session: AsyncSession, event: Event, override: ScoreOverride) -> ScoreUpdateRead:
    finals = _store_override(event, override)
    await session.commit()
    return ScoreUpdateRead(
        event_id=event.id,
        score_override=override,
        final_scores=finals,
        score=finals.total,
    )


async def get_score_breakdown(session: AsyncSession, event_id: uuid.UUID) -> ScoreBreakdownRead:
    """Return AI scores, boosts, override, and finals for one event."""
    event = await session.get(Event, event_id)
    if not event:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    override = load_override(event)
    return ScoreBreakdownRead(
        event_id=event.id,
        ai_scores=AIScores(**event.ai_scores()),
        curator_boost_totals=aggregate_curator_boosts(override.curator_boosts),
        boost_summary=format_curator_boosts(override.curator_boosts),
        score_override=override,
        final_scores=calculate_final_scores(event.ai_scores(), override),
        score=event.score,
    )


async def set_admin_override(
    session: AsyncSession, event_id: uuid.UUID, admin_id: str, payload: AdminOverrideSet
) -> ScoreUpdateRead:
    """Replace the event's admin override; curator boosts are preserved."""
    event = await _get_event_for_update(session, event_id)
    override = load_override(event)
    override.admin_override = AdminOverride(
        rarity=payload.rarity,
        unique=payload.unique,
        magnitude=payload.magnitude,
        reason=payload.reason,
        set_by=admin_id,
        set_at=utcnow(),
    )
    result = await _commit_update(session, event, override)
    logger.info(
        "Admin override set",
        extra={"event_id": str(event_id), "admin_id": admin_id, "score": result.score},
    )
    return result


async def clear_admin_override(session: AsyncSession, event_id: uuid.UUID, admin_id: str) -> ScoreUpdateRead:
    """Remove only the admin override."""
    event = await _get_event_for_update(session, event_id)
    override = load_override(event)
    override.admin_override = None
    result = await _commit_update(session, event, override)
    logger.info(
        "Admin override cleared",
        extra={"event_id": str(event_id), "admin_id": admin_id, "score": result.score},
    )
    return result


async def set_curator_boost(
    session: AsyncSession, event_id: uuid.UUID, curator_id: str, payload: CuratorBoostSet
) -> ScoreUpdateRead:
    """Upsert the curator's boost; a resubmission replaces the prior one."""
    event = await _get_event_for_update(session, event_id)
    override = load_override(event)
    boosts = [boost for boost in override.curator_boosts if boost.curator_id != curator_id]
    boosts.append(
        CuratorBoost(
            curator_id=curator_id,
            rarity=payload.rarity,
            unique=payload.unique,
            magnitude=payload.magnitude,
            boosted_at=utcnow(),
        )
    )
    override.curator_boosts = boosts
    result = await _commit_update(session, event, override)
    logger.info(
        "Curator boost set",
        extra={"event_id": str(event_id), "curator_id": curator_id, "score": result.score},
    )
    return result


async def remove_curator_boost(session: AsyncSession, event_id: uuid.UUID, curator_id: str) -> ScoreUpdateRead:
    """Withdraw the curator's boost; a no-op when none exists."""
    event = await _get_event_for_update(session, event_id)
    override = load_override(event)
    override.curator_boosts = [boost for boost in override.curator_boosts if boost.curator_id != curator_id]
    result = await _commit_update(session, event, override)
    logger.info(
        "Curator boost removed",
        extra={"event_id": str(event_id), "curator_id": curator_id, "score": result.score},
    )
    return result


async def apply_ai_scores(
    session: AsyncSession,
    event_id: uuid.UUID,
    *,
    rarity: int | None,
    unique: int | None,
    magnitude: int | None,
) -> FinalScores:
    """Store fresh automated sub-scores and recompute the persisted total."""
    # Raises ValidationError for values outside 0-10 before the row is touched.
    AIScores(rarity=rarity or 0, unique=unique or 0, magnitude=magnitude or 0)
    event = await _get_event_for_update(session, event_id)
    event.score_rarity = rarity
    event.score_unique = unique
    event.score_magnitude = magnitude
    finals = _store_override(event, load_override(event))
    await session.commit()
    return finals


async def rescore_events(session: AsyncSession, *, batch_size: int = 500) -> dict[str, int]:
    """Recompute every persisted total; returns scanned/changed counts."""
    scanned = 0
    changed = 0
    last_id: uuid.UUID | None = None
    while True:
        stmt = select(Event).order_by(Event.id).limit(batch_size)
        if last_id is not None:
            stmt = stmt.where(Event.id > last_id)
        result = await session.execute(stmt)
        events = result.scalars().all()
        if not events:
            break
        for event in events:
            scanned += 1
            total = calculate_final_scores(event.ai_scores(), load_override(event)).total
            if event.score != total:
                event.score = total
                changed += 1
        last_id = events[-1].id
        await session.commit()
    return {"scanned": scanned, "changed": changed}
