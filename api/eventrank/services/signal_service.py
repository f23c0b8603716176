"""Signal store: idempotent, concurrency-safe writes to the per-user signal log.

Invariants:
- At most one active signal per (user, event, signal type), enforced by a
  partial unique index; appends use INSERT ... ON CONFLICT DO NOTHING so two
  racing duplicates resolve to a single row without a read-then-write gap.
- Every change to the active set bumps the user's cache version and nulls the
  cached centroids in the same transaction.
- Signals are never deleted; retraction only clears ``active``.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime

from fastapi import HTTPException, status
from sqlalchemy import func, select, text, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from eventrank.db.dialect import upsert_insert
from eventrank.models.event import Event
from eventrank.models.signal import SignalPolarity, SignalType, UserSignal
from eventrank.models.taste_profile import UserTasteProfile
from eventrank.schema.signal import TasteEvent, TasteHistory
from eventrank.utils.datetime import utcnow

logger = logging.getLogger("eventrank.services.signals")

_ACTIVE_IDENTITY = ["user_id", "event_id", "signal_type"]
_MAX_APPEND_ATTEMPTS = 2


async def _invalidate_taste_profile(session: AsyncSession, user_id: uuid.UUID, now: datetime) -> None:
    """Null the cached centroids and bump the version, creating the row if needed."""
    stmt = upsert_insert(session, UserTasteProfile).values(
        id=uuid.uuid4(),
        user_id=user_id,
        positive_centroid=None,
        negative_centroid=None,
        computed_at=None,
        signal_version=1,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id"],
        set_={
            "positive_centroid": None,
            "negative_centroid": None,
            "computed_at": None,
            "signal_version": UserTasteProfile.signal_version + 1,
            "updated_at": now,
        },
    )
    await session.execute(stmt)


async def _require_event(session: AsyncSession, event_id: uuid.UUID) -> None:
    exists = await session.scalar(select(Event.id).where(Event.id == event_id))
    if not exists:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")


async def get_active_signal(
    session: AsyncSession, user_id: uuid.UUID, event_id: uuid.UUID, signal_type: SignalType
) -> UserSignal | None:
    result = await session.execute(
        select(UserSignal).where(
            UserSignal.user_id == user_id,
            UserSignal.event_id == event_id,
            UserSignal.signal_type == signal_type,
            UserSignal.active.is_(True),
        )
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def record_signal(
    session: AsyncSession, user_id: uuid.UUID, event_id: uuid.UUID, signal_type: SignalType
) -> UserSignal:
    """Append an active signal unless one with the same identity exists.

    A duplicate (double tap, retry, concurrent request) is a no-op that
    returns the already-active signal.
    """
    await _require_event(session, event_id)
    for _ in range(_MAX_APPEND_ATTEMPTS):
        now = utcnow()
        stmt = (
            upsert_insert(session, UserSignal)
            .values(
                id=uuid.uuid4(),
                user_id=user_id,
                event_id=event_id,
                signal_type=signal_type,
                polarity=signal_type.polarity,
                active=True,
                signaled_at=now,
            )
            .on_conflict_do_nothing(index_elements=_ACTIVE_IDENTITY, index_where=text("active"))
            .returning(UserSignal.id)
        )
        inserted_id = (await session.execute(stmt)).scalar_one_or_none()
        if inserted_id is not None:
            await _invalidate_taste_profile(session, user_id, now)
            await session.commit()
            logger.info(
                "Recorded %s signal",
                signal_type.value,
                extra={"user_id": str(user_id), "event_id": str(event_id)},
            )
            return await session.get(UserSignal, inserted_id)
        await session.commit()
        existing = await get_active_signal(session, user_id, event_id, signal_type)
        if existing:
            logger.info(
                "Duplicate %s signal ignored",
                signal_type.value,
                extra={"user_id": str(user_id), "event_id": str(event_id)},
            )
            return existing
    # The conflicting row was retracted between our insert and re-read twice in a row.
    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Signal changed concurrently; retry")


async def remove_signal(
    session: AsyncSession, user_id: uuid.UUID, event_id: uuid.UUID, signal_type: SignalType
) -> bool:
    """Deactivate the matching active signal; returns False when there was none."""
    now = utcnow()
    result = await session.execute(
        update(UserSignal)
        .where(
            UserSignal.user_id == user_id,
            UserSignal.event_id == event_id,
            UserSignal.signal_type == signal_type,
            UserSignal.active.is_(True),
        )
        .values(active=False, deactivated_at=now)
        .execution_options(synchronize_session=False)
    )
    if not result.rowcount:
        await session.rollback()
        return False
    await _invalidate_taste_profile(session, user_id, now)
    await session.commit()
    logger.info(
        "Removed %s signal",
        signal_type.value,
        extra={"user_id": str(user_id), "event_id": str(event_id)},
    )
    return True


async def reactivate_signal(
    session: AsyncSession, user_id: uuid.UUID, event_id: uuid.UUID, signal_type: SignalType
) -> UserSignal:
    """Restore the most recently retracted signal for this identity."""
    existing = await get_active_signal(session, user_id, event_id, signal_type)
    if existing:
        return existing
    result = await session.execute(
        select(UserSignal)
        .where(
            UserSignal.user_id == user_id,
            UserSignal.event_id == event_id,
            UserSignal.signal_type == signal_type,
            UserSignal.active.is_(False),
        )
        .order_by(UserSignal.signaled_at.desc())
        .limit(1)
        .execution_options(populate_existing=True)
    )
    signal = result.scalar_one_or_none()
    if not signal:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Signal not found")
    now = utcnow()
    signal.active = True
    signal.deactivated_at = None
    try:
        await session.flush()
        await _invalidate_taste_profile(session, user_id, now)
        await session.commit()
    except IntegrityError:
        # A concurrent record() won the unique slot; theirs is the active one.
        await session.rollback()
        existing = await get_active_signal(session, user_id, event_id, signal_type)
        if existing:
            return existing
        raise
    logger.info(
        "Reactivated %s signal",
        signal_type.value,
        extra={"user_id": str(user_id), "event_id": str(event_id)},
    )
    return signal


async def list_active_signals(
    session: AsyncSession,
    user_id: uuid.UUID,
    *,
    polarity: SignalPolarity | None = None,
    since: datetime | None = None,
    limit: int | None = None,
) -> list[UserSignal]:
    """Active signals for a user, newest first."""
    stmt = select(UserSignal).where(UserSignal.user_id == user_id, UserSignal.active.is_(True))
    if polarity is not None:
        stmt = stmt.where(UserSignal.polarity == polarity)
    if since is not None:
        stmt = stmt.where(UserSignal.signaled_at >= since)
    stmt = stmt.order_by(UserSignal.signaled_at.desc(), UserSignal.id).execution_options(populate_existing=True)
    if limit is not None:
        stmt = stmt.limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def count_active_signals(
    session: AsyncSession, user_id: uuid.UUID, *, since: datetime | None = None
) -> dict[SignalPolarity, int]:
    stmt = (
        select(UserSignal.polarity, func.count(UserSignal.id))
        .where(UserSignal.user_id == user_id, UserSignal.active.is_(True))
        .group_by(UserSignal.polarity)
    )
    if since is not None:
        stmt = stmt.where(UserSignal.signaled_at >= since)
    result = await session.execute(stmt)
    counts = {polarity: 0 for polarity in SignalPolarity}
    counts.update({row[0]: row[1] for row in result.all()})
    return counts


async def get_taste_history(session: AsyncSession, user_id: uuid.UUID) -> TasteHistory:
    """All signals with event titles, split into active positive/negative and inactive."""
    result = await session.execute(
        select(UserSignal, Event.title, Event.start_at)
        .join(Event, Event.id == UserSignal.event_id)
        .where(UserSignal.user_id == user_id)
        .order_by(UserSignal.signaled_at.desc())
        .execution_options(populate_existing=True)
    )
    history = TasteHistory()
    for signal, title, start_at in result.all():
        entry = TasteEvent(
            event_id=signal.event_id,
            title=title,
            start_at=start_at,
            signal_type=signal.signal_type,
            signaled_at=signal.signaled_at,
            active=signal.active,
        )
        if not signal.active:
            history.inactive.append(entry)
        elif signal.polarity is SignalPolarity.POSITIVE:
            history.positive.append(entry)
        else:
            history.negative.append(entry)
    return history
