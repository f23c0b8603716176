"""API and service tests for the signal log."""

from __future__ import annotations

import asyncio
import uuid

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from eventrank.models.signal import SignalPolarity, SignalType, UserSignal
from eventrank.models.taste_profile import UserTasteProfile
from eventrank.services import signal_service
from eventrank.tests.utils import auth_headers, make_event


async def _profile(session, user_id):
    result = await session.execute(
        select(UserTasteProfile)
        .where(UserTasteProfile.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


@pytest.mark.asyncio
async def test_record_signal_is_idempotent(client, session):
    user_id = uuid.uuid4()
    headers = auth_headers(user_id)
    event = await make_event(session)
    payload = {"event_id": str(event.id), "signal_type": "favorite"}

    first = await client.post("/api/me/signals", json=payload, headers=headers)
    second = await client.post("/api/me/signals", json=payload, headers=headers)
    assert first.status_code == 200
    assert second.status_code == 200
    assert first.json()["id"] == second.json()["id"]
    assert first.json()["polarity"] == "positive"

    count = await session.scalar(select(func.count(UserSignal.id)).where(UserSignal.user_id == user_id))
    assert count == 1


@pytest.mark.asyncio
async def test_record_signal_unknown_type_rejected(client, session):
    event = await make_event(session)
    res = await client.post(
        "/api/me/signals",
        json={"event_id": str(event.id), "signal_type": "bookmark"},
        headers=auth_headers(),
    )
    assert res.status_code == 422


@pytest.mark.asyncio
async def test_record_signal_without_event_id_rejected(client):
    res = await client.post("/api/me/signals", json={"signal_type": "favorite"}, headers=auth_headers())
    assert res.status_code == 422


@pytest.mark.asyncio
async def test_concurrent_records_keep_one_active_row(session):
    user_id = uuid.uuid4()
    event = await make_event(session)
    factory = async_sessionmaker(session.bind, expire_on_commit=False, class_=AsyncSession)

    async def record():
        async with factory() as own_session:
            return await signal_service.record_signal(own_session, user_id, event.id, SignalType.FAVORITE)

    results = await asyncio.gather(*(record() for _ in range(8)))
    assert all(isinstance(signal, UserSignal) for signal in results)
    assert len({signal.id for signal in results}) == 1

    count = await session.scalar(select(func.count(UserSignal.id)).where(UserSignal.user_id == user_id))
    assert count == 1


@pytest.mark.asyncio
async def test_record_signal_unknown_event_returns_404(client):
    res = await client.post(
        "/api/me/signals",
        json={"event_id": str(uuid.uuid4()), "signal_type": "share"},
        headers=auth_headers(),
    )
    assert res.status_code == 404


@pytest.mark.asyncio
async def test_signals_require_auth(client):
    res = await client.get("/api/me/taste")
    assert res.status_code == 401


@pytest.mark.asyncio
async def test_remove_signal_deactivates_and_is_noop_when_missing(client, session):
    user_id = uuid.uuid4()
    headers = auth_headers(user_id)
    event = await make_event(session)
    await client.post("/api/me/signals", json={"event_id": str(event.id), "signal_type": "hide"}, headers=headers)

    removed = await client.delete(f"/api/me/signals/{event.id}/hide", headers=headers)
    assert removed.status_code == 204
    again = await client.delete(f"/api/me/signals/{event.id}/hide", headers=headers)
    assert again.status_code == 204

    rows = (
        await session.execute(
            select(UserSignal)
            .where(UserSignal.user_id == user_id)
            .execution_options(populate_existing=True)
        )
    ).scalars().all()
    assert len(rows) == 1
    assert rows[0].active is False
    assert rows[0].deactivated_at is not None


@pytest.mark.asyncio
async def test_record_after_remove_appends_new_row(session):
    user_id = uuid.uuid4()
    event = await make_event(session)
    first = await signal_service.record_signal(session, user_id, event.id, SignalType.CALENDAR)
    assert await signal_service.remove_signal(session, user_id, event.id, SignalType.CALENDAR) is True
    second = await signal_service.record_signal(session, user_id, event.id, SignalType.CALENDAR)

    assert second.id != first.id
    active = await signal_service.list_active_signals(session, user_id)
    assert [signal.id for signal in active] == [second.id]


@pytest.mark.asyncio
async def test_reactivate_restores_signal(client, session):
    user_id = uuid.uuid4()
    headers = auth_headers(user_id)
    event = await make_event(session)
    payload = {"event_id": str(event.id), "signal_type": "share"}
    created = await client.post("/api/me/signals", json=payload, headers=headers)
    await client.delete(f"/api/me/signals/{event.id}/share", headers=headers)

    res = await client.post("/api/me/signals/reactivate", json=payload, headers=headers)
    assert res.status_code == 200
    body = res.json()
    assert body["id"] == created.json()["id"]
    assert body["active"] is True
    assert body["deactivated_at"] is None


@pytest.mark.asyncio
async def test_reactivate_without_history_returns_404(client, session):
    event = await make_event(session)
    res = await client.post(
        "/api/me/signals/reactivate",
        json={"event_id": str(event.id), "signal_type": "favorite"},
        headers=auth_headers(),
    )
    assert res.status_code == 404


@pytest.mark.asyncio
async def test_mutations_invalidate_taste_profile(session):
    user_id = uuid.uuid4()
    event = await make_event(session, embedding=[1.0, 0.0, 0.0])

    await signal_service.record_signal(session, user_id, event.id, SignalType.FAVORITE)
    profile = await _profile(session, user_id)
    assert profile.signal_version == 1
    assert profile.computed_at is None

    # A duplicate is not a mutation.
    await signal_service.record_signal(session, user_id, event.id, SignalType.FAVORITE)
    assert (await _profile(session, user_id)).signal_version == 1

    await signal_service.remove_signal(session, user_id, event.id, SignalType.FAVORITE)
    assert (await _profile(session, user_id)).signal_version == 2

    assert await signal_service.remove_signal(session, user_id, event.id, SignalType.FAVORITE) is False
    assert (await _profile(session, user_id)).signal_version == 2


@pytest.mark.asyncio
async def test_taste_history_groups_signals(client, session):
    user_id = uuid.uuid4()
    headers = auth_headers(user_id)
    liked = await make_event(session, title="Liked")
    hidden = await make_event(session, title="Hidden")
    dropped = await make_event(session, title="Dropped")
    await signal_service.record_signal(session, user_id, liked.id, SignalType.FAVORITE)
    await signal_service.record_signal(session, user_id, hidden.id, SignalType.HIDE)
    await signal_service.record_signal(session, user_id, dropped.id, SignalType.VIEW_SOURCE)
    await signal_service.remove_signal(session, user_id, dropped.id, SignalType.VIEW_SOURCE)

    res = await client.get("/api/me/taste", headers=headers)
    assert res.status_code == 200
    body = res.json()
    assert [entry["title"] for entry in body["positive"]] == ["Liked"]
    assert [entry["title"] for entry in body["negative"]] == ["Hidden"]
    assert [entry["title"] for entry in body["inactive"]] == ["Dropped"]


@pytest.mark.asyncio
async def test_count_active_signals_by_polarity(session):
    user_id = uuid.uuid4()
    event = await make_event(session)
    for kind in (SignalType.FAVORITE, SignalType.SHARE, SignalType.HIDE):
        await signal_service.record_signal(session, user_id, event.id, kind)

    counts = await signal_service.count_active_signals(session, user_id)
    assert counts == {SignalPolarity.POSITIVE: 2, SignalPolarity.NEGATIVE: 1}
