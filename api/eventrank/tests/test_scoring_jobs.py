from __future__ import annotations

from eventrank.core.config import settings
from eventrank.jobs import schedule_registry
from eventrank.jobs.scoring import rescore_events_job
from eventrank.services import scoring_service


class _SessionStub:
    async def __aenter__(self):
        return "session"

    async def __aexit__(self, *exc_info):
        return False


def test_rescore_job_runs_in_its_own_session(monkeypatch):
    calls: list[tuple[object, int]] = []

    async def _rescore(session, *, batch_size):
        calls.append((session, batch_size))
        return {"scanned": 3, "changed": 1}

    monkeypatch.setattr("eventrank.jobs.scoring.async_session", lambda: _SessionStub())
    monkeypatch.setattr(scoring_service, "rescore_events", _rescore)

    assert rescore_events_job(batch_size=10) == {"scanned": 3, "changed": 1}
    assert calls == [("session", 10)]


def test_schedule_entries_follow_interval_setting(monkeypatch):
    monkeypatch.setattr(settings, "rescore_interval_hours", 6)
    [entry] = schedule_registry._schedule_entries()
    assert entry["id"] == "scoring:rescore_events"
    assert entry["interval"] == 6 * 3600
    assert entry["queue_name"] == "scoring"

    monkeypatch.setattr(settings, "rescore_interval_hours", 0)
    assert schedule_registry._schedule_entries() == []


def test_ensure_schedules_skips_in_test_environment(monkeypatch):
    def _fail(*args, **kwargs):
        raise AssertionError("scheduler should not be created")

    monkeypatch.setattr(schedule_registry, "Scheduler", _fail)
    schedule_registry.ensure_schedules()
