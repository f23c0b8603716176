from __future__ import annotations

import logging
from datetime import timedelta

from rq_scheduler import Scheduler

from eventrank.core.config import settings
from eventrank.jobs.scoring import rescore_events_job
from eventrank.services.task_queue import SCORING_QUEUE, task_queue
from eventrank.utils.datetime import utcnow

logger = logging.getLogger("eventrank.jobs.schedule_registry")


def _schedule_entries() -> list[dict]:
    entries: list[dict] = []
    if settings.rescore_interval_hours > 0:
        entries.append(
            {
                "id": "scoring:rescore_events",
                "func": rescore_events_job,
                "interval": settings.rescore_interval_hours * 3600,
                "repeat": None,
                "queue_name": task_queue.queue_name_for(SCORING_QUEUE),
            }
        )
    return entries


def ensure_schedules() -> None:
    """Idempotently register periodic jobs with rq-scheduler."""
    if settings.environment.lower() == "test":
        return
    if not task_queue.connection:
        logger.info("Skipping scheduler bootstrap; queue connection is unavailable")
        return
    scheduler = Scheduler(connection=task_queue.connection, queue_name=task_queue.queue_names[0])
    for entry in _schedule_entries():
        if entry["id"] in scheduler:
            continue
        scheduler.schedule(
            scheduled_time=utcnow().replace(tzinfo=None),
            func=entry["func"],
            interval=entry["interval"],
            repeat=entry["repeat"],
            id=entry["id"],
            queue_name=entry["queue_name"],
            result_ttl=int(timedelta(hours=1).total_seconds()),
        )
        logger.info("Scheduled job %s every %ss on queue %s", entry["id"], entry["interval"], entry["queue_name"])
