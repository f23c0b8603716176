"""Batch scoring jobs."""

from __future__ import annotations

import asyncio
import logging

from eventrank.db.session import async_session
from eventrank.services import scoring_service

logger = logging.getLogger("eventrank.jobs.scoring")


def rescore_events_job(batch_size: int = 500) -> dict[str, int]:
    """Recompute persisted totals for every event from AI scores and overrides."""

    async def _run() -> dict[str, int]:
        async with async_session() as session:
            return await scoring_service.rescore_events(session, batch_size=batch_size)

    result = asyncio.run(_run())
    logger.info("Rescored %d events (%d changed)", result["scanned"], result["changed"])
    return result
