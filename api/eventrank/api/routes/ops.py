from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from eventrank.api.deps import CurrentUser, get_db, require_admin
from eventrank.services.task_queue import task_queue

router = APIRouter()


@router.get("/queues")
async def queue_health(_: CurrentUser = Depends(require_admin)) -> dict:
    """
    Minimal operations dashboard for Redis/RQ health.

    Admin only; queue state is not exposed to regular users.
    """

    return task_queue.snapshot()


@router.post("/rescore")
async def trigger_rescore(
    session: AsyncSession = Depends(get_db),
    _: CurrentUser = Depends(require_admin),
) -> dict:
    """Queue a rescore of all persisted event totals, or run it inline without Redis."""
    return await task_queue.enqueue_rescore(session)
