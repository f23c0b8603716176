"""RQ task queue wrapper with inline fallback for local/test runs."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable

from redis import Redis
from redis.exceptions import RedisError
from rq import Queue, Retry
from rq.registry import FailedJobRegistry, ScheduledJobRegistry, StartedJobRegistry
from rq.worker import Worker
from sqlalchemy.ext.asyncio import AsyncSession

from eventrank.core.config import settings
from eventrank.utils.datetime import utcnow

logger = logging.getLogger("eventrank.services.task_queue")

# Batch rescoring is idempotent, so a couple of retries with backoff are safe.
DEFAULT_RETRY = Retry(max=2, interval=[30, 120])
SCORING_QUEUE = "scoring"


class TaskQueue:
    """Thin wrapper around RQ that can fall back to inline execution."""

    def __init__(self) -> None:
        self.queue_names: list[str] = settings.worker_queue_names or ["default"]
        self._connection: Redis | None = None
        self._enabled = False
        self._bootstrap()

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def connection(self) -> Redis | None:
        return self._connection

    def _bootstrap(self) -> None:
        """Initialize Redis connectivity unless disabled for tests."""
        if settings.environment.lower() == "test":
            logger.info("Task queue disabled in test environment")
            return
        try:
            connection = Redis.from_url(settings.redis_url)
            connection.ping()
        except RedisError as exc:  # pragma: no cover - network/redis specific
            # Redis URLs can carry credentials; log only the failure type.
            logger.warning("Redis unavailable; running jobs inline (%s)", type(exc).__name__)
            self._connection = None
            self._enabled = False
            return
        self._connection = connection
        self._enabled = True
        logger.info("Task queue ready (queues: %s)", ", ".join(self.queue_names))

    def queue_name_for(self, preferred: str) -> str:
        if preferred in self.queue_names:
            return preferred
        return self.queue_names[0] if self.queue_names else "default"

    def get_queue(self, queue_name: str | None = None) -> Queue:
        """Return a configured queue instance for enqueuing jobs."""
        if not self._connection:
            raise RuntimeError("Queue connection not initialized")
        return Queue(queue_name or self.queue_name_for("default"), connection=self._connection)

    async def enqueue_or_run(
        self,
        func: Callable[..., Any],
        *,
        fallback: Callable[[], Awaitable[dict[str, Any]]],
        queue_name: str,
        description: str,
        timeout_seconds: int = 600,
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Enqueue a job without waiting; run ``fallback`` inline when Redis is unavailable."""
        if self._enabled and self._connection:
            try:
                job = self.get_queue(self.queue_name_for(queue_name)).enqueue(
                    func,
                    kwargs=kwargs,
                    job_timeout=timeout_seconds,
                    description=description,
                    retry=DEFAULT_RETRY,
                )
            except RedisError as exc:  # pragma: no cover - network/redis specific
                logger.warning("Falling back to inline execution after queue failure (%s)", type(exc).__name__)
            else:
                return {"status": "queued", "job_id": job.id}
        result = await fallback()
        return {"status": "completed", **result}

    async def enqueue_rescore(self, session: AsyncSession) -> dict[str, Any]:
        """Dispatch a full rescore of persisted event totals."""
        from eventrank.jobs.scoring import rescore_events_job
        from eventrank.services import scoring_service

        return await self.enqueue_or_run(
            rescore_events_job,
            fallback=lambda: scoring_service.rescore_events(session),
            queue_name=SCORING_QUEUE,
            description="scoring:rescore_events",
        )

    def snapshot(self) -> dict[str, Any]:
        """Return a diagnostic snapshot of queue and worker state."""
        if not self._connection:
            return {
                "status": "offline",
                "queues": [],
                "workers": [],
                "error": "queue connection not initialized",
            }

        queues: list[dict[str, Any]] = []
        for name in self.queue_names:
            queue = Queue(name, connection=self._connection)
            queues.append(
                {
                    "name": name,
                    "size": queue.count,
                    "scheduled": len(ScheduledJobRegistry(queue=queue)),
                    "started": len(StartedJobRegistry(queue=queue)),
                    "failed": len(FailedJobRegistry(queue=queue)),
                }
            )

        workers: list[dict[str, Any]] = []
        try:
            for worker in Worker.all(connection=self._connection):
                workers.append(
                    {
                        "name": worker.name,
                        "state": getattr(worker, "state", "unknown"),
                        "queues": list(worker.queue_names()),
                    }
                )
        except RedisError as exc:  # pragma: no cover - network/redis specific
            logger.warning("Unable to list workers (%s)", type(exc).__name__)

        warnings = [] if workers else ["no_workers"]
        return {
            "status": "online" if not warnings else "degraded",
            "queues": queues,
            "workers": workers,
            "warnings": warnings,
            "checked_at": utcnow().isoformat(),
        }


task_queue = TaskQueue()
