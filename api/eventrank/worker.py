"""RQ worker entrypoint for batch scoring jobs.

Run with ``python -m eventrank.worker`` (or the ``eventrank-worker`` script).
"""

from __future__ import annotations

import logging

from redis import Redis
from redis.exceptions import RedisError
from rq import Queue, Worker

from eventrank.core.config import settings

LOG_FORMAT = "%(asctime)s %(name)s [%(levelname)s] %(message)s"

logger = logging.getLogger("eventrank.worker")


def run(connection: Redis, queue_names: list[str]) -> None:
    """Block processing ``queue_names`` until interrupted."""
    queues = [Queue(name, connection=connection) for name in queue_names]
    worker = Worker(queues, connection=connection, name="eventrank-worker")
    logger.info("Scoring worker listening on: %s", ", ".join(queue_names))
    try:
        worker.work(with_scheduler=True)
    except KeyboardInterrupt:
        worker.request_stop()
        logger.info("Worker shutdown requested")


def main() -> None:
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT, force=True)
    if not settings.worker_queue_names:
        logger.error("No worker queues configured; set WORKER_QUEUE_NAMES or rely on the default.")
        return
    connection = Redis.from_url(settings.redis_url)
    try:
        connection.ping()
    except RedisError as exc:
        logger.error("Redis unreachable; worker not started (%s)", type(exc).__name__)
        raise SystemExit(1) from exc
    run(connection, list(settings.worker_queue_names))


if __name__ == "__main__":
    main()
