"""FastAPI application entrypoint and health reporting.

Invariants:
- Queue detail is only exposed to authenticated callers.
"""

import logging
from typing import Any

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from eventrank.api.deps import CurrentUser, get_optional_current_user
from eventrank.api.router import api_router
from eventrank.core.config import settings
from eventrank.jobs.schedule_registry import ensure_schedules
from eventrank.services.task_queue import task_queue

LOG_FORMAT = "%(asctime)s %(name)s [%(levelname)s] %(message)s"


def _configure_logging() -> None:
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)


_configure_logging()

app = FastAPI(title=settings.app_name)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(api_router, prefix=settings.api_prefix)


@app.on_event("startup")
async def _register_schedules() -> None:
    """Register scheduled jobs on startup."""
    ensure_schedules()


@app.get("/health", tags=["internal"])
@app.get(f"{settings.api_prefix}/health", tags=["internal"])
async def health(current_user: CurrentUser | None = Depends(get_optional_current_user)) -> dict[str, Any]:
    """Return health status and, for authenticated callers, queue state."""
    if current_user is None:
        return {"status": "ok"}
    queue = task_queue.snapshot()
    status = "ok" if queue["status"] == "online" else "degraded"
    return {"status": status, "queue": queue}
