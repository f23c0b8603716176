"""API router composition for all route groups."""

from fastapi import APIRouter

from .routes import events, feed, ops, signals

api_router = APIRouter()
api_router.include_router(signals.router, tags=["signals"])
api_router.include_router(feed.router, tags=["feed"])
api_router.include_router(events.router, prefix="/events", tags=["events"])
api_router.include_router(ops.router, prefix="/ops", tags=["ops"])
