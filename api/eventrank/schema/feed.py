"""Feed schemas for the personalized and global ranking surfaces."""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from eventrank.schema.base import ORMModel
from eventrank.utils.datetime import as_utc

Bucket = Literal["today", "tomorrow", "week", "later"]


class FeedStatus(str, enum.Enum):
    """Whether personalization could run for the caller."""
    READY = "ready"
    NOT_ENOUGH_SIGNAL = "not_enough_signal"


class FeedEventRead(ORMModel):
    """Event fields rendered on feed cards."""
    id: UUID
    title: str
    url: str | None = None
    location: str | None = None
    start_at: datetime
    score: int | None = None

    @field_validator("start_at")
    @classmethod
    def _normalize_start(cls, value: datetime) -> datetime:
        """SQLite hands back naive UTC; always emit aware timestamps."""
        return as_utc(value)


class FeedExplanation(BaseModel):
    """The liked event a recommendation most resembles."""
    event_id: UUID
    title: str


class ScoredEventRead(BaseModel):
    """One personalized feed entry."""
    event: FeedEventRead
    score: float
    tier: Literal["great", "good"] | None = None
    explanation: FeedExplanation | None = None
    bucket: Bucket


class FeedMeta(BaseModel):
    signal_count: int = 0
    candidates_considered: int = 0
    candidates_without_embedding: int = 0
    window_start: datetime
    window_end: datetime


class PersonalizedFeedRead(BaseModel):
    """Personalized feed; ``not_enough_signal`` is distinct from an empty ready feed."""
    status: FeedStatus
    events: list[ScoredEventRead] = Field(default_factory=list)
    meta: FeedMeta


class TopEventsRead(BaseModel):
    """Non-personalized ranking by persisted total score."""
    events: list[FeedEventRead] = Field(default_factory=list)
    window_start: datetime
    window_end: datetime
