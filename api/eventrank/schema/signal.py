"""Signal schemas for recording, retracting, and reviewing taste signals."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from eventrank.models.signal import SignalPolarity, SignalType
from eventrank.schema.base import ORMModel


class SignalCreate(BaseModel):
    """Payload for recording (or reactivating) a signal."""
    event_id: UUID
    signal_type: SignalType


class SignalRead(ORMModel):
    """A signal log entry."""
    id: UUID
    user_id: UUID
    event_id: UUID
    signal_type: SignalType
    polarity: SignalPolarity
    active: bool
    signaled_at: datetime
    deactivated_at: datetime | None = None


class TasteEvent(BaseModel):
    """A signal annotated with the event it points at."""
    event_id: UUID
    title: str
    start_at: datetime
    signal_type: SignalType
    signaled_at: datetime
    active: bool


class TasteHistory(BaseModel):
    """Signal history split the way the taste page renders it."""
    positive: list[TasteEvent] = Field(default_factory=list)
    negative: list[TasteEvent] = Field(default_factory=list)
    inactive: list[TasteEvent] = Field(default_factory=list)


class TasteProfileRead(BaseModel):
    """Centroid cache status for the current user."""
    user_id: UUID
    computed_at: datetime | None = None
    signal_version: int = 0
    has_positive: bool = False
    has_negative: bool = False
    active_positive_signals: int = 0
    active_negative_signals: int = 0


class TasteProfileRefresh(BaseModel):
    """Payload for on-demand centroid refresh."""
    force: bool = True
