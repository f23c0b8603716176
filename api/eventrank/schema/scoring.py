"""Score override schemas for the moderation surface.

The ``ScoreOverride`` document is persisted verbatim on ``Event.score_override``;
request payloads are parsed here so out-of-range values never reach storage.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from eventrank.schema.base import ORMModel

AdminValue = Annotated[int, Field(ge=0, le=10)]
BoostValue = Annotated[int, Field(ge=-2, le=2)]


class AIScores(BaseModel):
    """Automated sub-scores produced by the tagging pipeline."""
    rarity: int = Field(default=0, ge=0, le=10)
    unique: int = Field(default=0, ge=0, le=10)
    magnitude: int = Field(default=0, ge=0, le=10)


class CategoryDeltas(BaseModel):
    """Per-category signed adjustments (aggregated curator boosts)."""
    rarity: int = 0
    unique: int = 0
    magnitude: int = 0


class FinalScores(BaseModel):
    """Final per-category scores and their sum."""
    rarity: int
    unique: int
    magnitude: int
    total: int


class _CategoryPayload(BaseModel):
    """Requires at least one of the three categories to be supplied."""

    @model_validator(mode="after")
    def _require_category(self):
        if self.rarity is None and self.unique is None and self.magnitude is None:
            raise ValueError("At least one of rarity, unique, or magnitude is required")
        return self


class AdminOverride(BaseModel):
    """Absolute replacement values set by an admin."""
    rarity: AdminValue | None = None
    unique: AdminValue | None = None
    magnitude: AdminValue | None = None
    reason: str | None = None
    set_by: str
    set_at: datetime


class CuratorBoost(BaseModel):
    """One curator's bounded adjustment to an event."""
    curator_id: str
    rarity: BoostValue | None = None
    unique: BoostValue | None = None
    magnitude: BoostValue | None = None
    boosted_at: datetime


class ScoreOverride(BaseModel):
    """Admin override and curator boosts; independently owned sub-structures."""
    admin_override: AdminOverride | None = None
    curator_boosts: list[CuratorBoost] = Field(default_factory=list)


class AdminOverrideSet(_CategoryPayload):
    """Payload for setting an admin override."""
    rarity: AdminValue | None = None
    unique: AdminValue | None = None
    magnitude: AdminValue | None = None
    reason: str | None = Field(default=None, max_length=1000)


class CuratorBoostSet(_CategoryPayload):
    """Payload for setting the caller's curator boost."""
    rarity: BoostValue | None = None
    unique: BoostValue | None = None
    magnitude: BoostValue | None = None


class ScoreUpdateRead(BaseModel):
    """Result of a moderation write."""
    event_id: UUID
    score_override: ScoreOverride
    final_scores: FinalScores
    score: int


class ScoreBreakdownRead(ORMModel):
    """Full scoring picture for the moderation panel."""
    event_id: UUID
    ai_scores: AIScores
    curator_boost_totals: CategoryDeltas
    boost_summary: str | None = None
    score_override: ScoreOverride
    final_scores: FinalScores
    score: int | None = None
