"""Event records consumed from ingestion plus their moderation score state."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import JSON, CheckConstraint, DateTime, Integer, String
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from eventrank.db.base_class import Base
from eventrank.utils.datetime import utcnow

# Python None must land as SQL NULL so "no embedding" stays queryable.
JSON_COMPATIBLE = JSON(none_as_null=True).with_variant(JSONB(none_as_null=True), "postgresql")

SCORE_CATEGORIES = ("rarity", "unique", "magnitude")


class Event(Base):
    """Scored event with an optional embedding and a moderation override document."""
    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint("score_rarity >= 0 AND score_rarity <= 10", name="score_rarity_range"),
        CheckConstraint("score_unique >= 0 AND score_unique <= 10", name="score_unique_range"),
        CheckConstraint("score_magnitude >= 0 AND score_magnitude <= 10", name="score_magnitude_range"),
        CheckConstraint("score >= 0 AND score <= 30", name="score_total_range"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    url: Mapped[str | None] = mapped_column(String(1024))
    location: Mapped[str | None] = mapped_column(String(500))
    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    embedding: Mapped[list[float] | None] = mapped_column(JSON_COMPATIBLE)
    score_rarity: Mapped[int | None] = mapped_column(Integer)
    score_unique: Mapped[int | None] = mapped_column(Integer)
    score_magnitude: Mapped[int | None] = mapped_column(Integer)
    # {"admin_override": {...} | null, "curator_boosts": [{...}, ...]}
    score_override: Mapped[dict | None] = mapped_column(JSON_COMPATIBLE)
    score: Mapped[int | None] = mapped_column(Integer, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def ai_scores(self) -> dict[str, int]:
        """Automated sub-scores with missing values read as zero."""
        return {
            "rarity": self.score_rarity or 0,
            "unique": self.score_unique or 0,
            "magnitude": self.score_magnitude or 0,
        }
