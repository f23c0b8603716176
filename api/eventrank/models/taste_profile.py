"""Derived per-user centroid cache, recomputable from the signal log."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Integer, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from eventrank.db.base_class import Base
from eventrank.models.event import JSON_COMPATIBLE
from eventrank.utils.datetime import utcnow


class UserTasteProfile(Base):
    """Cached positive/negative centroids for one user.

    Invariants:
    - ``computed_at`` is null whenever the cache is stale; null centroids with
      a non-null ``computed_at`` mean "no contributing events", not "stale".
    - ``signal_version`` increases on every signal mutation; a recompute only
      persists when the version it read is still current.
    """
    __tablename__ = "user_taste_profiles"
    __table_args__ = (UniqueConstraint("user_id", name="uq_user_taste_profiles_user"),)

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    positive_centroid: Mapped[list[float] | None] = mapped_column(JSON_COMPATIBLE)
    negative_centroid: Mapped[list[float] | None] = mapped_column(JSON_COMPATIBLE)
    computed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    signal_version: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
