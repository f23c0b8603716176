"""Append-only log of per-user behavioral signals against events."""

from __future__ import annotations

import enum
import typing
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Index, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from eventrank.db.base_class import Base
from eventrank.utils.datetime import utcnow

if typing.TYPE_CHECKING:  # pragma: no cover
    from eventrank.models.event import Event


class SignalPolarity(str, enum.Enum):
    """Whether a signal pulls the taste model toward or away from an event."""
    POSITIVE = "positive"
    NEGATIVE = "negative"


class SignalType(str, enum.Enum):
    """Recognized signal kinds; every type except hide is positive."""
    FAVORITE = "favorite"
    CALENDAR = "calendar"
    SHARE = "share"
    VIEW_SOURCE = "view_source"
    HIDE = "hide"

    @property
    def polarity(self) -> SignalPolarity:
        if self is SignalType.HIDE:
            return SignalPolarity.NEGATIVE
        return SignalPolarity.POSITIVE


POSITIVE_SIGNAL_TYPES = tuple(kind for kind in SignalType if kind.polarity is SignalPolarity.POSITIVE)

_ACTIVE_ONLY = text("active")


class UserSignal(Base):
    """One user action on an event; retraction flips ``active`` and keeps the row."""
    __tablename__ = "user_signals"
    __table_args__ = (
        # At most one active row per (user, event, type); hide is the only
        # negative type, so this also caps active negatives per (user, event).
        Index(
            "uq_user_signals_active_identity",
            "user_id",
            "event_id",
            "signal_type",
            unique=True,
            postgresql_where=_ACTIVE_ONLY,
            sqlite_where=_ACTIVE_ONLY,
        ),
        Index("ix_user_signals_user_active", "user_id", "active"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    event_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("events.id", ondelete="CASCADE"), nullable=False
    )
    signal_type: Mapped[SignalType] = mapped_column(
        Enum(SignalType, name="signal_type", values_callable=lambda enum_cls: [e.value for e in enum_cls]),
        nullable=False,
    )
    polarity: Mapped[SignalPolarity] = mapped_column(
        Enum(SignalPolarity, name="signal_polarity", values_callable=lambda enum_cls: [e.value for e in enum_cls]),
        nullable=False,
    )
    active: Mapped[bool] = mapped_column(default=True, nullable=False)
    signaled_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    deactivated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    event: Mapped["Event"] = relationship(lazy="raise")
