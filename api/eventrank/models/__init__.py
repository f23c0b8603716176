from eventrank.models.event import SCORE_CATEGORIES, Event
from eventrank.models.signal import POSITIVE_SIGNAL_TYPES, SignalPolarity, SignalType, UserSignal
from eventrank.models.taste_profile import UserTasteProfile

__all__ = [
    "Event",
    "POSITIVE_SIGNAL_TYPES",
    "SCORE_CATEGORIES",
    "SignalPolarity",
    "SignalType",
    "UserSignal",
    "UserTasteProfile",
]
"""SQLAlchemy ORM models for the Eventrank API."""
