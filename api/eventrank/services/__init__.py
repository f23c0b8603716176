from . import (
    centroid_service,
    feed_service,
    personalization_service,
    scoring_service,
    signal_service,
)

__all__ = [
    "centroid_service",
    "feed_service",
    "personalization_service",
    "scoring_service",
    "signal_service",
]
"""Service-layer helpers for API operations."""
