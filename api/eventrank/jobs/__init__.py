from .scoring import rescore_events_job

__all__ = ["rescore_events_job"]
"""Background job modules for RQ workers and schedulers."""
