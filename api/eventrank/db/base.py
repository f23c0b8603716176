"""Import all models here for Alembic autogenerate."""

from eventrank.db.base_class import Base
from eventrank.models import event, signal, taste_profile  # noqa: F401

__all__ = ["Base"]
