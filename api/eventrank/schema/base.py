"""Shared schema base classes for API responses."""

from pydantic import BaseModel


class ORMModel(BaseModel):
    """Base model that supports attribute loading from SQLAlchemy rows."""

    model_config = {"from_attributes": True}
