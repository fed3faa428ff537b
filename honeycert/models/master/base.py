"""
Master Catalog Base Model
Provides the timestamp columns shared by all master catalog models
"""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime
from sqlalchemy.orm import declarative_base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MasterBaseClass:
    """Base class for all master catalog models."""

    created_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        nullable=False
    )

    # Refreshed by SQLAlchemy on every UPDATE
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"


MasterBase = declarative_base(cls=MasterBaseClass)
