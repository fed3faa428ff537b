"""
Batch and Apiary Models
Honey batches submitted for certification and the apiaries they came from
"""

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from honeycert.models.tenant.base import TenantBase


class BatchStatus(str, Enum):
    """Certification status of a batch"""
    DRAFT = "draft"
    SUBMITTED = "submitted"
    CERTIFIED = "certified"
    REJECTED = "rejected"


class Batch(TenantBase):
    """A honey batch owned by a tenant user."""

    __tablename__ = "batches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    batch_number = Column(String(100), nullable=False, unique=True)
    batch_name = Column(String(255), nullable=False)
    status = Column(String(50), nullable=False, default=BatchStatus.DRAFT.value)
    user_id = Column(Integer, nullable=False, index=True)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False
    )

    apiaries = relationship(
        "Apiary",
        back_populates="batch",
        cascade="all, delete-orphan",
        lazy="selectin"
    )


class Apiary(TenantBase):
    """An apiary contributing honey to a batch."""

    __tablename__ = "apiaries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    batch_id = Column(Integer, ForeignKey("batches.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    number = Column(Integer, nullable=True)
    hive_count = Column(Integer, nullable=False, default=0)
    kilos_collected = Column(Float, nullable=False, default=0.0)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    batch = relationship("Batch", back_populates="apiaries")
