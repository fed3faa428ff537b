"""
TenantDatabase Model
One tenant organization and the physical database that backs it
"""

import uuid

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from honeycert.models.master.base import MasterBase


def _new_tenant_id() -> str:
    return str(uuid.uuid4())


class TenantDatabase(MasterBase):
    """
    TenantDatabase Model - catalog entry for a tenant.

    Tenants are never physically deleted; deactivation flips is_active.
    database_url holds the full DSN including credentials and must never
    leave the server.
    """

    __tablename__ = "databases"

    # ==================== Identity ====================
    id = Column(String(64), primary_key=True, default=_new_tenant_id)
    name = Column(String(255), nullable=False, unique=True, index=True)
    display_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    # ==================== Connection ====================
    database_url = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    # ==================== Ownership ====================
    managed_by_admin_id = Column(
        Integer,
        ForeignKey("admins.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    managed_by = relationship("Admin", back_populates="databases")

    # ==================== Quotas ====================
    max_users = Column(Integer, nullable=True)
    max_storage_mb = Column(Integer, nullable=True)
