"""
Admin Model
An administrator who owns one or more tenant databases
"""

from enum import Enum

from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from honeycert.models.master.base import MasterBase


class AdminRole(str, Enum):
    """Administrator roles"""
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class Admin(MasterBase):
    """Administrator registered in the master catalog."""

    __tablename__ = "admins"

    id = Column(Integer, primary_key=True, autoincrement=True)
    firstname = Column(String(100), nullable=False)
    lastname = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    role = Column(String(50), nullable=False, default=AdminRole.ADMIN.value)

    databases = relationship("TenantDatabase", back_populates="managed_by", lazy="selectin")
