"""
Master Catalog Models Package
SQLAlchemy ORM models for the master catalog database
"""

from honeycert.models.master.base import MasterBase
from honeycert.models.master.admin import Admin, AdminRole
from honeycert.models.master.tenant_database import TenantDatabase

__all__ = [
    "MasterBase",
    "Admin",
    "AdminRole",
    "TenantDatabase",
]
