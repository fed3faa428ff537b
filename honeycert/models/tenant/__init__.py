"""
Tenant Models Package
SQLAlchemy ORM models living in every tenant database
"""

from honeycert.models.tenant.base import TenantBase
from honeycert.models.tenant.batch import Apiary, Batch, BatchStatus

__all__ = [
    "TenantBase",
    "Batch",
    "BatchStatus",
    "Apiary",
]
