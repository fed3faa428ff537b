"""
Schemas Package
Pydantic models for API requests and responses
"""

from honeycert.schemas.tenant import (
    TenantRecord,
    TenantSummary,
    TenantDatabaseCreate,
    TenantDatabaseUpdate,
    ConnectionDetail,
    ConnectionPoolStats,
    ConnectionTestResult,
    TenantStatus,
)
from honeycert.schemas.batch import (
    ApiaryResponse,
    BatchResponse,
    BatchListResponse,
    TenantBatchStats,
)

__all__ = [
    "TenantRecord",
    "TenantSummary",
    "TenantDatabaseCreate",
    "TenantDatabaseUpdate",
    "ConnectionDetail",
    "ConnectionPoolStats",
    "ConnectionTestResult",
    "TenantStatus",
    "ApiaryResponse",
    "BatchResponse",
    "BatchListResponse",
    "TenantBatchStats",
]
