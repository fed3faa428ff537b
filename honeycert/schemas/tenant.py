"""
Tenant Routing Schemas
Pydantic models for tenant catalog records and connection statistics
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# Catalog Records
# =============================================================================

class TenantRecord(BaseModel):
    """Read model of a master catalog tenant entry"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    display_name: str
    description: Optional[str] = None
    database_url: str = Field(..., repr=False, exclude=True)
    is_active: bool
    managed_by_admin_id: Optional[int] = None
    created_at: Optional[datetime] = None
    max_users: Optional[int] = None
    max_storage_mb: Optional[int] = None


class TenantSummary(BaseModel):
    """Public view of a tenant, safe to return from the API"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    display_name: str
    is_active: bool
    created_at: Optional[datetime] = None
    max_users: Optional[int] = None
    max_storage_mb: Optional[int] = None


class TenantDatabaseCreate(BaseModel):
    """Schema for registering a tenant database in the master catalog"""
    name: str = Field(..., min_length=2, max_length=255)
    display_name: str = Field(..., min_length=2, max_length=255)
    database_url: str = Field(..., min_length=1)
    description: Optional[str] = Field(None, max_length=1000)
    max_users: Optional[int] = Field(None, ge=1)
    max_storage_mb: Optional[int] = Field(None, ge=1)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip().lower()
        if not v.replace("_", "").isalnum():
            raise ValueError("Name may only contain letters, digits and underscores")
        return v


class TenantDatabaseUpdate(BaseModel):
    """Schema for toggling a tenant or updating its quotas"""
    display_name: Optional[str] = Field(None, min_length=2, max_length=255)
    is_active: Optional[bool] = None
    max_users: Optional[int] = Field(None, ge=1)
    max_storage_mb: Optional[int] = Field(None, ge=1)


# =============================================================================
# Connection Statistics
# =============================================================================

class ConnectionDetail(BaseModel):
    """State of one cached tenant connection"""
    tenant_id: str
    last_used: datetime
    is_connected: bool
    retry_count: int


class ConnectionPoolStats(BaseModel):
    """Snapshot of the tenant connection registry"""
    total_connections: int
    active_connections: List[str]
    connection_details: List[ConnectionDetail]


class ConnectionTestResult(BaseModel):
    """Outcome of a one-off connectivity test"""
    success: bool
    error: Optional[str] = None
    response_time_ms: float


class TenantStatus(BaseModel):
    """Whether a tenant can be routed to, and whether it is cached"""
    tenant_id: str
    usable: bool
    connected: bool
