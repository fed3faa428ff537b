"""
Batch Schemas
Response models for tenant-scoped batch queries
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict


class ApiaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    number: Optional[int] = None
    hive_count: int
    kilos_collected: float
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class BatchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    batch_number: str
    batch_name: str
    status: str
    created_at: datetime
    apiaries: List[ApiaryResponse] = []


class BatchListResponse(BaseModel):
    batches: List[BatchResponse]


class TenantBatchStats(BaseModel):
    """Batch counts for a single tenant database"""
    total_batches: int
    by_status: Dict[str, int]
    total_apiaries: int
