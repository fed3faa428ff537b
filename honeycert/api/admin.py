"""
Admin API Routes
Tenant dashboards, cross-tenant overview and catalog administration
"""

from typing import List

from fastapi import APIRouter, status

from honeycert.api.deps import AdminDep, RoutingDep, SuperAdminDep, TenantSessionDep
from honeycert.schemas.batch import TenantBatchStats
from honeycert.schemas.tenant import (
    ConnectionPoolStats,
    TenantDatabaseCreate,
    TenantDatabaseUpdate,
    TenantStatus,
    TenantSummary,
)
from honeycert.services import batch_service, tenant_service


router = APIRouter()


# =============================================================================
# Tenant Dashboard
# =============================================================================

@router.get(
    "/dashboard",
    response_model=TenantBatchStats,
    summary="Tenant dashboard",
    description="Batch statistics for the admin's own tenant"
)
async def get_dashboard(admin: AdminDep, session: TenantSessionDep):
    return await batch_service.get_batch_stats(session)


# =============================================================================
# Platform Administration (super admins)
# =============================================================================

@router.get(
    "/overview",
    summary="Cross-tenant overview",
    description="Batch statistics for every active tenant; failing tenants report an error"
)
async def get_overview(admin: SuperAdminDep, routing: RoutingDep) -> List[dict]:
    results = await tenant_service.get_cross_tenant_overview(routing)
    return [r.to_dict() for r in results]


@router.get(
    "/connections",
    response_model=ConnectionPoolStats,
    summary="Connection pool statistics"
)
async def get_connections(admin: SuperAdminDep, routing: RoutingDep):
    return routing.manager.get_pool_stats()


@router.post(
    "/databases",
    response_model=TenantSummary,
    status_code=status.HTTP_201_CREATED,
    summary="Register tenant database"
)
async def register_database(
    payload: TenantDatabaseCreate,
    admin: SuperAdminDep,
    routing: RoutingDep,
):
    """
    Register an already provisioned database as a tenant.
    The connection is tested before the catalog entry is written.
    """
    record = await tenant_service.register_tenant_database(routing, payload, admin.user_id)
    return TenantSummary.model_validate(record)


@router.patch(
    "/databases/{tenant_id}",
    response_model=TenantSummary,
    summary="Update tenant database"
)
async def update_database(
    tenant_id: str,
    payload: TenantDatabaseUpdate,
    admin: SuperAdminDep,
    routing: RoutingDep,
):
    record = await tenant_service.update_tenant_database(routing, tenant_id, payload)
    return TenantSummary.model_validate(record)


@router.get(
    "/databases/{tenant_id}/status",
    response_model=TenantStatus,
    summary="Tenant routing status"
)
async def get_database_status(tenant_id: str, admin: SuperAdminDep, routing: RoutingDep):
    return await tenant_service.get_tenant_status(routing, tenant_id)
