"""
Tenant Service
Registration and administration of tenant databases in the master catalog
"""

from typing import List

from loguru import logger

from honeycert.database.exceptions import TenantConnectionFailedError
from honeycert.database.fanout import TenantOperationResult
from honeycert.database.routing import TenantRouting
from honeycert.schemas.tenant import TenantDatabaseCreate, TenantDatabaseUpdate, TenantRecord, TenantStatus
from honeycert.services.batch_service import collect_batch_stats


async def register_tenant_database(
    routing: TenantRouting,
    data: TenantDatabaseCreate,
    managed_by_admin_id: int,
) -> TenantRecord:
    """
    Register an already provisioned database as a new tenant.

    The DSN is tested before anything is written to the catalog.

    Raises:
        TenantConnectionFailedError: If the database cannot be reached
        TenantAlreadyExistsError: If the tenant name is taken
    """
    check = await routing.manager.test_connection(data.database_url)
    if not check.success:
        logger.warning(f"Cannot connect to database for new tenant {data.name}: {check.error}")
        raise TenantConnectionFailedError(data.name, 1, check.error)

    logger.info(f"Connection test for {data.name} passed in {check.response_time_ms}ms")
    return await routing.master.create_tenant_record(data, managed_by_admin_id)


async def update_tenant_database(
    routing: TenantRouting,
    tenant_id: str,
    changes: TenantDatabaseUpdate,
) -> TenantRecord:
    """
    Apply catalog changes to a tenant.

    Deactivating a tenant also drops its cached connection, since cache hits
    never consult the catalog.
    """
    record = await routing.master.update_tenant_record(tenant_id, changes)

    if changes.is_active is False:
        if await routing.manager.disconnect(tenant_id):
            logger.info(f"Dropped cached connection for deactivated tenant {tenant_id}")

    return record


async def get_tenant_status(routing: TenantRouting, tenant_id: str) -> TenantStatus:
    """
    Report whether a tenant is usable right now.

    Missing and deactivated tenants are both "not usable". A cached engine is
    reported separately, since deactivation only drops it through
    update_tenant_database().
    """
    record = await routing.master.find_active_tenant(tenant_id)
    entry = routing.registry.get(tenant_id)
    return TenantStatus(
        tenant_id=tenant_id,
        usable=record is not None,
        connected=entry is not None and entry.is_connected,
    )


async def get_cross_tenant_overview(routing: TenantRouting) -> List[TenantOperationResult]:
    """Batch statistics for every active tenant."""
    return await routing.fanout.for_each_active_tenant(collect_batch_stats)
