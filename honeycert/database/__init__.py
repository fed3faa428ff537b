"""
Database Module
Handles master catalog and tenant database connections

Two kinds of connection live here:
1. Master catalog - one lazily created engine listing every tenant
2. Tenant databases - one pooled engine per tenant, cached in the registry
"""

from honeycert.database.exceptions import (
    TenantRoutingException,
    ConfigurationError,
    TenantNotFoundError,
    TenantInactiveError,
    TenantAlreadyExistsError,
    DatabaseTimeoutError,
    CatalogQueryError,
    TenantConnectionFailedError,
)
from honeycert.database.url import augment_database_url, create_engine_from_url
from honeycert.database.registry import ConnectionEntry, ConnectionRegistry
from honeycert.database.master_connection import MasterDatabaseResolver
from honeycert.database.lifecycle import ConnectionSweeper
from honeycert.database.tenant_connection import TenantConnectionManager, connect_tenant_engine
from honeycert.database.fanout import FanOutExecutor, TenantOperationResult
from honeycert.database.routing import TenantRouting, build_tenant_routing

__all__ = [
    # Errors
    "TenantRoutingException",
    "ConfigurationError",
    "TenantNotFoundError",
    "TenantInactiveError",
    "TenantAlreadyExistsError",
    "DatabaseTimeoutError",
    "CatalogQueryError",
    "TenantConnectionFailedError",

    # Building blocks
    "augment_database_url",
    "create_engine_from_url",
    "ConnectionEntry",
    "ConnectionRegistry",

    # Services
    "MasterDatabaseResolver",
    "TenantConnectionManager",
    "connect_tenant_engine",
    "ConnectionSweeper",
    "FanOutExecutor",
    "TenantOperationResult",
    "TenantRouting",
    "build_tenant_routing",
]
