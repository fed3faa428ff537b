"""
Tenant Routing Container

Builds the connection registry and every component that shares it, once per
process. The container is stored on the FastAPI application state rather
than in module globals.
"""

from dataclasses import dataclass
from typing import Optional

from honeycert.config import Settings, get_settings
from honeycert.database.fanout import FanOutExecutor
from honeycert.database.lifecycle import ConnectionSweeper
from honeycert.database.master_connection import MasterDatabaseResolver
from honeycert.database.registry import ConnectionRegistry
from honeycert.database.tenant_connection import Connector, TenantConnectionManager, connect_tenant_engine


@dataclass
class TenantRouting:
    """All connection-routing services of one process"""

    settings: Settings
    registry: ConnectionRegistry
    master: MasterDatabaseResolver
    manager: TenantConnectionManager
    sweeper: ConnectionSweeper
    fanout: FanOutExecutor

    async def shutdown(self) -> bool:
        return await self.sweeper.shutdown(
            timeout=self.settings.shutdown_timeout,
            force_timeout=self.settings.shutdown_force_timeout,
        )


def build_tenant_routing(
    settings: Optional[Settings] = None,
    master: Optional[MasterDatabaseResolver] = None,
    connector: Connector = connect_tenant_engine,
) -> TenantRouting:
    """
    Wire up the registry, master resolver, manager, sweeper and fan-out executor.

    Args:
        settings: Settings to use (defaults to the cached application settings)
        master: Pre-built master resolver
        connector: Coroutine that opens and probes a tenant engine
    """
    settings = settings or get_settings()
    registry = ConnectionRegistry()
    master = master or MasterDatabaseResolver(settings)
    manager = TenantConnectionManager(registry, master, settings=settings, connector=connector)
    sweeper = ConnectionSweeper(
        registry,
        master,
        idle_timeout=settings.connection_idle_timeout,
        interval=settings.connection_sweep_interval,
    )
    fanout = FanOutExecutor(manager, master, batch_size=settings.fanout_batch_size)

    return TenantRouting(
        settings=settings,
        registry=registry,
        master=master,
        manager=manager,
        sweeper=sweeper,
        fanout=fanout,
    )
