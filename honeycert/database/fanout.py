"""
Cross-Tenant Fan-out

Runs one operation against every active tenant database in small concurrent
batches, collecting each tenant's outcome independently.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, List, Optional, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine

from honeycert.database.master_connection import MasterDatabaseResolver
from honeycert.database.tenant_connection import TenantConnectionManager
from honeycert.schemas.tenant import TenantRecord

T = TypeVar("T")

TenantOperation = Callable[[AsyncEngine, TenantRecord], Awaitable[T]]


@dataclass
class TenantOperationResult(Generic[T]):
    """Outcome of a fan-out operation for one tenant"""

    tenant_id: str
    result: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        return {
            "tenant_id": self.tenant_id,
            "result": self.result,
            "error": str(self.error) if self.error is not None else None,
        }


class FanOutExecutor:
    """
    Executes an operation across all active tenants.

    Batches run one after another to bound connection pressure; operations
    inside a batch run concurrently. One tenant's failure never affects the
    others.
    """

    def __init__(
        self,
        manager: TenantConnectionManager,
        master: MasterDatabaseResolver,
        batch_size: int = 3,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._manager = manager
        self._master = master
        self._batch_size = batch_size

    async def _run_for_tenant(
        self,
        operation: TenantOperation,
        tenant: TenantRecord,
    ) -> TenantOperationResult:
        try:
            engine = await self._manager.get_connection(tenant.id, tenant.database_url)
            result = await operation(engine, tenant)
            return TenantOperationResult(tenant_id=tenant.id, result=result)
        except Exception as e:
            logger.error(f"Error executing operation on database {tenant.name}: {e}")
            return TenantOperationResult(tenant_id=tenant.id, error=e)

    async def for_each_active_tenant(self, operation: TenantOperation) -> List[TenantOperationResult]:
        """
        Run operation(engine, tenant) for every active tenant.

        Args:
            operation: Async callable taking the tenant engine and its catalog record

        Returns:
            One TenantOperationResult per active tenant, in catalog order
        """
        tenants = await self._master.list_active_tenants()
        results: List[TenantOperationResult[Any]] = []

        for start in range(0, len(tenants), self._batch_size):
            batch = tenants[start:start + self._batch_size]
            batch_results = await asyncio.gather(*(
                self._run_for_tenant(operation, tenant) for tenant in batch
            ))
            results.extend(batch_results)

        failed = sum(1 for r in results if not r.ok)
        logger.info(f"Fan-out finished across {len(results)} tenants ({failed} failed)")
        return results
