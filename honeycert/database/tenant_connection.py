"""
Tenant Database Connection Manager
Routes each tenant to its own pooled database engine
"""

import asyncio
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Dict, Optional

from loguru import logger
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from honeycert.config import Settings, get_settings
from honeycert.database.exceptions import TenantConnectionFailedError
from honeycert.database.lifecycle import dispose_quietly
from honeycert.database.master_connection import MasterDatabaseResolver
from honeycert.database.registry import ConnectionEntry, ConnectionRegistry, utcnow
from honeycert.database.url import augment_database_url, create_engine_from_url
from honeycert.schemas.tenant import ConnectionDetail, ConnectionPoolStats, ConnectionTestResult

Connector = Callable[[str], Awaitable[AsyncEngine]]


async def connect_tenant_engine(database_url: str) -> AsyncEngine:
    """
    Create an engine for a tenant DSN and prove it works with a liveness probe.

    The engine is disposed if the probe fails or is cancelled.
    """
    engine = create_engine_from_url(database_url)
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except BaseException:
        await engine.dispose()
        raise
    return engine


class TenantConnectionManager:
    """
    Tenant Connection Manager

    Hands out one pooled engine per tenant:
    - cached engines are returned without a liveness re-check
    - unknown tenants are resolved through the master catalog, unless the
      caller already knows the DSN
    - new engines are connected and probed with bounded retries
    - concurrent first requests for a tenant share a single connect attempt

    Idle eviction is left to the background ConnectionSweeper, so the request
    path never pays for a sweep.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        master: MasterDatabaseResolver,
        settings: Optional[Settings] = None,
        connector: Connector = connect_tenant_engine,
    ):
        self._registry = registry
        self._master = master
        self._settings = settings or get_settings()
        self._connector = connector
        self._inflight: Dict[str, asyncio.Task] = {}

        logger.info("TenantConnectionManager initialized")

    @property
    def registry(self) -> ConnectionRegistry:
        return self._registry

    async def get_connection(self, tenant_id: str, database_url: Optional[str] = None) -> AsyncEngine:
        """
        Get a ready-to-use engine for a tenant database.

        Args:
            tenant_id: Tenant identifier from the auth token
            database_url: DSN already known to the caller; skips the catalog lookup

        Returns:
            AsyncEngine for the tenant database

        Raises:
            TenantNotFoundError: Tenant unknown to the master catalog
            TenantInactiveError: Tenant deactivated
            DatabaseTimeoutError: Master catalog lookup timed out
            CatalogQueryError: Master catalog lookup failed
            TenantConnectionFailedError: Every connection attempt failed
        """
        entry = self._registry.get(tenant_id)
        if entry is not None and entry.is_connected:
            entry.touch()
            return entry.engine

        if entry is not None:
            logger.info(f"Evicting disconnected entry for tenant {tenant_id}")
            await self.disconnect(tenant_id)

            # Another request may have reconnected while we were disposing
            entry = self._registry.get(tenant_id)
            if entry is not None and entry.is_connected:
                entry.touch()
                return entry.engine

        task = self._inflight.get(tenant_id)
        if task is None:
            task = asyncio.ensure_future(self._open(tenant_id, database_url))
            self._inflight[tenant_id] = task
            task.add_done_callback(lambda t: self._forget_inflight(tenant_id, t))
        else:
            logger.debug(f"Joining in-flight connection attempt for tenant {tenant_id}")

        return await asyncio.shield(task)

    def _forget_inflight(self, tenant_id: str, task: asyncio.Task) -> None:
        if self._inflight.get(tenant_id) is task:
            del self._inflight[tenant_id]
        if not task.cancelled():
            # Mark the exception retrieved even if every waiter was cancelled
            task.exception()

    async def _open(self, tenant_id: str, database_url: Optional[str]) -> AsyncEngine:
        if database_url and database_url.strip():
            raw_url = database_url
        else:
            record = await self._master.lookup_tenant(tenant_id)
            raw_url = record.database_url

        settings = self._settings
        url = augment_database_url(
            raw_url,
            settings.tenant_connection_limit,
            pool_timeout=settings.pool_acquire_timeout,
            connect_timeout=settings.pool_connect_timeout,
            statement_timeout_ms=settings.pool_statement_timeout_ms,
        )

        engine = await self._connect_with_retry(tenant_id, url)

        self._registry.put(ConnectionEntry(
            tenant_id=tenant_id,
            engine=engine,
            last_used=utcnow(),
            is_connected=True,
            retry_count=0,
        ))
        logger.info(f"Successfully connected to database: {tenant_id}")
        return engine

    async def _connect_with_retry(self, tenant_id: str, database_url: str) -> AsyncEngine:
        max_retries = self._settings.tenant_max_retries
        timeout = self._settings.tenant_connect_timeout
        last_error: Optional[str] = None

        for attempt in range(1, max_retries + 1):
            try:
                return await asyncio.wait_for(self._connector(database_url), timeout=timeout)
            except asyncio.TimeoutError:
                last_error = f"Connection timeout after {timeout}s"
            except Exception as e:
                last_error = str(e) or e.__class__.__name__

            if attempt < max_retries:
                logger.warning(
                    f"Connection attempt {attempt} failed for {tenant_id}, retrying: {last_error}"
                )
                await asyncio.sleep(self._settings.tenant_retry_delay * attempt)

        logger.error(f"[FAIL] Giving up on database {tenant_id} after {max_retries} attempts: {last_error}")
        raise TenantConnectionFailedError(tenant_id, max_retries, last_error)

    async def disconnect(self, tenant_id: str) -> bool:
        """
        Remove a tenant's cached engine and dispose it.

        Returns:
            True if an entry was removed
        """
        entry = self._registry.pop(tenant_id)
        if entry is None:
            return False

        if await dispose_quietly(entry.engine, tenant_id):
            logger.info(f"Disconnected database: {tenant_id}")
        return True

    def invalidate(self, tenant_id: str) -> None:
        """
        Mark a tenant's cached engine as dead.
        The next get_connection() for the tenant evicts it and reconnects.
        """
        entry = self._registry.get(tenant_id)
        if entry is None:
            return
        entry.is_connected = False
        entry.retry_count += 1
        logger.warning(f"Connection for tenant {tenant_id} marked as disconnected")

    @asynccontextmanager
    async def session_scope(
        self,
        tenant_id: str,
        database_url: Optional[str] = None,
    ) -> AsyncIterator[AsyncSession]:
        """
        Context manager for tenant database sessions.
        Commits on success, rolls back on error.

        Example:
            async with manager.session_scope(tenant_id) as session:
                batches = (await session.execute(select(Batch))).scalars().all()
        """
        engine = await self.get_connection(tenant_id, database_url)
        session = AsyncSession(engine, expire_on_commit=False)
        try:
            yield session
            await session.commit()
        except DBAPIError as e:
            if e.connection_invalidated:
                self.invalidate(tenant_id)
            await session.rollback()
            raise
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def test_connection(self, database_url: str) -> ConnectionTestResult:
        """
        Check that a DSN is reachable using a throwaway engine.

        Returns:
            ConnectionTestResult with success flag, error and response time
        """
        settings = self._settings
        url = augment_database_url(
            database_url,
            settings.tenant_connection_limit,
            pool_timeout=settings.pool_acquire_timeout,
            connect_timeout=settings.pool_connect_timeout,
            statement_timeout_ms=settings.pool_statement_timeout_ms,
        )
        start = time.perf_counter()
        engine = None

        try:
            engine = await asyncio.wait_for(self._connector(url), timeout=settings.tenant_test_timeout)
            return ConnectionTestResult(success=True, response_time_ms=_elapsed_ms(start))
        except asyncio.TimeoutError:
            return ConnectionTestResult(
                success=False,
                error="Connection test timeout",
                response_time_ms=_elapsed_ms(start),
            )
        except Exception as e:
            return ConnectionTestResult(
                success=False,
                error=str(e) or e.__class__.__name__,
                response_time_ms=_elapsed_ms(start),
            )
        finally:
            if engine is not None:
                await dispose_quietly(engine, "connection test")

    def get_pool_stats(self) -> ConnectionPoolStats:
        """Snapshot of every cached tenant connection."""
        details = [
            ConnectionDetail(
                tenant_id=tenant_id,
                last_used=entry.last_used,
                is_connected=entry.is_connected,
                retry_count=entry.retry_count,
            )
            for tenant_id, entry in self._registry.items()
        ]
        return ConnectionPoolStats(
            total_connections=len(details),
            active_connections=[d.tenant_id for d in details],
            connection_details=details,
        )


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)
