"""
Connection Lifecycle Management
Idle eviction of tenant engines and draining of all connections at shutdown
"""

import asyncio
from contextlib import suppress
from datetime import timedelta
from typing import TYPE_CHECKING, Any, List, Optional

from loguru import logger

from honeycert.database.registry import ConnectionEntry, ConnectionRegistry, utcnow

if TYPE_CHECKING:
    from honeycert.database.master_connection import MasterDatabaseResolver


async def dispose_quietly(engine: Any, label: str) -> bool:
    """
    Dispose an engine, logging instead of raising on failure.

    Returns:
        True if the engine was disposed cleanly
    """
    try:
        await engine.dispose()
        return True
    except Exception as e:
        logger.error(f"Error disconnecting from database {label}: {e}")
        return False


class ConnectionSweeper:
    """
    Lifecycle sweeper for tenant connections.

    Runs a background loop that disposes engines idle for longer than the
    threshold, and drains every connection (master included) at shutdown.
    None of its operations raise: shutdown must always be able to proceed.
    """

    def __init__(
        self,
        registry: ConnectionRegistry,
        master: "MasterDatabaseResolver",
        idle_timeout: float = 60.0,
        interval: float = 300.0,
    ):
        """
        Args:
            registry: Registry holding the tenant engines
            master: Resolver owning the master catalog engine
            idle_timeout: Seconds of inactivity before an engine is evicted
            interval: Seconds between background sweeps
        """
        self._registry = registry
        self._master = master
        self._idle_timeout = timedelta(seconds=idle_timeout)
        self._interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep_idle(self) -> List[str]:
        """
        Dispose and remove every entry idle longer than the threshold.

        Returns:
            Tenant ids that were evicted
        """
        now = utcnow()
        stale_ids = [
            entry.tenant_id for entry in self._registry
            if entry.idle_for(now) > self._idle_timeout
        ]

        evicted = []
        for tenant_id in stale_ids:
            entry = self._registry.get(tenant_id)
            # Skip entries reused since the scan started
            if entry is None or entry.idle_for() <= self._idle_timeout:
                continue
            self._registry.pop(tenant_id)
            await dispose_quietly(entry.engine, tenant_id)
            evicted.append(tenant_id)
            logger.info(f"Cleaned up stale connection for database: {tenant_id}")

        return evicted

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.sweep_idle()
            except Exception as e:
                logger.error(f"Error during periodic cleanup: {e}")

    def start(self) -> None:
        """Start the periodic sweep on the running event loop."""
        if self.is_running:
            logger.warning("Connection sweeper already running")
            return
        self._task = asyncio.ensure_future(self._run())
        logger.info(f"Connection sweeper started (interval={self._interval}s, idle={self._idle_timeout})")

    async def stop(self) -> None:
        """Stop the periodic sweep."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
        logger.info("Connection sweeper stopped")

    async def _close_master(self) -> None:
        try:
            await self._master.close()
        except Exception as e:
            logger.error(f"Error disconnecting master database: {e}")

    async def _close_entries(self, entries: List[ConnectionEntry]) -> None:
        await asyncio.gather(*(
            dispose_quietly(entry.engine, entry.tenant_id) for entry in entries
        ))

    async def drain_all(self) -> None:
        """
        Close the master engine and every tenant engine, then clear the registry.
        Individual failures are logged and do not stop the drain.
        """
        logger.info("Disconnecting all database connections...")
        await self._close_master()

        entries = list(self._registry)
        await self._close_entries(entries)
        self._registry.clear()
        logger.info(f"Disconnected {len(entries)} tenant databases")

    async def _force_close(self, entries: List[ConnectionEntry]) -> None:
        for entry in entries:
            await dispose_quietly(entry.engine, entry.tenant_id)
        await self._close_master()

    async def force_drain(self, timeout: float = 5.0) -> bool:
        """
        Emergency cleanup when drain_all() could not finish in time.

        The registry is cleared before anything is closed so that no lookup
        can be served a half-closed engine while cleanup runs. Closing is
        bounded by the timeout; engines still open when it expires are
        abandoned.

        Returns:
            True if every close finished within the timeout
        """
        logger.warning("Force cleaning up all connections...")
        entries = self._registry.clear()

        try:
            await asyncio.wait_for(self._force_close(entries), timeout=timeout)
        except asyncio.TimeoutError:
            logger.error(f"[FAIL] Force cleanup did not finish within {timeout}s, abandoning remaining connections")
            return False

        logger.info(f"Force cleaned up {len(entries)} connections")
        return True

    async def shutdown(self, timeout: float = 10.0, force_timeout: float = 5.0) -> bool:
        """
        Shutdown sequence for the hosting process.

        Stops the background sweep and drains all connections within the
        timeout, falling back to force_drain() when it expires.

        Returns:
            True if the graceful drain completed
        """
        await self.stop()
        try:
            await asyncio.wait_for(self.drain_all(), timeout=timeout)
            logger.info("Graceful shutdown completed")
            return True
        except asyncio.TimeoutError:
            logger.error(f"Graceful drain did not finish within {timeout}s")
            await self.force_drain(timeout=force_timeout)
            return False
