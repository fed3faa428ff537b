"""
Unit Tests for ConnectionSweeper
Tests idle eviction, draining and the shutdown sequence
"""

import asyncio
from datetime import timedelta

import pytest

from honeycert.database.lifecycle import ConnectionSweeper, dispose_quietly
from honeycert.database.registry import ConnectionEntry, utcnow

from tests.conftest import FakeEngine


def _age(registry, tenant_id, seconds):
    registry.get(tenant_id).last_used = utcnow() - timedelta(seconds=seconds)


@pytest.fixture
def sweeper(registry, catalog) -> ConnectionSweeper:
    return ConnectionSweeper(registry, catalog, idle_timeout=60.0, interval=300.0)


class TestDisposeQuietly:

    @pytest.mark.asyncio
    async def test_success(self):
        engine = FakeEngine("x")
        assert await dispose_quietly(engine, "x") is True
        assert engine.dispose_calls == 1

    @pytest.mark.asyncio
    async def test_failure_is_swallowed(self):
        engine = FakeEngine("x", fail_dispose=True)
        assert await dispose_quietly(engine, "x") is False


class TestSweepIdle:
    """Test suite for idle eviction"""

    @pytest.mark.asyncio
    async def test_evicts_only_idle_entries(self, manager, registry, sweeper):
        """Entries idle past the threshold are disposed, fresh ones stay"""
        idle_engine = await manager.get_connection("A")
        fresh_engine = await manager.get_connection("Z", database_url="postgresql://app:pw@db.internal/tenant_z")
        _age(registry, "A", 61)

        evicted = await sweeper.sweep_idle()

        assert evicted == ["A"]
        assert idle_engine.dispose_calls == 1
        assert fresh_engine.dispose_calls == 0
        assert registry.tenant_ids() == ["Z"]

    @pytest.mark.asyncio
    async def test_evicted_tenant_reconnects_transparently(self, manager, registry, sweeper, connector):
        """The next request after eviction opens a new engine"""
        old = await manager.get_connection("A")
        _age(registry, "A", 120)
        await sweeper.sweep_idle()

        new = await manager.get_connection("A")

        assert new is not old
        assert connector.attempts == 2

    @pytest.mark.asyncio
    async def test_entry_used_during_sweep_is_kept(self, registry, catalog, sweeper):
        """An entry touched after the scan started survives"""
        slow = FakeEngine("slow")
        reused = FakeEngine("reused")
        registry.put(ConnectionEntry(tenant_id="S", engine=slow, last_used=utcnow() - timedelta(seconds=120)))
        registry.put(ConnectionEntry(tenant_id="R", engine=reused, last_used=utcnow() - timedelta(seconds=120)))

        # Disposing the first engine "reuses" the second one mid-sweep
        slow.on_dispose = lambda _: registry.get("R").touch()

        evicted = await sweeper.sweep_idle()

        assert evicted == ["S"]
        assert "R" in registry
        assert reused.dispose_calls == 0

    @pytest.mark.asyncio
    async def test_dispose_failure_still_evicts(self, registry, sweeper):
        engine = FakeEngine("broken", fail_dispose=True)
        registry.put(ConnectionEntry(tenant_id="X", engine=engine, last_used=utcnow() - timedelta(seconds=120)))

        assert await sweeper.sweep_idle() == ["X"]
        assert len(registry) == 0


class TestBackgroundSweep:
    """Test suite for the periodic sweep task"""

    @pytest.mark.asyncio
    async def test_start_and_stop(self, sweeper):
        sweeper.start()
        assert sweeper.is_running

        sweeper.start()  # second start is ignored
        assert sweeper.is_running

        await sweeper.stop()
        assert not sweeper.is_running

    @pytest.mark.asyncio
    async def test_stop_without_start(self, sweeper):
        await sweeper.stop()
        assert not sweeper.is_running

    @pytest.mark.asyncio
    async def test_loop_evicts_idle_entries(self, registry, catalog):
        engine = FakeEngine("idle")
        registry.put(ConnectionEntry(tenant_id="I", engine=engine, last_used=utcnow() - timedelta(seconds=5)))
        sweeper = ConnectionSweeper(registry, catalog, idle_timeout=1.0, interval=0.01)

        sweeper.start()
        try:
            for _ in range(100):
                if "I" not in registry:
                    break
                await asyncio.sleep(0.01)
        finally:
            await sweeper.stop()

        assert "I" not in registry
        assert engine.dispose_calls == 1


class TestDrain:
    """Test suite for drain_all and force_drain"""

    @pytest.mark.asyncio
    async def test_drain_all_closes_everything(self, manager, registry, catalog, sweeper):
        """Every engine is disposed even if one of them fails"""
        a = await manager.get_connection("A")
        z = await manager.get_connection("Z", database_url="postgresql://app:pw@db.internal/tenant_z")
        a.fail_dispose = True

        await sweeper.drain_all()

        assert a.dispose_calls == 1
        assert z.dispose_calls == 1
        assert catalog.close_calls == 1
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_drain_all_tolerates_master_failure(self, manager, registry, catalog, sweeper):
        engine = await manager.get_connection("A")
        catalog.fail_close = True

        await sweeper.drain_all()

        assert engine.dispose_calls == 1
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_drain_all_on_empty_registry(self, sweeper, catalog):
        await sweeper.drain_all()
        assert catalog.close_calls == 1

    @pytest.mark.asyncio
    async def test_force_drain_clears_before_closing(self, registry, catalog, sweeper):
        """Engines are closed after the registry is already empty"""
        seen_sizes = []
        engines = [FakeEngine(f"e{i}") for i in range(3)]
        for i, engine in enumerate(engines):
            engine.on_dispose = lambda _: seen_sizes.append(len(registry))
            registry.put(ConnectionEntry(tenant_id=f"T{i}", engine=engine))

        await sweeper.force_drain()

        assert all(engine.dispose_calls == 1 for engine in engines)
        assert seen_sizes == [0, 0, 0]
        assert catalog.close_calls == 1

    @pytest.mark.asyncio
    async def test_force_drain_is_bounded(self, registry, catalog, sweeper):
        """A master close that never returns does not stall the forced cleanup"""
        engine = FakeEngine("tenant")
        registry.put(ConnectionEntry(tenant_id="T", engine=engine))

        async def hangs():
            await asyncio.sleep(10)

        catalog.close = hangs

        completed = await asyncio.wait_for(sweeper.force_drain(timeout=0.05), timeout=5)

        assert completed is False
        assert engine.dispose_calls == 1
        assert len(registry) == 0


class TestShutdown:
    """Test suite for the shutdown sequence"""

    @pytest.mark.asyncio
    async def test_graceful_shutdown(self, manager, registry, catalog, sweeper):
        engine = await manager.get_connection("A")
        sweeper.start()

        assert await sweeper.shutdown(timeout=1.0) is True

        assert not sweeper.is_running
        assert engine.dispose_calls == 1
        assert catalog.close_calls == 1
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_falls_back_to_force_drain(self, registry, catalog, sweeper):
        """A drain that exceeds the timeout is replaced by a forced one"""
        hung = FakeEngine("hung")
        healthy = FakeEngine("healthy")

        async def hangs_first_time():
            hung.dispose_calls += 1
            if hung.dispose_calls == 1:
                await asyncio.sleep(10)

        hung.dispose = hangs_first_time
        registry.put(ConnectionEntry(tenant_id="H", engine=hung))
        registry.put(ConnectionEntry(tenant_id="OK", engine=healthy))

        completed = await asyncio.wait_for(sweeper.shutdown(timeout=0.05), timeout=5)

        assert completed is False
        assert len(registry) == 0
        assert healthy.dispose_calls >= 1
        assert catalog.close_calls >= 1

    @pytest.mark.asyncio
    async def test_hung_master_does_not_block_shutdown(self, registry, catalog, sweeper):
        """Shutdown returns even if the master close hangs on both paths"""
        registry.put(ConnectionEntry(tenant_id="T", engine=FakeEngine("tenant")))

        async def hangs():
            await asyncio.sleep(10)

        catalog.close = hangs

        completed = await asyncio.wait_for(
            sweeper.shutdown(timeout=0.05, force_timeout=0.05),
            timeout=5,
        )

        assert completed is False
        assert len(registry) == 0
