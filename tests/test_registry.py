"""
Unit Tests for the connection registry
"""

from datetime import timedelta

from honeycert.database.registry import ConnectionEntry, ConnectionRegistry, utcnow


class TestConnectionEntry:

    def test_defaults(self):
        """New entries are connected with no retries"""
        entry = ConnectionEntry(tenant_id="A", engine=object())

        assert entry.is_connected is True
        assert entry.retry_count == 0

    def test_touch_and_idle_for(self):
        """touch() resets the idle clock"""
        entry = ConnectionEntry(tenant_id="A", engine=object())
        entry.last_used = utcnow() - timedelta(minutes=5)
        assert entry.idle_for() >= timedelta(minutes=5)

        entry.touch()
        assert entry.idle_for() < timedelta(seconds=5)


class TestConnectionRegistry:

    def test_put_get_pop(self):
        """At most one entry per tenant; put replaces"""
        registry = ConnectionRegistry()
        first = ConnectionEntry(tenant_id="A", engine="engine-1")
        second = ConnectionEntry(tenant_id="A", engine="engine-2")

        registry.put(first)
        registry.put(second)

        assert len(registry) == 1
        assert registry.get("A") is second
        assert registry.pop("A") is second
        assert registry.pop("A") is None
        assert "A" not in registry

    def test_clear_returns_entries(self):
        """clear() empties the registry and hands back what it held"""
        registry = ConnectionRegistry()
        registry.put(ConnectionEntry(tenant_id="A", engine="a"))
        registry.put(ConnectionEntry(tenant_id="B", engine="b"))

        entries = registry.clear()

        assert sorted(e.tenant_id for e in entries) == ["A", "B"]
        assert len(registry) == 0

    def test_iteration_is_a_snapshot(self):
        """Removing entries while iterating is safe"""
        registry = ConnectionRegistry()
        for tenant_id in ("A", "B", "C"):
            registry.put(ConnectionEntry(tenant_id=tenant_id, engine=tenant_id))

        for entry in registry:
            registry.pop(entry.tenant_id)

        assert len(registry) == 0
        assert registry.tenant_ids() == []
