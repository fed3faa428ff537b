"""
Shared fixtures and fakes for the tenant routing tests.

No live database is needed: engines are replaced by FakeEngine, connection
attempts by FakeConnector and catalog queries by InMemoryCatalog.
"""

import asyncio
import os
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional

os.environ.setdefault("LOG_TO_FILE", "false")

import pytest

from honeycert.config import Settings
from honeycert.database.master_connection import MasterDatabaseResolver
from honeycert.database.registry import ConnectionRegistry
from honeycert.database.tenant_connection import TenantConnectionManager
from honeycert.schemas.tenant import TenantDatabaseCreate, TenantDatabaseUpdate, TenantRecord


def make_settings(**overrides) -> Settings:
    values = dict(
        _env_file=None,
        master_database_url=None,
        tenant_retry_delay=0.0,
        tenant_connect_timeout=1.0,
        tenant_test_timeout=1.0,
        master_lookup_timeout=1.0,
        master_list_timeout=1.0,
        log_to_file=False,
    )
    values.update(overrides)
    return Settings(**values)


def make_tenant(tenant_id: str, active: bool = True, host: str = "db.internal") -> TenantRecord:
    return TenantRecord(
        id=tenant_id,
        name=f"tenant_{tenant_id.lower()}",
        display_name=f"Tenant {tenant_id}",
        database_url=f"postgresql://app:s3cret@{host}:5432/tenant_{tenant_id.lower()}",
        is_active=active,
        managed_by_admin_id=1,
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


class FakeEngine:
    """Stands in for an AsyncEngine; counts dispose() calls."""

    def __init__(self, url: str, fail_dispose: bool = False):
        self.url = url
        self.fail_dispose = fail_dispose
        self.dispose_calls = 0
        self.on_dispose: Optional[Callable[["FakeEngine"], None]] = None

    async def dispose(self) -> None:
        self.dispose_calls += 1
        if self.on_dispose is not None:
            self.on_dispose(self)
        if self.fail_dispose:
            raise RuntimeError("dispose failed")


class FakeConnector:
    """
    Replaces connect_tenant_engine.

    Fails the first `failures` attempts, and always fails for URLs containing
    any of `broken_hosts`.
    """

    def __init__(self, failures: int = 0, delay: float = 0.0, broken_hosts: Iterable[str] = ()):
        self.failures = failures
        self.delay = delay
        self.broken_hosts = list(broken_hosts)
        self.attempts = 0
        self.urls: List[str] = []
        self.engines: List[FakeEngine] = []

    async def __call__(self, database_url: str) -> FakeEngine:
        self.attempts += 1
        self.urls.append(database_url)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.attempts <= self.failures:
            raise ConnectionRefusedError("connection refused")
        if any(host in database_url for host in self.broken_hosts):
            raise ConnectionRefusedError("could not connect to server")
        engine = FakeEngine(database_url)
        self.engines.append(engine)
        return engine


class InMemoryCatalog(MasterDatabaseResolver):
    """MasterDatabaseResolver whose catalog queries hit a dict instead of a database."""

    def __init__(self, tenants: Iterable[TenantRecord] = (), settings: Optional[Settings] = None):
        super().__init__(settings or make_settings())
        self.tenants: Dict[str, TenantRecord] = {t.id: t for t in tenants}
        self.delay = 0.0
        self.error: Optional[Exception] = None
        self.lookups = 0
        self.close_calls = 0
        self.fail_close = False

    async def _fetch_tenant(self, tenant_id: str) -> Optional[TenantRecord]:
        self.lookups += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.tenants.get(tenant_id)

    async def _fetch_active_tenants(self) -> List[TenantRecord]:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return [t for t in self.tenants.values() if t.is_active]

    async def _insert_tenant(self, data: TenantDatabaseCreate, managed_by_admin_id: int) -> TenantRecord:
        record = TenantRecord(
            id=f"id-{data.name}",
            name=data.name,
            display_name=data.display_name,
            description=data.description,
            database_url=data.database_url,
            is_active=True,
            managed_by_admin_id=managed_by_admin_id,
            created_at=datetime.now(timezone.utc),
            max_users=data.max_users,
            max_storage_mb=data.max_storage_mb,
        )
        self.tenants[record.id] = record
        return record

    async def _apply_update(self, tenant_id: str, changes: TenantDatabaseUpdate) -> Optional[TenantRecord]:
        record = self.tenants.get(tenant_id)
        if record is None:
            return None
        record = record.model_copy(update=changes.model_dump(exclude_unset=True))
        self.tenants[tenant_id] = record
        return record

    async def close(self) -> None:
        self.close_calls += 1
        if self.fail_close:
            raise RuntimeError("master close failed")
        await super().close()


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def catalog(settings) -> InMemoryCatalog:
    """Catalog with A active, B inactive."""
    return InMemoryCatalog([make_tenant("A"), make_tenant("B", active=False)], settings=settings)


@pytest.fixture
def registry() -> ConnectionRegistry:
    return ConnectionRegistry()


@pytest.fixture
def connector() -> FakeConnector:
    return FakeConnector()


@pytest.fixture
def manager(registry, catalog, settings, connector) -> TenantConnectionManager:
    return TenantConnectionManager(registry, catalog, settings=settings, connector=connector)
