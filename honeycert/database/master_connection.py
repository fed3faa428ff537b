"""
Master Catalog Connection Management
Owns the single connection pool to the master catalog database and resolves
tenant identifiers to their catalog records
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, List, Optional, TypeVar

from loguru import logger
from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from honeycert.config import Settings, get_settings
from honeycert.database.exceptions import (
    CatalogQueryError,
    ConfigurationError,
    DatabaseTimeoutError,
    TenantAlreadyExistsError,
    TenantInactiveError,
    TenantNotFoundError,
    TenantRoutingException,
)
from honeycert.database.url import augment_database_url, create_engine_from_url
from honeycert.models.master import MasterBase, TenantDatabase
from honeycert.schemas.tenant import TenantDatabaseCreate, TenantDatabaseUpdate, TenantRecord

T = TypeVar("T")


class MasterDatabaseResolver:
    """
    Master Catalog Resolver

    Holds the one engine connected to the master catalog. The engine is built
    on first use from MASTER_DATABASE_URL, DATABASE_URL or POSTGRES_URL
    (first one set wins) and reused for the lifetime of the process.
    Every catalog query is bounded by a timeout.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        engine_factory: Callable[[str], AsyncEngine] = create_engine_from_url,
    ):
        self._settings = settings or get_settings()
        self._engine_factory = engine_factory
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker] = None

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    def _master_database_url(self) -> str:
        url = self._settings.master_database_url
        if not url or not url.strip():
            logger.error("No master database URL found in environment variables")
            logger.error("Please set one of: MASTER_DATABASE_URL, DATABASE_URL, or POSTGRES_URL")
            raise ConfigurationError()
        return url

    def get_master_handle(self) -> AsyncEngine:
        """
        Get the master catalog engine, creating it on first call.

        Returns:
            AsyncEngine bound to the master catalog

        Raises:
            ConfigurationError: If no master database URL is configured
        """
        if self._engine is not None:
            return self._engine

        settings = self._settings
        master_url = augment_database_url(
            self._master_database_url(),
            settings.master_connection_limit,
            pool_timeout=settings.pool_acquire_timeout,
            connect_timeout=settings.pool_connect_timeout,
            statement_timeout_ms=settings.pool_statement_timeout_ms,
        )

        logger.info("Creating master database engine")
        self._engine = self._engine_factory(master_url)
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        return self._engine

    @asynccontextmanager
    async def session_scope(self) -> AsyncIterator[AsyncSession]:
        """
        Context manager for master catalog sessions.
        Commits on success, rolls back on error.

        Example:
            async with master.session_scope() as session:
                admin = await session.get(Admin, admin_id)
        """
        self.get_master_handle()
        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def _bounded(self, operation: str, awaitable: Awaitable[T], timeout: float) -> T:
        """
        Run a catalog operation with a timeout, translating driver errors.

        Socket-level failures (refused connection, unresolvable host) reach
        us as plain OSError from asyncpg and are translated too.
        """
        try:
            return await asyncio.wait_for(awaitable, timeout=timeout)
        except asyncio.TimeoutError:
            logger.error(f"Master DB {operation} timed out after {timeout}s")
            raise DatabaseTimeoutError(f"Master DB {operation}", timeout)
        except TenantRoutingException:
            raise
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"Master DB {operation} failed: {e}")
            raise CatalogQueryError(operation, e) from e

    # ==================== Queries ====================

    async def _fetch_tenant(self, tenant_id: str) -> Optional[TenantRecord]:
        async with self.session_scope() as session:
            record = await session.get(TenantDatabase, tenant_id)
            return TenantRecord.model_validate(record) if record else None

    async def _fetch_active_tenants(self) -> List[TenantRecord]:
        async with self.session_scope() as session:
            result = await session.execute(
                select(TenantDatabase)
                .where(TenantDatabase.is_active.is_(True))
                .order_by(TenantDatabase.created_at)
            )
            return [TenantRecord.model_validate(row) for row in result.scalars()]

    async def get_tenant_record(self, tenant_id: str) -> Optional[TenantRecord]:
        """Fetch a tenant's catalog record regardless of its active flag."""
        return await self._bounded(
            "tenant lookup",
            self._fetch_tenant(tenant_id),
            self._settings.master_lookup_timeout,
        )

    async def lookup_tenant(self, tenant_id: str) -> TenantRecord:
        """
        Resolve a tenant to its active catalog record.

        Raises:
            TenantNotFoundError: If the tenant is not in the catalog
            TenantInactiveError: If the tenant exists but is deactivated
                (a TenantNotFoundError subclass)
            DatabaseTimeoutError: If the catalog did not answer in time
        """
        record = await self.get_tenant_record(tenant_id)
        if record is None:
            logger.warning(f"Tenant not found in master catalog: {tenant_id}")
            raise TenantNotFoundError(tenant_id)
        if not record.is_active:
            logger.warning(f"Tenant is not active: {tenant_id}")
            raise TenantInactiveError(tenant_id)
        return record

    async def find_active_tenant(self, tenant_id: str) -> Optional[TenantRecord]:
        """Like lookup_tenant, but inactive and missing tenants both return None."""
        try:
            return await self.lookup_tenant(tenant_id)
        except TenantNotFoundError:
            return None

    async def list_active_tenants(self) -> List[TenantRecord]:
        """Get all active tenants, oldest first."""
        return await self._bounded(
            "active tenant listing",
            self._fetch_active_tenants(),
            self._settings.master_list_timeout,
        )

    # ==================== Catalog Writes ====================

    async def _insert_tenant(self, data: TenantDatabaseCreate, managed_by_admin_id: int) -> TenantRecord:
        async with self.session_scope() as session:
            record = TenantDatabase(
                name=data.name,
                display_name=data.display_name,
                description=data.description,
                database_url=data.database_url,
                managed_by_admin_id=managed_by_admin_id,
                max_users=data.max_users,
                max_storage_mb=data.max_storage_mb,
                is_active=True,
            )
            session.add(record)
            await session.flush()
            return TenantRecord.model_validate(record)

    async def create_tenant_record(
        self,
        data: TenantDatabaseCreate,
        managed_by_admin_id: int,
    ) -> TenantRecord:
        """
        Register a tenant database in the master catalog.

        Raises:
            TenantAlreadyExistsError: If the tenant name is taken
        """
        try:
            record = await self._bounded(
                "tenant creation",
                self._insert_tenant(data, managed_by_admin_id),
                self._settings.master_lookup_timeout,
            )
        except CatalogQueryError as e:
            if isinstance(e.__cause__, IntegrityError):
                raise TenantAlreadyExistsError(data.name) from e
            raise

        logger.info(f"[OK] Registered tenant database: {record.name} ({record.id})")
        return record

    async def _apply_update(self, tenant_id: str, changes: TenantDatabaseUpdate) -> Optional[TenantRecord]:
        async with self.session_scope() as session:
            record = await session.get(TenantDatabase, tenant_id)
            if record is None:
                return None
            for key, value in changes.model_dump(exclude_unset=True).items():
                setattr(record, key, value)
            await session.flush()
            return TenantRecord.model_validate(record)

    async def update_tenant_record(self, tenant_id: str, changes: TenantDatabaseUpdate) -> TenantRecord:
        """
        Toggle a tenant's active flag or update its quotas.

        Raises:
            TenantNotFoundError: If the tenant is not in the catalog
        """
        record = await self._bounded(
            "tenant update",
            self._apply_update(tenant_id, changes),
            self._settings.master_lookup_timeout,
        )
        if record is None:
            raise TenantNotFoundError(tenant_id)

        logger.info(f"Updated tenant database {tenant_id}: {changes.model_dump(exclude_unset=True)}")
        return record

    # ==================== Maintenance ====================

    async def create_tables(self) -> None:
        """
        Create master catalog tables if they don't exist.
        Note: Prefer migrations for production.
        """
        engine = self.get_master_handle()
        async with engine.begin() as conn:
            await conn.run_sync(MasterBase.metadata.create_all)
        logger.info("[OK] Master catalog tables created/verified")

    async def test_connection(self) -> bool:
        """
        Test master catalog connectivity.

        Returns:
            True if connection successful
        """
        try:
            engine = self.get_master_handle()
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            logger.info("[OK] Master database connection test passed")
            return True
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(f"[FAIL] Master database connection test failed: {e}")
            return False

    async def close(self) -> None:
        """Dispose the master engine. A later get_master_handle() recreates it."""
        engine = self._engine
        self._engine = None
        self._session_factory = None
        if engine is not None:
            await engine.dispose()
            logger.info("[OK] Master database connections closed")
