"""Tenant connection factory.

Turns a control-plane tenant row into a live, migrated TenantConnection:
open a pool, verify it, migrate the tenant schema to head, run seeders, and
only then hand out the handle. On any failure the pool is disposed and no
handle escapes, so a caller never sees a half-provisioned tenant.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from sqlalchemy import text
from sqlalchemy.exc import ArgumentError, InvalidRequestError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from infrastructure.database.engines import create_tenant_engine, describe_url
from infrastructure.database.exceptions import (
    DatabaseConnectionError,
    SchemaMigrationError,
)
from tenancy.domain.connection import TenantConnection
from tenancy.infrastructure.observability import (
    DefaultProvisioningProbe,
    ProvisioningProbe,
)
from tenancy.ports.exceptions import (
    ConnectFailedError,
    MigrationFailedError,
    SeedFailedError,
    TenantSoftDeletedError,
)
from tenancy.ports.provisioning import ITenantConnectionFactory

if TYPE_CHECKING:
    from infrastructure.settings import TenancySettings
    from tenancy.domain.value_objects import TenantId, TenantRecord
    from tenancy.ports.migrations import ISchemaMigrator
    from tenancy.ports.seeders import Seeder

EngineFactory = Callable[[str, "TenancySettings"], AsyncEngine]


class TenantConnectionFactory(ITenantConnectionFactory):
    """Provisions tenant databases and wraps them as TenantConnections.

    The factory holds no per-tenant state and may run provisions for
    different tenants concurrently.
    """

    def __init__(
        self,
        settings: TenancySettings,
        migrator: ISchemaMigrator,
        seeders: Sequence[Seeder] = (),
        probe: ProvisioningProbe | None = None,
        engine_factory: EngineFactory = create_tenant_engine,
    ):
        """Initialize the factory.

        Args:
            settings: Pool sizes and timeouts for tenant engines
            migrator: Migrator for the tenant schema
            seeders: Seeders run after migration, in order
            probe: Optional domain probe for observability
            engine_factory: Builds an engine from a connection string
        """
        self._settings = settings
        self._migrator = migrator
        self._seeders = tuple(seeders)
        self._probe = probe or DefaultProvisioningProbe()
        self._engine_factory = engine_factory

    async def provision(self, record: TenantRecord) -> TenantConnection:
        """Connect to, migrate and seed a tenant database.

        Args:
            record: Active tenant row from the control plane

        Returns:
            A live connection whose schema is at the migration head

        Raises:
            TenantSoftDeletedError: If the record is soft-deleted
            ConnectFailedError: If the database is unreachable, the
                connection string is unusable, or the run timed out
            MigrationFailedError: If a migration revision failed
            SeedFailedError: If a seeder failed
        """
        public_id = record.public_id
        if not record.is_active:
            raise TenantSoftDeletedError(
                f"Tenant {public_id} is soft-deleted and cannot be provisioned",
                public_id,
            )

        timeout = self._settings.provision_timeout_seconds
        try:
            return await asyncio.wait_for(self._provision(record), timeout=timeout)
        except asyncio.TimeoutError as e:
            self._probe.provisioning_timed_out(public_id.value, timeout)
            raise ConnectFailedError(
                f"Provisioning tenant {public_id} timed out after {timeout}s",
                public_id,
            ) from e

    async def _provision(self, record: TenantRecord) -> TenantConnection:
        public_id = record.public_id
        started = time.perf_counter()
        engine = self._create_engine(record)

        try:
            await self._verify(engine, public_id)
            schema_version = await self._migrate(engine, public_id)
            sessionmaker = async_sessionmaker(
                engine, class_=AsyncSession, expire_on_commit=False
            )
            await self._seed(sessionmaker, public_id)
        except BaseException:
            await self._discard(engine, public_id)
            raise

        connection = TenantConnection._establish(
            public_id=public_id,
            engine=engine,
            sessionmaker=sessionmaker,
            schema_version=schema_version,
        )
        duration_ms = (time.perf_counter() - started) * 1000
        self._probe.tenant_provisioned(public_id.value, schema_version, duration_ms)
        return connection

    def _create_engine(self, record: TenantRecord) -> AsyncEngine:
        public_id = record.public_id
        raw_url = record.connection_string.get_secret_value()
        try:
            location = describe_url(raw_url)
            engine = self._engine_factory(raw_url, self._settings)
        except (ArgumentError, InvalidRequestError, ValueError):
            # The parse error may quote the URL, so it is not chained.
            self._probe.tenant_connection_string_invalid(public_id.value)
            raise ConnectFailedError(
                f"Connection string for tenant {public_id} could not be parsed",
                public_id,
            ) from None

        self._probe.provisioning_started(
            public_id.value, location["host"], location["database"]
        )
        return engine

    async def _verify(self, engine: AsyncEngine, public_id: TenantId) -> None:
        try:
            async with engine.connect() as connection:
                await connection.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError, TimeoutError) as e:
            self._probe.tenant_connect_failed(public_id.value, e)
            raise ConnectFailedError(
                f"Could not connect to database of tenant {public_id}: "
                f"{type(e).__name__}",
                public_id,
            ) from e

    async def _migrate(self, engine: AsyncEngine, public_id: TenantId) -> str | None:
        try:
            return await self._migrator.upgrade(engine)
        except SchemaMigrationError as e:
            self._probe.tenant_migration_failed(public_id.value, e.revision, e)
            raise MigrationFailedError(
                f"Migration of tenant {public_id} failed at {e.revision}",
                public_id,
                at_version=e.revision,
            ) from e
        except DatabaseConnectionError as e:
            self._probe.tenant_connect_failed(public_id.value, e)
            raise ConnectFailedError(
                f"Lost connection to tenant {public_id} while migrating",
                public_id,
            ) from e

    async def _seed(
        self,
        sessionmaker: async_sessionmaker[AsyncSession],
        public_id: TenantId,
    ) -> None:
        for seeder in self._seeders:
            try:
                async with sessionmaker() as session, session.begin():
                    await seeder.seed(session)
            except Exception as e:
                self._probe.tenant_seed_failed(public_id.value, seeder.name, e)
                raise SeedFailedError(
                    f"Seeder {seeder.name} failed for tenant {public_id}",
                    public_id,
                    seeder=seeder.name,
                ) from e

    async def _discard(self, engine: AsyncEngine, public_id: TenantId) -> None:
        try:
            await engine.dispose()
        except Exception as e:
            self._probe.engine_dispose_failed(public_id.value, e)

