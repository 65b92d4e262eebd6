"""Startup orchestration for the control plane and every tenant database.

Runs once per process before traffic is accepted:

1. Migrate and seed the control-plane schema. Failure here is fatal.
2. Enumerate active tenants. Failure here is fatal.
3. Provision every tenant with bounded parallelism and publish each success
   in the registry as soon as it is ready. A tenant's failure is recorded
   against its id and never stops the others.

The tenant phase runs under an overall deadline; tenants still in flight
when it expires are cancelled and reported as pending.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tenancy.application.observability import BootstrapProbe, DefaultBootstrapProbe
from tenancy.domain.value_objects import (
    BootstrapReport,
    FailureKind,
    ProvisioningFailure,
)
from tenancy.ports.exceptions import (
    ConnectFailedError,
    ControlPlaneUnreachableError,
    MigrationFailedError,
    SeedFailedError,
    TenantSoftDeletedError,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from tenancy.application.registry import TenantRegistry
    from tenancy.domain.value_objects import TenantId, TenantRecord
    from tenancy.ports.migrations import ISchemaMigrator
    from tenancy.ports.provisioning import ITenantConnectionFactory
    from tenancy.ports.repositories import IControlPlaneStore
    from tenancy.ports.seeders import Seeder


class TenantBootstrapService:
    """Migration orchestrator run at process start."""

    def __init__(
        self,
        control_plane_engine: AsyncEngine,
        control_plane_migrator: ISchemaMigrator,
        store: IControlPlaneStore,
        factory: ITenantConnectionFactory,
        registry: TenantRegistry,
        control_plane_seeders: Sequence[Seeder] = (),
        concurrency: int = 4,
        deadline_seconds: float = 120.0,
        probe: BootstrapProbe | None = None,
    ):
        """Initialize TenantBootstrapService with dependencies.

        Args:
            control_plane_engine: Engine bound to the control-plane database
            control_plane_migrator: Migrator for the control-plane schema
            store: Control-plane tenant store
            factory: Tenant connection factory
            registry: Registry that receives each provisioned connection
            control_plane_seeders: Seeders run after control-plane migrations
            concurrency: Maximum tenants provisioned at once
            deadline_seconds: Deadline for the whole tenant phase
            probe: Optional domain probe for observability
        """
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self._control_plane_engine = control_plane_engine
        self._control_plane_migrator = control_plane_migrator
        self._store = store
        self._factory = factory
        self._registry = registry
        self._control_plane_seeders = tuple(control_plane_seeders)
        self._concurrency = concurrency
        self._deadline_seconds = deadline_seconds
        self._probe = probe or DefaultBootstrapProbe()

    async def bootstrap(self) -> BootstrapReport:
        """Prepare the control plane and provision all active tenants.

        Returns:
            Which tenants are live, which failed and why, and which were
            still pending at the deadline.

        Raises:
            ControlPlaneUnreachableError: If the control plane cannot be
                migrated, seeded or read
        """
        await self._prepare_control_plane()
        records = await self._list_active_tenants()
        return await self._provision_all(records)

    async def _prepare_control_plane(self) -> None:
        try:
            version = await self._control_plane_migrator.upgrade(
                self._control_plane_engine
            )
        except Exception as e:
            self._probe.control_plane_failed("migrate", e)
            raise ControlPlaneUnreachableError(
                f"Control-plane migration failed: {e}"
            ) from e
        self._probe.control_plane_migrated(version)

        if not self._control_plane_seeders:
            return
        sessionmaker = async_sessionmaker(
            self._control_plane_engine, class_=AsyncSession, expire_on_commit=False
        )
        for seeder in self._control_plane_seeders:
            try:
                async with sessionmaker() as session, session.begin():
                    await seeder.seed(session)
            except Exception as e:
                self._probe.control_plane_failed(f"seed:{seeder.name}", e)
                raise ControlPlaneUnreachableError(
                    f"Control-plane seeder {seeder.name} failed: {e}"
                ) from e

    async def _list_active_tenants(self) -> list[TenantRecord]:
        try:
            return await self._store.list_active_tenants()
        except ControlPlaneUnreachableError as e:
            self._probe.control_plane_failed("list_tenants", e)
            raise

    async def _provision_all(self, records: list[TenantRecord]) -> BootstrapReport:
        started = time.perf_counter()
        self._probe.tenants_discovered(len(records), self._concurrency)

        semaphore = asyncio.Semaphore(self._concurrency)
        provisioned: set[TenantId] = set()
        failed: dict[TenantId, ProvisioningFailure] = {}

        async def provision_one(record: TenantRecord) -> None:
            async with semaphore:
                try:
                    connection = await self._factory.provision(record)
                except Exception as e:
                    failure = _failure_from(record.public_id, e)
                    failed[record.public_id] = failure
                    self._probe.tenant_failed(
                        record.public_id.value,
                        failure.kind.value,
                        failure.at_version,
                        failure.message,
                    )
                    return
                # No await between provision returning and publishing, so a
                # deadline cancellation cannot strand a migrated connection.
                previous = self._registry.insert(record.public_id, connection)
                provisioned.add(record.public_id)
            if previous is not None:
                try:
                    await previous.dispose()
                except Exception as e:
                    self._probe.connection_dispose_failed(record.public_id.value, e)

        tasks = {
            asyncio.create_task(provision_one(record)): record.public_id
            for record in records
        }
        pending_ids: set[TenantId] = set()
        if tasks:
            _, still_running = await asyncio.wait(
                tasks, timeout=self._deadline_seconds
            )
            if still_running:
                self._probe.deadline_exceeded(
                    len(still_running), self._deadline_seconds
                )
                for task in still_running:
                    task.cancel()
                await asyncio.gather(*still_running, return_exceptions=True)
                pending_ids = {tasks[task] for task in still_running} - provisioned

        report = BootstrapReport(
            provisioned=tuple(
                r.public_id for r in records if r.public_id in provisioned
            ),
            failed={
                r.public_id: failed[r.public_id]
                for r in records
                if r.public_id in failed
            },
            pending=tuple(r.public_id for r in records if r.public_id in pending_ids),
        )
        self._probe.bootstrap_completed(
            provisioned=len(report.provisioned),
            failed=len(report.failed),
            pending=len(report.pending),
            duration_ms=(time.perf_counter() - started) * 1000,
        )
        return report


def _failure_from(public_id: TenantId, error: Exception) -> ProvisioningFailure:
    """Classify a provisioning error for the bootstrap report."""
    if isinstance(error, MigrationFailedError):
        return ProvisioningFailure(
            public_id, FailureKind.MIGRATION, str(error), at_version=error.at_version
        )
    if isinstance(error, SeedFailedError):
        return ProvisioningFailure(public_id, FailureKind.SEED, str(error))
    if isinstance(error, TenantSoftDeletedError):
        return ProvisioningFailure(public_id, FailureKind.REJECTED, str(error))
    if isinstance(error, ConnectFailedError):
        return ProvisioningFailure(public_id, FailureKind.CONNECT, str(error))
    return ProvisioningFailure(
        public_id,
        FailureKind.INTERNAL,
        f"Unexpected {type(error).__name__} while provisioning tenant {public_id}",
    )
