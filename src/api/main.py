"""Main FastAPI application entry point."""

import asyncio
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from infrastructure.database.dependencies import (
    close_database_connections,
    get_control_plane_engine,
    get_control_plane_sessionmaker,
)
from infrastructure.logging import configure_logging
from infrastructure.migrations import (
    CONTROL_PLANE_SCRIPT_LOCATION,
    TENANT_SCRIPT_LOCATION,
)
from infrastructure.observability import DefaultStartupProbe
from infrastructure.settings import get_settings, get_tenancy_settings
from infrastructure.version import __version__
from tenancy.application import (
    TenantBootstrapService,
    TenantLifecycleService,
    TenantRegistry,
    TenantResolver,
)
from tenancy.dependencies import get_tenant_registry
from tenancy.domain.value_objects import BootstrapReport
from tenancy.infrastructure import (
    CONTROL_PLANE_SEEDERS,
    TENANT_SEEDERS,
    AlembicSchemaMigrator,
    ControlPlaneStore,
    TenantConnectionFactory,
)
from tenancy.ports.exceptions import BootstrapError, PartialBootstrapError


@asynccontextmanager
async def tenantry_lifespan(app: FastAPI):
    """Application lifespan context.

    Manages:
    - Control-plane migration and tenant provisioning before traffic
    - Tenancy objects on ``app.state`` for request dependencies
    - Periodic retirement of tenants soft-deleted in the control plane
    - Draining tenant pools, then the control-plane pool, on shutdown
    """
    configure_logging()
    settings = get_settings()
    tenancy_settings = get_tenancy_settings()
    probe = DefaultStartupProbe()
    probe.application_starting(settings.app_name, __version__)

    registry = TenantRegistry()
    store = ControlPlaneStore(get_control_plane_sessionmaker())
    factory = TenantConnectionFactory(
        settings=tenancy_settings,
        migrator=AlembicSchemaMigrator(
            TENANT_SCRIPT_LOCATION,
            migration_set="tenant",
            version_table=tenancy_settings.migrations_version_table,
        ),
        seeders=TENANT_SEEDERS,
    )
    bootstrap = TenantBootstrapService(
        control_plane_engine=get_control_plane_engine(),
        control_plane_migrator=AlembicSchemaMigrator(
            CONTROL_PLANE_SCRIPT_LOCATION,
            migration_set="control_plane",
        ),
        store=store,
        factory=factory,
        registry=registry,
        control_plane_seeders=CONTROL_PLANE_SEEDERS,
        concurrency=tenancy_settings.bootstrap_concurrency,
        deadline_seconds=tenancy_settings.bootstrap_deadline_seconds,
    )
    lifecycle = TenantLifecycleService(store=store, factory=factory, registry=registry)

    try:
        report = await bootstrap.bootstrap()
        if tenancy_settings.fail_on_partial_bootstrap and not report.is_complete:
            unavailable = [*report.failed, *report.pending]
            raise PartialBootstrapError(
                f"{len(unavailable)} tenant(s) could not be provisioned",
                failed=unavailable,
            )
    except BootstrapError as e:
        probe.startup_aborted(str(e))
        await lifecycle.shutdown()
        await close_database_connections()
        raise

    app.state.tenant_registry = registry
    app.state.tenant_resolver = TenantResolver(registry, store=store)
    app.state.tenant_lifecycle = lifecycle
    app.state.bootstrap_report = report
    probe.application_ready(
        provisioned=len(report.provisioned),
        failed=len(report.failed),
        pending=len(report.pending),
    )

    reconciler: asyncio.Task | None = None
    if tenancy_settings.reconcile_interval_seconds > 0:
        reconciler = asyncio.create_task(
            lifecycle.run_reconciler(tenancy_settings.reconcile_interval_seconds)
        )

    try:
        yield
    finally:
        if reconciler is not None:
            reconciler.cancel()
            await asyncio.gather(reconciler, return_exceptions=True)
        drained = await lifecycle.shutdown()
        await close_database_connections()
        probe.application_stopped(tenants_drained=drained)


app = FastAPI(
    title="Tenantry API",
    description="Multi-tenant control plane with per-tenant databases",
    version=__version__,
    lifespan=tenantry_lifespan,
)


@app.get("/health")
def health():
    """Basic health check endpoint."""
    return {"status": "ok"}


@app.get("/health/tenants")
def health_tenants(
    request: Request,
    registry: Annotated[TenantRegistry, Depends(get_tenant_registry)],
) -> dict:
    """Report how many tenants are live and how startup provisioning went.

    Status is "degraded" while a tenant that failed or timed out at startup
    is still missing from the registry.
    """
    report: BootstrapReport = request.app.state.bootstrap_report
    unavailable = [
        tenant_id.value
        for tenant_id in (*report.failed, *report.pending)
        if tenant_id not in registry
    ]
    return {
        "status": "degraded" if unavailable else "ok",
        "registered": len(registry),
        "unavailable": unavailable,
        "bootstrap": report.as_dict(),
    }
