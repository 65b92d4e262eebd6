"""Unit tests for the application lifespan and health endpoints.

Database access is patched out; the bootstrap service returns canned
reports.
"""

from __future__ import annotations

import asyncio
import threading
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

import main
from infrastructure.settings import TenancySettings
from tenancy.domain.value_objects import (
    BootstrapReport,
    FailureKind,
    ProvisioningFailure,
    TenantId,
)
from tenancy.ports.exceptions import (
    ControlPlaneUnreachableError,
    PartialBootstrapError,
)


@pytest.fixture
def close_connections() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def patched_database(close_connections):
    with (
        patch("main.configure_logging"),
        patch("main.get_control_plane_engine", return_value=MagicMock()),
        patch("main.get_control_plane_sessionmaker", return_value=MagicMock()),
        patch("main.close_database_connections", close_connections),
    ):
        yield


def _bootstrap_returning(report: BootstrapReport):
    return patch.object(
        main.TenantBootstrapService, "bootstrap", AsyncMock(return_value=report)
    )


def _failed_report() -> tuple[TenantId, BootstrapReport]:
    bad = TenantId.generate()
    report = BootstrapReport(
        provisioned=(TenantId.generate(),),
        failed={
            bad: ProvisioningFailure(
                bad, FailureKind.MIGRATION, "boom", at_version="d15b8e4c6f70"
            )
        },
    )
    return bad, report


class TestHealth:
    def test_health(self, patched_database):
        with _bootstrap_returning(BootstrapReport()):
            with TestClient(main.app) as client:
                response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_tenant_health_ok_when_everything_provisioned(self, patched_database):
        with _bootstrap_returning(BootstrapReport()):
            with TestClient(main.app) as client:
                body = client.get("/health/tenants").json()

        assert body["status"] == "ok"
        assert body["unavailable"] == []
        assert body["registered"] == 0

    def test_tenant_health_degraded_while_failed_tenant_missing(
        self, patched_database, make_connection
    ):
        bad, report = _failed_report()

        with _bootstrap_returning(report):
            with TestClient(main.app) as client:
                degraded = client.get("/health/tenants").json()
                connection = make_connection(bad)
                client.app.state.tenant_registry.insert(bad, connection)
                recovered = client.get("/health/tenants").json()

        assert degraded["status"] == "degraded"
        assert degraded["unavailable"] == [bad.value]
        assert degraded["bootstrap"]["failed"][bad.value]["kind"] == "migration"
        assert recovered["status"] == "ok"
        assert recovered["registered"] == 1


class TestLifespan:
    def test_state_is_populated_for_dependencies(self, patched_database):
        with _bootstrap_returning(BootstrapReport()):
            with TestClient(main.app) as client:
                state = client.app.state
                assert state.tenant_registry is not None
                assert state.tenant_resolver is not None
                assert state.tenant_lifecycle is not None
                assert state.bootstrap_report.is_complete

    def test_shutdown_closes_connections(self, patched_database, close_connections):
        with _bootstrap_returning(BootstrapReport()):
            with TestClient(main.app):
                close_connections.assert_not_awaited()

        close_connections.assert_awaited_once()

    def test_shutdown_drains_tenant_pools(self, patched_database, make_connection):
        connection = make_connection()

        with _bootstrap_returning(BootstrapReport()):
            with TestClient(main.app) as client:
                client.app.state.tenant_registry.insert(
                    connection.public_id, connection
                )

        assert connection.is_closed

    def test_unreachable_control_plane_aborts_startup(
        self, patched_database, close_connections
    ):
        failing = patch.object(
            main.TenantBootstrapService,
            "bootstrap",
            AsyncMock(side_effect=ControlPlaneUnreachableError("refused")),
        )

        with failing, pytest.raises(ControlPlaneUnreachableError):
            with TestClient(main.app):
                pass

        close_connections.assert_awaited_once()

    def test_partial_bootstrap_is_served_by_default(self, patched_database):
        _, report = _failed_report()

        with _bootstrap_returning(report):
            with TestClient(main.app) as client:
                assert client.get("/health").status_code == 200

    def test_partial_bootstrap_aborts_when_configured(
        self, patched_database, close_connections
    ):
        bad, report = _failed_report()
        strict = TenancySettings(fail_on_partial_bootstrap=True)

        with (
            _bootstrap_returning(report),
            patch("main.get_tenancy_settings", return_value=strict),
            pytest.raises(PartialBootstrapError) as exc_info,
        ):
            with TestClient(main.app):
                pass

        assert exc_info.value.failed == [bad]
        close_connections.assert_awaited_once()


class TestSoftDeleteReconciler:
    def test_reconciler_runs_until_shutdown(self, patched_database):
        started = threading.Event()
        cancelled: list[bool] = []

        async def run_until_cancelled(interval_seconds: float) -> None:
            started.set()
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                cancelled.append(True)
                raise

        reconciler = MagicMock(side_effect=run_until_cancelled)

        with (
            _bootstrap_returning(BootstrapReport()),
            patch.object(main.TenantLifecycleService, "run_reconciler", reconciler),
        ):
            with TestClient(main.app):
                assert started.wait(timeout=2)
                assert cancelled == []

        reconciler.assert_called_once_with(
            main.get_tenancy_settings().reconcile_interval_seconds
        )
        assert cancelled == [True]

    def test_reconciler_disabled_with_zero_interval(self, patched_database):
        reconciler = AsyncMock()
        disabled = TenancySettings(reconcile_interval_seconds=0)

        with (
            _bootstrap_returning(BootstrapReport()),
            patch.object(main.TenantLifecycleService, "run_reconciler", reconciler),
            patch("main.get_tenancy_settings", return_value=disabled),
        ):
            with TestClient(main.app) as client:
                assert client.get("/health").status_code == 200

        reconciler.assert_not_called()
