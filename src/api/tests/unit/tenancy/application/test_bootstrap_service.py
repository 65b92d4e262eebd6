"""Unit tests for TenantBootstrapService.

The connection factory is replaced by a scripted fake so each tenant's
outcome (success, failure, slowness) is controlled per test.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from tenancy.application.observability import BootstrapProbe
from tenancy.application.registry import TenantRegistry
from tenancy.application.services import TenantBootstrapService
from tenancy.domain.value_objects import FailureKind
from tenancy.ports.exceptions import (
    ConnectFailedError,
    ControlPlaneUnreachableError,
    MigrationFailedError,
    SeedFailedError,
    TenantSoftDeletedError,
)


class ScriptedFactory:
    """Connection factory whose per-tenant behaviour is set by the test."""

    def __init__(self, make_connection):
        self._make_connection = make_connection
        self.errors: dict = {}
        self.delays: dict = {}
        self.in_flight = 0
        self.max_in_flight = 0
        self.calls: list = []

    async def provision(self, record):
        self.calls.append(record.public_id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(record.public_id, 0.01))
            error = self.errors.get(record.public_id)
            if error is not None:
                raise error
            return self._make_connection(record.public_id, "f2e6a0b93c58")
        finally:
            self.in_flight -= 1


@pytest.fixture
def factory(make_connection) -> ScriptedFactory:
    return ScriptedFactory(make_connection)


@pytest.fixture
def registry() -> TenantRegistry:
    return TenantRegistry(probe=MagicMock())


@pytest.fixture
def mock_migrator() -> MagicMock:
    migrator = MagicMock()
    migrator.upgrade = AsyncMock(return_value="8c41d0e6a2f5")
    return migrator


@pytest.fixture
def mock_store() -> MagicMock:
    store = MagicMock()
    store.list_active_tenants = AsyncMock(return_value=[])
    return store


@pytest.fixture
def mock_probe() -> MagicMock:
    return MagicMock(spec=BootstrapProbe)


@pytest.fixture
def make_service(mock_migrator, mock_store, factory, registry, mock_probe):
    def _make(**kwargs) -> TenantBootstrapService:
        options = {"concurrency": 2, "deadline_seconds": 5.0}
        options.update(kwargs)
        return TenantBootstrapService(
            control_plane_engine=MagicMock(),
            control_plane_migrator=mock_migrator,
            store=mock_store,
            factory=factory,
            registry=registry,
            probe=mock_probe,
            **options,
        )

    return _make


class TestControlPlanePhase:
    @pytest.mark.asyncio
    async def test_control_plane_is_migrated_before_tenants(
        self, make_service, mock_migrator, mock_store, mock_probe
    ):
        order: list[str] = []

        def list_active_tenants():
            order.append("list")
            return []

        mock_migrator.upgrade.side_effect = lambda engine: order.append("migrate")
        mock_store.list_active_tenants.side_effect = list_active_tenants

        await make_service().bootstrap()

        assert order == ["migrate", "list"]

    @pytest.mark.asyncio
    async def test_migration_failure_is_fatal(
        self, make_service, mock_migrator, mock_store, registry, factory, mock_probe
    ):
        mock_migrator.upgrade.side_effect = RuntimeError("relation exists")

        with pytest.raises(ControlPlaneUnreachableError):
            await make_service().bootstrap()

        mock_store.list_active_tenants.assert_not_awaited()
        assert factory.calls == []
        assert len(registry) == 0
        mock_probe.control_plane_failed.assert_called_once()
        assert mock_probe.control_plane_failed.call_args.args[0] == "migrate"

    @pytest.mark.asyncio
    async def test_unreadable_tenant_list_is_fatal(
        self, make_service, mock_store, registry, factory
    ):
        mock_store.list_active_tenants.side_effect = ControlPlaneUnreachableError(
            "connection refused"
        )

        with pytest.raises(ControlPlaneUnreachableError):
            await make_service().bootstrap()

        assert factory.calls == []
        assert len(registry) == 0

    @pytest.mark.asyncio
    async def test_control_plane_seeder_failure_is_fatal(
        self, make_service, mock_sessionmaker
    ):
        seeder = MagicMock()
        seeder.name = "roles"
        seeder.seed = AsyncMock(side_effect=RuntimeError("duplicate key"))

        with patch(
            "tenancy.application.services.bootstrap_service.async_sessionmaker",
            return_value=mock_sessionmaker,
        ):
            with pytest.raises(ControlPlaneUnreachableError, match="roles") as exc:
                await make_service(control_plane_seeders=[seeder]).bootstrap()

        seeder.seed.assert_awaited_once()
        assert isinstance(exc.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_control_plane_seeders_run_after_migration(
        self, make_service, mock_migrator, mock_sessionmaker
    ):
        order: list[str] = []
        mock_migrator.upgrade.side_effect = lambda engine: order.append("migrate")
        seeder = MagicMock()
        seeder.name = "roles"
        seeder.seed = AsyncMock(side_effect=lambda session: order.append("seed"))

        with patch(
            "tenancy.application.services.bootstrap_service.async_sessionmaker",
            return_value=mock_sessionmaker,
        ):
            await make_service(control_plane_seeders=[seeder]).bootstrap()

        assert order == ["migrate", "seed"]
        session = mock_sessionmaker.return_value.__aenter__.return_value
        seeder.seed.assert_awaited_once_with(session)
        session.begin.assert_called_once()


class TestTenantPhase:
    @pytest.mark.asyncio
    async def test_no_tenants_yields_empty_complete_report(self, make_service):
        report = await make_service().bootstrap()

        assert report.is_complete
        assert report.provisioned == ()

    @pytest.mark.asyncio
    async def test_one_failing_tenant_does_not_block_the_others(
        self, make_service, mock_store, factory, registry, make_record
    ):
        a, b, c = make_record("a"), make_record("b"), make_record("c")
        mock_store.list_active_tenants.return_value = [a, b, c]
        factory.errors[b.public_id] = MigrationFailedError(
            "Migration d15b8e4c6f70 failed", b.public_id, at_version="d15b8e4c6f70"
        )

        report = await make_service().bootstrap()

        assert report.provisioned == (a.public_id, c.public_id)
        assert list(report.failed) == [b.public_id]
        failure = report.failed[b.public_id]
        assert failure.kind is FailureKind.MIGRATION
        assert failure.at_version == "d15b8e4c6f70"
        assert registry.tenant_ids() == frozenset({a.public_id, c.public_id})
        assert registry.get(b.public_id) is None

    @pytest.mark.asyncio
    async def test_every_failure_kind_is_classified(
        self, make_service, mock_store, factory, make_record
    ):
        records = [make_record(name) for name in ("c", "s", "r", "i")]
        connect, seed, rejected, internal = records
        mock_store.list_active_tenants.return_value = records
        factory.errors.update(
            {
                connect.public_id: ConnectFailedError("refused", connect.public_id),
                seed.public_id: SeedFailedError(
                    "seed failed", seed.public_id, seeder="roles"
                ),
                rejected.public_id: TenantSoftDeletedError(
                    "deleted", rejected.public_id
                ),
                internal.public_id: KeyError("boom"),
            }
        )

        report = await make_service().bootstrap()

        kinds = {tid: failure.kind for tid, failure in report.failed.items()}
        assert kinds == {
            connect.public_id: FailureKind.CONNECT,
            seed.public_id: FailureKind.SEED,
            rejected.public_id: FailureKind.REJECTED,
            internal.public_id: FailureKind.INTERNAL,
        }
        assert report.failed[connect.public_id].retryable
        assert "boom" not in report.failed[internal.public_id].message

    @pytest.mark.asyncio
    async def test_parallelism_is_bounded(
        self, make_service, mock_store, factory, make_record
    ):
        records = [make_record(f"t{i}") for i in range(6)]
        mock_store.list_active_tenants.return_value = records
        for record in records:
            factory.delays[record.public_id] = 0.05

        report = await make_service(concurrency=2).bootstrap()

        assert len(report.provisioned) == 6
        assert factory.max_in_flight == 2

    @pytest.mark.asyncio
    async def test_tenants_still_running_at_deadline_are_pending(
        self, make_service, mock_store, factory, registry, mock_probe, make_record
    ):
        fast, slow = make_record("fast"), make_record("slow")
        mock_store.list_active_tenants.return_value = [fast, slow]
        factory.delays[slow.public_id] = 30

        report = await make_service(deadline_seconds=0.3).bootstrap()

        assert report.provisioned == (fast.public_id,)
        assert report.pending == (slow.public_id,)
        assert report.failed == {}
        assert not report.is_complete
        assert registry.get(slow.public_id) is None
        assert factory.in_flight == 0
        mock_probe.deadline_exceeded.assert_called_once_with(1, 0.3)

    @pytest.mark.asyncio
    async def test_replaced_connection_is_disposed(
        self, make_service, mock_store, registry, make_record, make_connection
    ):
        record = make_record()
        stale = make_connection(record.public_id)
        registry.insert(record.public_id, stale)
        mock_store.list_active_tenants.return_value = [record]

        await make_service().bootstrap()

        assert registry.get(record.public_id) is not stale
        assert stale.is_closed

    @pytest.mark.asyncio
    async def test_failed_dispose_of_replaced_connection_is_reported(
        self,
        make_service,
        mock_store,
        registry,
        mock_probe,
        make_record,
        make_connection,
    ):
        record = make_record()
        stale = make_connection(record.public_id)
        stale.engine.dispose.side_effect = OSError("connection reset")
        registry.insert(record.public_id, stale)
        mock_store.list_active_tenants.return_value = [record]

        report = await make_service().bootstrap()

        assert report.provisioned == (record.public_id,)
        assert registry.get(record.public_id) is not stale
        tenant_id, error = mock_probe.connection_dispose_failed.call_args.args
        assert tenant_id == record.public_id.value
        assert isinstance(error, OSError)

    @pytest.mark.asyncio
    async def test_completion_is_reported(
        self, make_service, mock_store, factory, mock_probe, make_record
    ):
        ok, bad = make_record("ok"), make_record("bad")
        mock_store.list_active_tenants.return_value = [ok, bad]
        factory.errors[bad.public_id] = ConnectFailedError("refused", bad.public_id)

        await make_service().bootstrap()

        mock_probe.tenants_discovered.assert_called_once_with(2, 2)
        mock_probe.tenant_failed.assert_called_once_with(
            bad.public_id.value, "connect", None, "refused"
        )
        kwargs = mock_probe.bootstrap_completed.call_args.kwargs
        assert (kwargs["provisioned"], kwargs["failed"], kwargs["pending"]) == (
            1,
            1,
            0,
        )


def test_concurrency_must_be_positive():
    with pytest.raises(ValueError, match="concurrency"):
        TenantBootstrapService(
            control_plane_engine=MagicMock(),
            control_plane_migrator=MagicMock(),
            store=MagicMock(),
            factory=MagicMock(),
            registry=TenantRegistry(),
            concurrency=0,
        )
