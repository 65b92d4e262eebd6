"""Architecture tests using pytest-archon.

These tests enforce DDD architectural boundaries between layers
within the Tenancy bounded context and the shared kernel.
"""

from pytest_archon import archrule


class TestTenancyDomainLayerBoundaries:
    """Tests that the domain layer has no forbidden dependencies."""

    def test_domain_does_not_import_infrastructure(self):
        """Domain layer should not depend on infrastructure.

        Tenant ids, records and connection handles must not know how tenant
        rows are stored or how databases are migrated.
        """
        (
            archrule("domain_no_infrastructure")
            .match("tenancy.domain*")
            .should_not_import("tenancy.infrastructure*", "infrastructure*")
            .check("tenancy")
        )

    def test_domain_does_not_import_application(self):
        """Domain objects should be usable without application services."""
        (
            archrule("domain_no_application")
            .match("tenancy.domain*")
            .should_not_import("tenancy.application*")
            .check("tenancy")
        )

    def test_domain_does_not_import_fastapi(self):
        """Domain objects should be framework-agnostic."""
        (
            archrule("domain_no_fastapi")
            .match("tenancy.domain*")
            .should_not_import("fastapi*", "starlette*")
            .check("tenancy")
        )


class TestTenancyPortsLayerBoundaries:
    """Tests that the ports layer has no forbidden dependencies."""

    def test_ports_does_not_import_infrastructure(self):
        """Ports define interfaces; they do not know their implementations."""
        (
            archrule("ports_no_infrastructure")
            .match("tenancy.ports*")
            .should_not_import("tenancy.infrastructure*", "infrastructure*")
            .check("tenancy")
        )

    def test_ports_does_not_import_application(self):
        """Ports are used by the application layer, not the other way around."""
        (
            archrule("ports_no_application")
            .match("tenancy.ports*")
            .should_not_import("tenancy.application*")
            .check("tenancy")
        )


class TestTenancyApplicationLayerBoundaries:
    """Tests that the application layer has appropriate dependencies."""

    def test_application_does_not_import_infrastructure(self):
        """Application services depend on ports, not on the alembic migrator,
        the control-plane store or the connection factory.
        """
        (
            archrule("application_no_infrastructure")
            .match("tenancy.application*")
            .should_not_import("tenancy.infrastructure*", "infrastructure*")
            .check("tenancy")
        )

    def test_application_does_not_import_fastapi(self):
        """HTTP status mapping belongs to the dependency layer."""
        (
            archrule("application_no_fastapi")
            .match("tenancy.application*")
            .should_not_import("fastapi*", "starlette*")
            .check("tenancy")
        )

    def test_application_can_import_domain_and_ports(self):
        (
            archrule("application_may_import_domain_ports")
            .match("tenancy.application*")
            .may_import("tenancy.domain*", "tenancy.ports*")
            .check("tenancy")
        )


class TestTenancyInfrastructureLayerBoundaries:
    """Tests that infrastructure has appropriate dependencies."""

    def test_infrastructure_does_not_import_application(self):
        """Infrastructure is used BY the application layer, not vice versa."""
        (
            archrule("infrastructure_no_application")
            .match("tenancy.infrastructure*")
            .should_not_import("tenancy.application*")
            .check("tenancy")
        )

    def test_infrastructure_does_not_import_fastapi(self):
        (
            archrule("infrastructure_no_fastapi")
            .match("tenancy.infrastructure*")
            .should_not_import("fastapi*", "starlette*")
            .check("tenancy")
        )


class TestSharedKernelBoundaries:
    """The shared kernel must not depend on any bounded context."""

    def test_shared_kernel_does_not_import_tenancy(self):
        (
            archrule("shared_kernel_no_tenancy")
            .match("shared_kernel*")
            .should_not_import("tenancy*")
            .check("shared_kernel")
        )

    def test_shared_kernel_does_not_import_infrastructure(self):
        (
            archrule("shared_kernel_no_infrastructure")
            .match("shared_kernel*")
            .should_not_import("infrastructure*")
            .check("shared_kernel")
        )
