"""Domain-Oriented Observability for the tenancy infrastructure layer."""

from tenancy.infrastructure.observability.migration_probe import (
    DefaultMigrationProbe,
    MigrationProbe,
)
from tenancy.infrastructure.observability.provisioning_probe import (
    DefaultProvisioningProbe,
    ProvisioningProbe,
)
from tenancy.infrastructure.observability.store_probe import (
    ControlPlaneStoreProbe,
    DefaultControlPlaneStoreProbe,
)

__all__ = [
    "ControlPlaneStoreProbe",
    "DefaultControlPlaneStoreProbe",
    "DefaultMigrationProbe",
    "DefaultProvisioningProbe",
    "MigrationProbe",
    "ProvisioningProbe",
]
