"""Domain-Oriented Observability for the tenancy application layer.

Probes for registry, resolver and lifecycle operations following
Domain-Oriented Observability patterns.
"""

from tenancy.application.observability.bootstrap_probe import (
    BootstrapProbe,
    DefaultBootstrapProbe,
)
from tenancy.application.observability.lifecycle_probe import (
    DefaultLifecycleProbe,
    LifecycleProbe,
)
from tenancy.application.observability.registry_probe import (
    DefaultRegistryProbe,
    RegistryProbe,
)
from tenancy.application.observability.resolver_probe import (
    DefaultResolverProbe,
    ResolverProbe,
)

__all__ = [
    "BootstrapProbe",
    "DefaultBootstrapProbe",
    "DefaultLifecycleProbe",
    "DefaultRegistryProbe",
    "DefaultResolverProbe",
    "LifecycleProbe",
    "RegistryProbe",
    "ResolverProbe",
]
