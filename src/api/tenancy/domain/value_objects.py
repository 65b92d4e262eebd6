"""Value objects for the tenancy domain.

Value objects are immutable descriptors that provide type safety and
domain semantics for identifiers and domain concepts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from pydantic import SecretStr
from ulid import ULID


@dataclass(frozen=True)
class TenantId:
    """Public identifier of a tenant.

    Exposed to clients and embedded in identity tokens. This is the key used
    by the tenant registry and resolver. Uses ULID for sortability and
    distribution-friendly generation.
    """

    value: str

    def __str__(self) -> str:
        """Return string representation."""
        return self.value

    @classmethod
    def generate(cls) -> TenantId:
        """Generate a new TenantId using ULID."""
        return cls(value=str(ULID()))

    @classmethod
    def from_string(cls, value: str) -> TenantId:
        """Create TenantId from string value.

        Accepts case-insensitive input (per Crockford's Base32 spec) and
        returns the canonical uppercase form.

        Args:
            value: ULID string

        Returns:
            TenantId instance

        Raises:
            ValueError: If value is not a valid ULID
        """
        try:
            parsed = ULID.from_str(value.strip().upper())
        except (ValueError, AttributeError) as e:
            raise ValueError(f"Invalid TenantId: {value}") from e

        return cls(value=str(parsed))


@dataclass(frozen=True)
class TenantRecord:
    """A tenant row as read from the control-plane store.

    Read-only to the tenancy lifecycle. The connection string is a secret and
    is never rendered in logs or reprs.

    Attributes:
        internal_id: Control-plane primary key, used only for joins.
        public_id: Stable public identifier.
        name: Display name of the tenant.
        connection_string: URL of the tenant's own database.
        soft_deleted_at: Set when the tenant was logically removed.
    """

    internal_id: int
    public_id: TenantId
    name: str
    connection_string: SecretStr = field(repr=False)
    soft_deleted_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        """Whether the tenant may be provisioned."""
        return self.soft_deleted_at is None


@dataclass(frozen=True)
class IdentityClaim:
    """The tenant-relevant part of a decoded identity token.

    Attributes:
        subject: Identifier of the authenticated caller.
        tenant_public_id: Tenant the caller acts for. None means the caller
            is not tenant-scoped (for example a platform administrator).
    """

    subject: str
    tenant_public_id: TenantId | None = None

    @property
    def is_tenant_scoped(self) -> bool:
        """Whether the claim carries a tenant."""
        return self.tenant_public_id is not None


class FailureKind(StrEnum):
    """Why a tenant could not be provisioned."""

    CONNECT = "connect"
    MIGRATION = "migration"
    SEED = "seed"
    REJECTED = "rejected"
    INTERNAL = "internal"


@dataclass(frozen=True)
class ProvisioningFailure:
    """Outcome recorded for a tenant whose provisioning failed.

    Attributes:
        public_id: The tenant that failed.
        kind: Failure category; connect failures are retryable, migration
            failures need a fix before re-running.
        message: Human-readable error, never containing the connection string.
        at_version: Migration revision that failed, for migration failures.
    """

    public_id: TenantId
    kind: FailureKind
    message: str
    at_version: str | None = None

    @property
    def retryable(self) -> bool:
        """Whether retrying without a code change can succeed."""
        return self.kind is FailureKind.CONNECT


@dataclass(frozen=True)
class BootstrapReport:
    """Aggregate result of provisioning all tenants at startup.

    Attributes:
        provisioned: Tenants now live in the registry.
        failed: Tenants whose provisioning failed, with the reason.
        pending: Tenants still in flight when the startup deadline expired.
    """

    provisioned: tuple[TenantId, ...] = ()
    failed: dict[TenantId, ProvisioningFailure] = field(default_factory=dict)
    pending: tuple[TenantId, ...] = ()

    @property
    def partial_failure(self) -> list[TenantId]:
        """Ids of tenants that failed to provision."""
        return list(self.failed)

    @property
    def is_complete(self) -> bool:
        """Whether every active tenant was provisioned."""
        return not self.failed and not self.pending

    def as_dict(self) -> dict[str, object]:
        """Summary safe for health endpoints and logs."""
        return {
            "provisioned": len(self.provisioned),
            "failed": {
                tenant_id.value: {
                    "kind": failure.kind.value,
                    "at_version": failure.at_version,
                }
                for tenant_id, failure in self.failed.items()
            },
            "pending": [tenant_id.value for tenant_id in self.pending],
        }
