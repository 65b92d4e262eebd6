"""Alembic script directories for the control-plane and tenant schemas.

The two schemas evolve independently: the control-plane set runs once per
process against the shared database, the tenant set runs against every
tenant database. Both are executed programmatically by
``tenancy.infrastructure.migrator.AlembicSchemaMigrator``.
"""

from pathlib import Path

_MIGRATIONS_ROOT = Path(__file__).parent

CONTROL_PLANE_SCRIPT_LOCATION = str(_MIGRATIONS_ROOT / "control_plane")
TENANT_SCRIPT_LOCATION = str(_MIGRATIONS_ROOT / "tenant")

__all__ = [
    "CONTROL_PLANE_SCRIPT_LOCATION",
    "TENANT_SCRIPT_LOCATION",
]
