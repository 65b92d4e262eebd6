"""Reference-data seeders run after migrations.

Seeders run on every provisioning, so each statement must be idempotent
(``INSERT ... ON CONFLICT DO NOTHING`` or equivalent).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from sqlalchemy import text

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from tenancy.ports.seeders import Seeder


class SqlSeeder:
    """Seeder that executes a fixed list of SQL statements.

    Implements the Seeder port.
    """

    def __init__(
        self,
        name: str,
        statements: Sequence[str],
        params: Mapping[str, Any] | None = None,
    ):
        self.name = name
        self._statements = tuple(statements)
        self._params = dict(params or {})

    async def seed(self, session: AsyncSession) -> None:
        for statement in self._statements:
            await session.execute(text(statement), self._params)

    def __repr__(self) -> str:
        return f"<SqlSeeder(name={self.name!r}, statements={len(self._statements)})>"


# Run by the startup orchestrator after control-plane migrations.
CONTROL_PLANE_SEEDERS: tuple[Seeder, ...] = ()

# Run by the connection factory after each tenant's migrations.
TENANT_SEEDERS: tuple[Seeder, ...] = ()
