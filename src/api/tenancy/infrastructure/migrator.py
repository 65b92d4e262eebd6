"""Programmatic alembic runner.

Runs a script directory up to ``head`` on an existing connection, without an
``alembic.ini`` or ``env.py``. Each revision is applied in its own
transaction, so a failing revision leaves every earlier one recorded in the
database's version table and a re-run resumes from there.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from alembic.config import Config
from alembic.runtime.environment import EnvironmentContext
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy.exc import SQLAlchemyError

from infrastructure.database.exceptions import (
    DatabaseConnectionError,
    SchemaMigrationError,
)
from tenancy.infrastructure.observability import (
    DefaultMigrationProbe,
    MigrationProbe,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection
    from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

DEFAULT_VERSION_TABLE = "alembic_version"


class AlembicSchemaMigrator:
    """Brings a database to the head revision of one alembic script directory.

    Implements ISchemaMigrator. Instances are stateless and may be shared by
    concurrent provisioning runs.
    """

    def __init__(
        self,
        script_location: str,
        migration_set: str,
        version_table: str = DEFAULT_VERSION_TABLE,
        probe: MigrationProbe | None = None,
    ):
        """Initialize the migrator.

        Args:
            script_location: Directory containing the ``versions`` folder
            migration_set: Name used in logs ("control_plane", "tenant")
            version_table: History table inside the migrated database
            probe: Optional domain probe for observability
        """
        self._script_location = script_location
        self._migration_set = migration_set
        self._version_table = version_table
        self._probe = probe or DefaultMigrationProbe()

    @property
    def migration_set(self) -> str:
        return self._migration_set

    def _config(self) -> Config:
        config = Config()
        config.set_main_option("script_location", self._script_location)
        return config

    def head_revision(self) -> str | None:
        """Return the newest revision of the script directory."""
        return ScriptDirectory.from_config(self._config()).get_current_head()

    async def upgrade(self, engine: AsyncEngine) -> str | None:
        """Apply all pending revisions to the database behind ``engine``.

        Returns:
            The revision recorded after the run.

        Raises:
            DatabaseConnectionError: If no connection could be opened.
            SchemaMigrationError: If a revision failed.
        """
        connection = await self._connect(engine)
        try:
            version = await connection.run_sync(self.upgrade_connection)
            await connection.commit()
        finally:
            await connection.close()
        return version

    async def current_version(self, engine: AsyncEngine) -> str | None:
        """Return the revision recorded in the database, or None."""
        connection = await self._connect(engine)
        try:
            return await connection.run_sync(self.current_version_on)
        finally:
            await connection.close()

    async def _connect(self, engine: AsyncEngine) -> AsyncConnection:
        try:
            return await engine.connect()
        except (SQLAlchemyError, OSError, TimeoutError) as e:
            raise DatabaseConnectionError(
                f"Could not connect to run {self._migration_set} migrations: "
                f"{type(e).__name__}"
            ) from e

    def upgrade_connection(self, connection: Connection) -> str | None:
        """Synchronous upgrade on an open connection.

        Used through ``AsyncConnection.run_sync`` and directly with sync
        engines.

        Raises:
            SchemaMigrationError: If a revision failed.
        """
        config = self._config()
        script = ScriptDirectory.from_config(config)
        planned: list[str] = []
        applied: list[str] = []

        def plan_upgrade(heads: Any, context: MigrationContext) -> list[Any]:
            steps = script._upgrade_revs("head", heads)
            planned.extend(step.revision.revision for step in steps)
            return steps

        def record_applied(**_: Any) -> None:
            revision = planned[len(applied)]
            applied.append(revision)
            self._probe.revision_applied(self._migration_set, revision)

        with EnvironmentContext(
            config,
            script,
            fn=plan_upgrade,
            destination_rev="head",
        ) as environment:
            environment.configure(
                connection=connection,
                target_metadata=None,
                version_table=self._version_table,
                transaction_per_migration=True,
                on_version_apply=[record_applied],
            )
            try:
                with environment.begin_transaction():
                    environment.run_migrations()
            except Exception as e:
                failed_at = planned[len(applied)] if len(applied) < len(planned) else None
                self._probe.migration_failed(self._migration_set, failed_at, e)
                raise SchemaMigrationError(
                    f"{self._migration_set} migration {failed_at} failed: {e}",
                    revision=failed_at,
                ) from e

        version = self.current_version_on(connection)
        self._probe.migrations_completed(self._migration_set, version, len(applied))
        return version

    def current_version_on(self, connection: Connection) -> str | None:
        """Read the recorded revision from an open connection."""
        context = MigrationContext.configure(
            connection,
            opts={"version_table": self._version_table},
        )
        return context.get_current_revision()
