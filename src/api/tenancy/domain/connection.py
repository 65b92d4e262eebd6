"""Live connection handle for one tenant database.

A TenantConnection exists only once its tenant schema has been migrated:
instances are created exclusively through ``TenantConnection._establish``,
which the tenant connection factory calls at the end of a successful
provisioning run. Direct construction raises ``TypeError``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

    from tenancy.domain.value_objects import TenantId

_ESTABLISH_KEY = object()


class TenantConnection:
    """Pooled handle bound to one tenant database.

    The pool is shared by every request for the tenant; handlers obtain
    sessions from it and never mutate the pool directly.

    Attributes:
        public_id: Tenant the handle belongs to.
        schema_version: Migration revision the database was brought to.
        established_at: When provisioning completed.
    """

    __slots__ = (
        "_public_id",
        "_engine",
        "_sessionmaker",
        "_schema_version",
        "_established_at",
        "_closed",
    )

    def __init__(
        self,
        *,
        public_id: TenantId,
        engine: AsyncEngine,
        sessionmaker: async_sessionmaker[AsyncSession],
        schema_version: str | None,
        established_at: datetime,
        _key: object = None,
    ):
        if _key is not _ESTABLISH_KEY:
            raise TypeError(
                "TenantConnection can only be created by the tenant connection factory"
            )
        self._public_id = public_id
        self._engine = engine
        self._sessionmaker = sessionmaker
        self._schema_version = schema_version
        self._established_at = established_at
        self._closed = False

    @classmethod
    def _establish(
        cls,
        *,
        public_id: TenantId,
        engine: AsyncEngine,
        sessionmaker: async_sessionmaker[AsyncSession],
        schema_version: str | None,
        established_at: datetime | None = None,
    ) -> TenantConnection:
        """Wrap a migrated tenant engine. Reserved for the connection factory."""
        return cls(
            public_id=public_id,
            engine=engine,
            sessionmaker=sessionmaker,
            schema_version=schema_version,
            established_at=established_at or datetime.now(timezone.utc),
            _key=_ESTABLISH_KEY,
        )

    @property
    def public_id(self) -> TenantId:
        return self._public_id

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    @property
    def schema_version(self) -> str | None:
        return self._schema_version

    @property
    def established_at(self) -> datetime:
        return self._established_at

    @property
    def is_closed(self) -> bool:
        return self._closed

    def session(self) -> AsyncSession:
        """Open a new session on the tenant pool.

        Use as an async context manager; the session does not auto-commit.

        Raises:
            RuntimeError: If the connection has been disposed.
        """
        if self._closed:
            raise RuntimeError(
                f"Connection for tenant {self._public_id} has been closed"
            )
        return self._sessionmaker()

    async def dispose(self) -> None:
        """Close every pooled connection. Idempotent."""
        if self._closed:
            return
        self._closed = True
        await self._engine.dispose()

    def __repr__(self) -> str:
        """Return string representation without connection details."""
        return (
            f"<TenantConnection(public_id={self._public_id}, "
            f"schema_version={self._schema_version}, closed={self._closed})>"
        )
