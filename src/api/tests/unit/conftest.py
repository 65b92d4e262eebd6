"""Unit test fixtures with mocked dependencies.

Tenant connections are built around mocked engines: nothing here opens a
real database connection.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from pydantic import SecretStr
from sqlalchemy.ext.asyncio import AsyncEngine

from infrastructure.settings import DatabaseSettings, TenancySettings
from tenancy.domain.connection import TenantConnection
from tenancy.domain.value_objects import TenantId, TenantRecord


@pytest.fixture
def mock_db_settings() -> DatabaseSettings:
    """Provide test control-plane database settings."""
    return DatabaseSettings(
        host="testhost",
        port=5432,
        database="testdb",
        username="testuser",
        password=SecretStr("testpass"),
    )


@pytest.fixture
def tenancy_settings() -> TenancySettings:
    """Provide tenancy settings with short timeouts for tests."""
    return TenancySettings(
        pool_size=2,
        pool_max_overflow=0,
        connect_timeout_seconds=1,
        statement_timeout_seconds=5,
        provision_timeout_seconds=5,
        bootstrap_concurrency=2,
        bootstrap_deadline_seconds=5,
    )


def _mock_engine() -> MagicMock:
    engine = MagicMock(spec=AsyncEngine)
    engine.dispose = AsyncMock()
    return engine


@pytest.fixture
def make_record() -> Callable[..., TenantRecord]:
    """Build control-plane tenant records."""
    counter = iter(range(1, 10_000))

    def _make(
        name: str = "acme",
        public_id: TenantId | None = None,
        connection_string: str | None = None,
        deleted: bool = False,
    ) -> TenantRecord:
        return TenantRecord(
            internal_id=next(counter),
            public_id=public_id or TenantId.generate(),
            name=name,
            connection_string=SecretStr(
                connection_string or f"postgresql://{name}:s3cret@db:5432/{name}"
            ),
            soft_deleted_at=datetime.now(UTC) if deleted else None,
        )

    return _make


@pytest.fixture
def make_connection() -> Callable[..., TenantConnection]:
    """Build live TenantConnections around mocked engines."""

    def _make(
        public_id: TenantId | None = None, schema_version: str | None = "head"
    ) -> TenantConnection:
        return TenantConnection._establish(
            public_id=public_id or TenantId.generate(),
            engine=_mock_engine(),
            sessionmaker=MagicMock(),
            schema_version=schema_version,
        )

    return _make


@pytest.fixture
def mock_sessionmaker() -> MagicMock:
    """Session factory whose sessions support ``async with session.begin()``."""
    session = MagicMock()
    session.begin.return_value.__aenter__.return_value = session
    session.begin.return_value.__aexit__.return_value = False
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = session
    factory.return_value.__aexit__.return_value = False
    return factory
