"""Control-plane database dependency injection for FastAPI.

Provides the control-plane engine, its session factory, and a session
dependency. Tenant databases are not handled here; their engines are owned
by the tenant registry.
"""

from __future__ import annotations

import threading
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from infrastructure.database.engines import create_control_plane_engine
from infrastructure.observability import DefaultConnectionProbe
from infrastructure.settings import get_database_settings

_probe = DefaultConnectionProbe()

# Module-level engine instance (created on first use)
_engine: AsyncEngine | None = None
_sessionmaker: async_sessionmaker[AsyncSession] | None = None

# Thread lock for safe engine initialization
_engine_lock = threading.Lock()


def get_control_plane_engine() -> AsyncEngine:
    """Get the control-plane database engine (singleton).

    Creates engine on first call and caches for subsequent calls.
    Uses double-check locking for thread-safe initialization.

    Returns:
        Configured async engine for the control plane
    """
    global _engine, _sessionmaker
    if _engine is None:
        with _engine_lock:
            # Double-check after acquiring lock
            if _engine is None:
                settings = get_database_settings()
                _engine = create_control_plane_engine(settings)
                _sessionmaker = async_sessionmaker(
                    _engine,
                    expire_on_commit=False,
                    class_=AsyncSession,
                )
                _probe.engine_created(
                    host=settings.host,
                    database=settings.database,
                    pool_size=settings.pool_max_connections,
                )
    return _engine


def get_control_plane_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Get the control-plane session factory, creating the engine if needed."""
    get_control_plane_engine()
    assert _sessionmaker is not None
    return _sessionmaker


async def get_control_plane_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide a control-plane session (FastAPI dependency).

    The session does NOT auto-commit. Callers manage transactions with
    `async with session.begin()`.

    Yields:
        AsyncSession for control-plane operations
    """
    async with get_control_plane_sessionmaker()() as session:
        yield session


async def close_database_connections() -> None:
    """Close the control-plane engine.

    Should be called on application shutdown, after tenant connections have
    been drained. Also resets the sessionmaker to allow reinitialization.
    """
    global _engine, _sessionmaker

    if _engine is not None:
        await _engine.dispose()
        _probe.pool_closed()
        _engine = None
        _sessionmaker = None
