"""Database infrastructure - shared connection primitives."""

from infrastructure.database.exceptions import (
    DatabaseConnectionError,
    DatabaseError,
    SchemaMigrationError,
)

__all__ = [
    "DatabaseConnectionError",
    "DatabaseError",
    "SchemaMigrationError",
]
