"""Database-specific exceptions shared by all bounded contexts."""


class DatabaseError(Exception):
    """Base exception for database operations."""

    pass


class DatabaseConnectionError(DatabaseError):
    """Raised when a database connection cannot be established."""

    pass


class SchemaMigrationError(DatabaseError):
    """Raised when a schema migration step fails.

    Attributes:
        revision: The migration revision that failed, if known.
    """

    def __init__(self, message: str, revision: str | None = None):
        super().__init__(message)
        self.revision = revision
