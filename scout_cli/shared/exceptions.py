"""Project-wide custom exceptions."""

from __future__ import annotations


class ScoutError(Exception):
    """Base exception for the scout tool suite."""


class ConfigurationError(ScoutError):
    """Raised when configuration loading or validation fails."""


class ValidationError(ScoutError):
    """Raised when tool arguments are rejected before any database I/O."""


class NotReadOnlyError(ValidationError):
    """Raised when a statement is not one of the allowed read-only forms."""


class QueryTooLongError(ValidationError):
    """Raised when a statement exceeds the accepted character limit."""


class DatabaseError(ScoutError):
    """Raised for database-related issues."""


class DatabaseConnectionError(DatabaseError):
    """Raised when the MySQL server cannot be reached."""


class QueryError(DatabaseError):
    """Raised when a well-formed statement fails on the server."""


class CacheError(ScoutError):
    """Raised inside the cache store; never escapes it."""
