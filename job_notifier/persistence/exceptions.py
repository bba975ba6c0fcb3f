"""Persistence layer exceptions.

All persistence exceptions inherit from PersistenceError, which is what the
consumer treats as a retryable delivery failure and what the API maps to 500.
"""


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""

    pass


class DatabaseConnectionError(PersistenceError):
    """Raised when database connection or initialization fails."""

    pass


class RecordNotFoundError(PersistenceError):
    """Raised when a candidate or notification filter does not exist.

    Optional lookups return None instead; this is for operations that need
    the record, such as the filter CRUD routes.
    """

    pass


class DataIntegrityError(PersistenceError):
    """Raised when a database constraint is violated."""

    pass
