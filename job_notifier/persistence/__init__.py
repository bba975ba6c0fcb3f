"""Persistence layer for candidates, notification filters, and mailboxes.

Public API:
    # Database initialization and session management
    - init_database(database_url: str) -> None
    - get_session() -> ContextManager[Session]
    - close_database() -> None
    - get_engine() -> Engine

    # Repository classes
    - CandidateRepository: candidate records (external entity)
    - NotificationSettingRepository: per-candidate notification filters
    - MailboxRepository: per-candidate append-only mailbox

    # Exceptions
    - PersistenceError, DatabaseConnectionError, RecordNotFoundError, DataIntegrityError

Example usage:
    >>> from job_notifier.persistence import init_database, get_session, MailboxRepository
    >>> init_database("sqlite:///./data/job_notifier.db")
    >>> with get_session() as session:
    ...     entries = MailboxRepository(session).list_for_candidate("cand-1")
"""

from .database import close_database, get_engine, get_session, init_database
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    RecordNotFoundError,
)
from .repositories import CandidateRepository, MailboxRepository, NotificationSettingRepository

__all__ = [
    # Database functions
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    # Repositories
    "CandidateRepository",
    "NotificationSettingRepository",
    "MailboxRepository",
    # Exceptions
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "DataIntegrityError",
]
