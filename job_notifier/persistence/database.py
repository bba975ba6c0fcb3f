"""Engine and session lifecycle for the candidate store.

The HTTP worker threads and the queue consumer share one module-level engine.
Each unit of work (one request, one delivered message) runs in its own
get_session() block, which is also its transaction.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from job_notifier.logging import get_logger

from .exceptions import DatabaseConnectionError

_engine: Engine | None = None
_session_factory: sessionmaker | None = None

logger = get_logger(__name__, component="database")


def init_database(database_url: str) -> None:
    """Create the engine, verify connectivity and create missing tables.

    Safe to call again; a previous engine is disposed first.

    Args:
        database_url: SQLAlchemy URL, e.g. "sqlite:///./data/job_notifier.db"

    Raises:
        DatabaseConnectionError: If the URL is unusable or the database unreachable
    """
    global _engine, _session_factory

    if not database_url or not isinstance(database_url, str):
        raise DatabaseConnectionError("Database URL must be a non-empty string")

    safe_url = _redact_url(database_url)
    logger.info(
        "Initializing database",
        extra={"event": "database.initializing", "database_url": safe_url},
    )

    if _engine is not None:
        _engine.dispose()
        _engine = None
        _session_factory = None

    try:
        engine = create_engine(database_url, **_engine_options(database_url))
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))

        from .schema import create_schema

        create_schema(engine)
    except Exception as e:
        error_msg = f"Failed to initialize database: {e}"
        logger.error(error_msg, exc_info=True, extra={"event": "database.init_failed"})
        raise DatabaseConnectionError(error_msg) from e

    _engine = engine
    _session_factory = sessionmaker(bind=engine, autoflush=True, expire_on_commit=False)

    logger.info(
        "Database initialized successfully",
        extra={"event": "database.initialised", "database_url": safe_url},
    )


def _engine_options(database_url: str) -> Dict[str, Any]:
    """Engine keyword arguments for the given URL.

    SQLite gets a busy timeout, cross-thread connections and, for files, WAL
    plus a created parent directory. In-memory SQLite uses one shared
    connection, otherwise every thread would see its own empty database.
    """
    try:
        url = make_url(database_url)
    except ArgumentError as e:
        raise DatabaseConnectionError(f"Invalid database URL: {e}") from e

    options: Dict[str, Any] = {"pool_pre_ping": True}
    if url.get_backend_name() != "sqlite":
        return options

    in_memory = url.database in (None, "", ":memory:")
    options["connect_args"] = {"check_same_thread": False, "timeout": 30}

    if in_memory:
        options["poolclass"] = StaticPool
    else:
        db_dir = Path(url.database).parent
        if not db_dir.exists():
            logger.info(f"Creating database directory: {db_dir}")
            db_dir.mkdir(parents=True, exist_ok=True)

    return options


@event.listens_for(Engine, "connect")
def _set_sqlite_pragmas(dbapi_conn, connection_record):
    """Foreign keys are needed for cascade deletes; WAL lets readers run during writes."""
    if type(dbapi_conn).__module__.split(".")[0] != "sqlite3":
        return
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode")
    mode = cursor.fetchone()[0]
    if mode != "memory":
        cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


def _redact_url(url: str) -> str:
    """Hide the password of a server database URL for logging."""
    try:
        return make_url(url).render_as_string(hide_password=True)
    except ArgumentError:
        return url


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Transactional session: commit on success, roll back on error, always close.

    Raises:
        DatabaseConnectionError: If init_database() has not been called

    Example:
        >>> with get_session() as session:
        ...     candidates = CandidateRepository(session).list_all()
    """
    if _session_factory is None:
        raise DatabaseConnectionError(
            "Database not initialized. Call init_database() before using get_session()"
        )

    session = _session_factory()
    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        logger.warning(
            f"Database session rolled back: {e}",
            extra={"event": "database.session.rolled_back", "error_type": type(e).__name__},
        )
        raise
    finally:
        session.close()


def get_engine() -> Engine:
    if _engine is None:
        raise DatabaseConnectionError(
            "Database not initialized. Call init_database() before using get_engine()"
        )
    return _engine


def close_database() -> None:
    """Dispose of pooled connections; called on shutdown."""
    global _engine, _session_factory

    if _engine is None:
        return
    _engine.dispose()
    _engine = None
    _session_factory = None
    logger.info("Database connections closed", extra={"event": "database.closed"})
