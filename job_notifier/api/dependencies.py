"""FastAPI dependencies."""

from typing import Generator

from sqlalchemy.orm import Session

from job_notifier.persistence import get_session


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session: committed after the handler returns, rolled back on error."""
    with get_session() as session:
        yield session
