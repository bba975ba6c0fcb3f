"""FastAPI application factory for the notification filter API."""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from job_notifier import __version__
from job_notifier.logging import get_logger
from job_notifier.persistence import PersistenceError, RecordNotFoundError
from job_notifier.pipeline import NotificationRuntime

from .routes import health_router, router

logger = get_logger(__name__, component="api")


def create_app(runtime: Optional[NotificationRuntime] = None) -> FastAPI:
    """Build the HTTP app.

    The database must already be initialized (init_database). When a runtime
    is supplied, the app lifespan starts it on startup and stops it on
    shutdown, so the consumer lives as long as the server.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if runtime is not None:
            runtime.start()
        yield
        if runtime is not None:
            runtime.stop()

    app = FastAPI(
        title="Job Notifier API",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.runtime = runtime

    @app.exception_handler(RecordNotFoundError)
    async def not_found_handler(request: Request, exc: RecordNotFoundError):
        logger.info(
            f"Not found: {exc}",
            extra={"event": "api.not_found", "path": request.url.path},
        )
        return JSONResponse(status_code=404, content={"message": "Not found."})

    @app.exception_handler(PersistenceError)
    async def persistence_error_handler(request: Request, exc: PersistenceError):
        logger.error(
            f"Storage error handling {request.method} {request.url.path}: {exc}",
            extra={"event": "api.storage_error", "path": request.url.path},
        )
        return JSONResponse(status_code=500, content={"message": "Internal server error."})

    app.include_router(router)
    app.include_router(health_router)

    return app
