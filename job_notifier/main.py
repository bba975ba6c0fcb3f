"""Main entry point for the job notification service."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import json
import signal
import sys
import threading
import time
from pathlib import Path
from typing import Any, List, Optional, Tuple

from pydantic import ValidationError

from job_notifier.broker import PublishOutcome
from job_notifier.config.environment import EnvironmentConfig
from job_notifier.config.exceptions import ConfigurationError
from job_notifier.config.loader import load_config, validate_config_file
from job_notifier.config.models import AppConfig
from job_notifier.domain.models import Candidate, JobPostingEvent
from job_notifier.logging import get_logger
from job_notifier.logging.config import configure_logging
from job_notifier.persistence import CandidateRepository, close_database, get_session, init_database
from job_notifier.pipeline import NotificationRuntime

logger = get_logger(__name__, component="cli")

MODES = ("serve", "worker", "publish", "import-candidates", "validate-config")


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and resolve the effective log level.

    Log level priority: CLI > LOG_LEVEL environment variable > config file.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level or "INFO"

    return app_config, env_config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Job Notifier - delivers new job postings into matching candidate mailboxes"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml, then config/config.yaml)",
    )
    parser.add_argument(
        "--mode",
        choices=MODES,
        default="serve",
        help="serve: HTTP API plus consumer; worker: consumer only; "
        "publish: publish jobs from --job-file; import-candidates: load --candidates-file; "
        "validate-config: check the configuration file and exit",
    )
    parser.add_argument(
        "--job-file",
        type=Path,
        default=None,
        help="JSON job (or list of jobs) to publish in publish mode",
    )
    parser.add_argument(
        "--candidates-file",
        type=Path,
        default=None,
        help="JSON array of candidate documents to import in import-candidates mode",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    return parser


def _read_json_documents(path: Path) -> List[Any]:
    """Read a JSON file holding one object or a list of objects."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Failed to read {path}: {e}")

    return data if isinstance(data, list) else [data]


def publish_job_document(runtime: NotificationRuntime, document: Any) -> PublishOutcome:
    """Publish one job from either a job-creation payload or a wire-format event.

    Job-creation payloads use ``job_title``/``company_name``/``jd_text`` (plus an
    optional ``jobId``) and go through normalization; wire-format events
    (``id``/``companyName``/``role``/``description``) are published as given.
    """
    if not isinstance(document, dict):
        return PublishOutcome(job_id=None, status="invalid", error="Job document must be an object")

    if "job_title" in document:
        return runtime.publisher.publish_job_created(
            job_id=document.get("jobId") or document.get("job_id"),
            job_title=document.get("job_title"),
            company_name=document.get("company_name"),
            description=document.get("jd_text", document.get("description")),
        )

    try:
        event = JobPostingEvent.model_validate(document)
    except ValidationError as e:
        return PublishOutcome(job_id=document.get("id"), status="invalid", error=str(e))
    return runtime.publisher.publish(event)


def run_publish(app_config: AppConfig, env_config: EnvironmentConfig, job_file: Path) -> int:
    documents = _read_json_documents(job_file)
    runtime = NotificationRuntime(app_config, env_config, consume=False)

    try:
        outcomes = [publish_job_document(runtime, document) for document in documents]
    finally:
        runtime.stop()

    published = sum(1 for outcome in outcomes if outcome.is_success())
    for outcome in outcomes:
        if not outcome.is_success():
            print(f"Job {outcome.job_id}: {outcome.status} ({outcome.error})", file=sys.stderr)

    logger.info(
        f"Published {published} of {len(outcomes)} jobs",
        extra={"event": "service.publish.completed", "published": published, "total": len(outcomes)},
    )
    return 0 if published == len(outcomes) else 1


def run_import(candidates_file: Path) -> int:
    documents = _read_json_documents(candidates_file)

    try:
        candidates = [Candidate.model_validate(document) for document in documents]
    except ValidationError as e:
        print(f"Invalid candidate data: {e}", file=sys.stderr)
        return 1

    with get_session() as session:
        repo = CandidateRepository(session)
        created = sum(1 for candidate in candidates if repo.import_candidate(candidate))

    logger.info(
        f"Imported {len(candidates)} candidates ({created} new)",
        extra={
            "event": "service.import.completed",
            "total": len(candidates),
            "created": created,
        },
    )
    return 0


def run_worker(runtime: NotificationRuntime) -> int:
    shutdown_event = threading.Event()

    def signal_handler(signum, frame):
        logger.info(
            f"Received signal {signum}, shutting down",
            extra={"event": "service.signal_received", "signal": signum},
        )
        shutdown_event.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    runtime.start()
    logger.info(
        "Worker started. Press Ctrl+C to stop",
        extra={"event": "service.worker_mode.started"},
    )

    try:
        shutdown_event.wait()
    finally:
        runtime.stop()

    return 0


def run_server(runtime: NotificationRuntime, app_config: AppConfig) -> int:
    import uvicorn

    from job_notifier.api import create_app

    app = create_app(runtime)
    # Logging is already configured; keep uvicorn from installing its own handlers
    uvicorn.run(app, host=app_config.api.host, port=app_config.api.port, log_config=None)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the job notification service.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    start_time = time.time()
    args = build_parser().parse_args(argv)

    try:
        if args.mode == "publish" and args.job_file is None:
            raise ConfigurationError("--job-file is required in publish mode")
        if args.mode == "import-candidates" and args.candidates_file is None:
            raise ConfigurationError("--candidates-file is required in import-candidates mode")
        if args.mode == "validate-config":
            return 0 if validate_config_file(args.config or Path("config.yaml")) else 1

        app_config, env_config = load_runtime_config(args.config, args.log_level)

        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.environment,
        )

        logger.info(
            "Job notifier starting",
            extra={
                "event": "service.starting",
                "mode": args.mode,
                "log_level": env_config.log_level,
                "queue": app_config.broker.queue_name,
            },
        )

        if args.mode == "publish":
            return run_publish(app_config, env_config, args.job_file)

        init_database(env_config.database_url)
        try:
            if args.mode == "import-candidates":
                return run_import(args.candidates_file)

            runtime = NotificationRuntime(app_config, env_config, consume=True)
            if args.mode == "worker":
                return run_worker(runtime)
            return run_server(runtime, app_config)
        finally:
            close_database()
            logger.info(
                "Job notifier stopped",
                extra={
                    "event": "service.stopping",
                    "uptime_seconds": round(time.time() - start_time, 2),
                },
            )

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            f"Configuration error: {e}",
            extra={"event": "config.error", "error_type": "ConfigurationError"},
        )
        return 1
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 0
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error during startup",
            extra={
                "event": "service.startup.failed",
                "error_type": type(e).__name__,
                "error": str(e),
            },
            exc_info=True,
        )
        return 1


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
