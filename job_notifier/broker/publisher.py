"""Job event publisher.

Publishing is a side effect of job creation and must never break it: every
failure mode is reported through PublishOutcome and logged, never raised.
"""

import uuid
from dataclasses import dataclass
from typing import Iterable, Optional

import pika
from pika.exceptions import AMQPError
from pydantic import ValidationError

from job_notifier.config.models import BrokerConfig, PublisherConfig
from job_notifier.domain.models import JobPostingEvent
from job_notifier.logging import get_logger
from job_notifier.utils.text import normalize_whitespace

from .codec import CONTENT_TYPE, encode_job_event
from .connection import BrokerConnection
from .exceptions import BrokerConnectionError

logger = get_logger(__name__, component="publisher")


@dataclass
class PublishOutcome:
    """Result of one publish attempt.

    Attributes:
        job_id: Id of the event (None if the payload could not be built)
        status: "published", "skipped" (broker unavailable), "failed"
            (broker rejected or connection lost) or "invalid" (bad payload)
        error: Error description for every status except "published"
    """

    job_id: Optional[str]
    status: str
    error: Optional[str] = None

    def is_success(self) -> bool:
        return self.status == "published"


def strip_role_prefix(role: str, prefixes: Iterable[str]) -> str:
    """Remove leading seniority words from an already lower-cased role.

    Example:
        >>> strip_role_prefix("senior backend engineer", ["senior"])
        'backend engineer'
    """
    prefixes = [prefix for prefix in prefixes if prefix]
    stripped = True
    while stripped:
        stripped = False
        for prefix in prefixes:
            if role.startswith(prefix + " "):
                role = role[len(prefix) + 1:]
                stripped = True
    return role


def build_job_event(
    job_title: str,
    company_name: str,
    description: Optional[str] = None,
    job_id: Optional[str] = None,
    strip_role_prefixes: Iterable[str] = ("senior",),
) -> JobPostingEvent:
    """Normalize a job-creation payload into a JobPostingEvent.

    Company and role are whitespace-collapsed and lower-cased, and leading
    seniority prefixes are removed from the role, so the match engine compares
    like with like.

    Raises:
        ValidationError: If id, company or role end up empty
    """
    role = strip_role_prefix(normalize_whitespace(job_title or "").lower(), strip_role_prefixes)

    return JobPostingEvent(
        id=job_id or str(uuid.uuid4()),
        company_name=normalize_whitespace(company_name or "").lower(),
        role=role,
        description=description or "",
    )


class JobPublisher:
    """Publishes job events to the work queue with at-most-one attempt per call."""

    def __init__(
        self,
        connection: BrokerConnection,
        broker_config: BrokerConfig,
        publisher_config: Optional[PublisherConfig] = None,
    ):
        self.connection = connection
        self.broker_config = broker_config
        self.publisher_config = publisher_config or PublisherConfig()

    def publish(self, event: JobPostingEvent) -> PublishOutcome:
        """Enqueue a job event as a persistent message.

        Returns:
            PublishOutcome; never raises
        """
        properties = pika.BasicProperties(
            content_type=CONTENT_TYPE,
            delivery_mode=pika.DeliveryMode.Persistent,
            message_id=event.id,
        )
        body = encode_job_event(event)

        with self.connection.lock:
            try:
                channel = self.connection.connect()
            except BrokerConnectionError as e:
                logger.warning(
                    f"Broker unavailable, job {event.id} not published",
                    extra={"event": "publisher.skipped", "job_id": event.id},
                )
                return PublishOutcome(job_id=event.id, status="skipped", error=str(e))

            try:
                channel.basic_publish(
                    exchange="",
                    routing_key=self.broker_config.queue_name,
                    body=body,
                    properties=properties,
                    mandatory=True,
                )
            except AMQPError as e:
                error_msg = f"{e.__class__.__name__}: {e}"
                logger.error(
                    f"Failed to publish job {event.id}: {error_msg}",
                    extra={"event": "publisher.failed", "job_id": event.id},
                )
                self.connection.reset()
                return PublishOutcome(job_id=event.id, status="failed", error=error_msg)

        logger.info(
            f"Published job {event.id}",
            extra={
                "event": "publisher.published",
                "job_id": event.id,
                "company_name": event.company_name,
                "role": event.role,
                "queue": self.broker_config.queue_name,
            },
        )
        return PublishOutcome(job_id=event.id, status="published")

    def publish_job_created(
        self,
        job_id: Optional[str],
        job_title: str,
        company_name: str,
        description: Optional[str] = None,
    ) -> PublishOutcome:
        """Normalize a newly created job and publish it.

        Called by job creation; a bad payload is reported as "invalid" so the
        job itself is still created.
        """
        try:
            event = build_job_event(
                job_title=job_title,
                company_name=company_name,
                description=description,
                job_id=job_id,
                strip_role_prefixes=self.publisher_config.strip_role_prefixes,
            )
        except ValidationError as e:
            logger.warning(
                f"Job {job_id} not published: invalid payload ({e.error_count()} errors)",
                extra={"event": "publisher.invalid", "job_id": job_id},
            )
            return PublishOutcome(job_id=job_id, status="invalid", error=str(e))

        return self.publish(event)
