"""Queue consumer that delivers job events into candidate mailboxes.

Per-message protocol:
1. Decode the body; a malformed message is rejected without requeue and
   lands in the dead-letter queue (or is dropped when none is configured).
2. Run the delivery service, bounded by the processing timeout.
3. On success acknowledge the message, strictly after the mailbox commit.
4. On failure republish a copy with ``x-retry-count`` incremented and ack the
   original, until max_retries is reached; then reject without requeue.

A crash between commit and acknowledgement redelivers the message, so a
mailbox may receive a duplicate entry but a job is never silently lost.
"""

import contextvars
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import pika
from pika.adapters.blocking_connection import BlockingChannel
from pika.exceptions import AMQPError
from pika.spec import Basic, BasicProperties

from job_notifier.config.models import BrokerConfig
from job_notifier.domain.models import JobPostingEvent
from job_notifier.logging import get_logger
from job_notifier.logging.context import log_context
from job_notifier.notifications.models import DeliveryResult
from job_notifier.notifications.service import MailboxDeliveryService

from .codec import CONTENT_TYPE, RETRY_HEADER, decode_job_event, get_retry_count
from .connection import BrokerConnection
from .exceptions import BrokerConnectionError, MalformedMessageError, ProcessingTimeoutError

logger = get_logger(__name__, component="consumer")


class ConsumerState(str, Enum):
    """Lifecycle of the consumer's broker connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONSUMING = "consuming"


@dataclass
class MessageOutcome:
    """What the consumer did with one message.

    Attributes:
        status: "acked", "requeued" (retry copy published) or "dead_lettered"
        job_id: Id of the decoded event (None for malformed messages)
        retry_count: Retry counter of the message as received
        error: Failure description for requeued and dead-lettered messages
        delivery: Delivery result for acked messages
    """

    status: str
    job_id: Optional[str] = None
    retry_count: int = 0
    error: Optional[str] = None
    delivery: Optional[DeliveryResult] = None


class JobConsumer:
    """Consumes job events on a background thread.

    The consumer owns its BrokerConnection; no other thread may use it except
    through BrokerConnection.call_threadsafe().
    """

    def __init__(
        self,
        connection: BrokerConnection,
        broker_config: BrokerConfig,
        delivery_service: MailboxDeliveryService,
    ):
        self.connection = connection
        self.config = broker_config
        self.delivery_service = delivery_service

        self._state = ConsumerState.DISCONNECTED
        self._state_lock = threading.RLock()
        self._thread: Optional[threading.Thread] = None
        self._stopping = threading.Event()
        self._executor = self._new_executor()

    @staticmethod
    def _new_executor() -> ThreadPoolExecutor:
        return ThreadPoolExecutor(max_workers=1, thread_name_prefix="job-delivery")

    @property
    def state(self) -> ConsumerState:
        return self._state

    def _set_state(self, state: ConsumerState) -> None:
        with self._state_lock:
            previous, self._state = self._state, state

        if previous != state:
            logger.info(
                f"Consumer state {previous.value} -> {state.value}",
                extra={
                    "event": "consumer.state_changed",
                    "previous_state": previous.value,
                    "state": state.value,
                },
            )

    def start(self) -> bool:
        """Start consuming on a daemon thread.

        Returns:
            False if the consumer is already connecting or consuming
        """
        with self._state_lock:
            if self._state != ConsumerState.DISCONNECTED:
                return False
            if self._thread is not None and self._thread.is_alive():
                return False
            self._stopping.clear()
            self._set_state(ConsumerState.CONNECTING)

        self._thread = threading.Thread(target=self._run, name="job-consumer", daemon=True)
        self._thread.start()
        return True

    def ensure_started(self) -> bool:
        """Restart a disconnected consumer (reconnect watchdog hook).

        Returns:
            True if a restart was initiated
        """
        if self._stopping.is_set() or self._state != ConsumerState.DISCONNECTED:
            return False

        logger.info(
            "Consumer disconnected, reconnecting",
            extra={"event": "consumer.reconnecting"},
        )
        return self.start()

    def _run(self) -> None:
        try:
            channel = self.connection.connect()
            channel.basic_qos(prefetch_count=self.config.prefetch_count)
            channel.basic_consume(
                queue=self.config.queue_name,
                on_message_callback=self.process_message,
                auto_ack=False,
            )

            if self._stopping.is_set():
                return

            self._set_state(ConsumerState.CONSUMING)
            logger.info(
                f"Consuming from {self.config.queue_name}",
                extra={
                    "event": "consumer.started",
                    "queue": self.config.queue_name,
                    "prefetch_count": self.config.prefetch_count,
                },
            )
            channel.start_consuming()

        except BrokerConnectionError as e:
            logger.error(
                f"Consumer could not connect: {e}",
                extra={"event": "consumer.connect_failed"},
            )
        except AMQPError as e:
            logger.error(
                f"Consumer connection lost: {e.__class__.__name__}: {e}",
                extra={"event": "consumer.connection_lost"},
            )
        except Exception as e:
            logger.error(
                f"Consumer stopped unexpectedly: {e}",
                exc_info=True,
                extra={"event": "consumer.crashed"},
            )
        finally:
            self.connection.reset()
            self._set_state(ConsumerState.DISCONNECTED)

    def stop(self, timeout: float = 10.0) -> None:
        """Stop consuming, close the connection and release the delivery worker."""
        self._stopping.set()
        logger.info("Stopping consumer", extra={"event": "consumer.stopping"})

        self.connection.call_threadsafe(self._stop_consuming)

        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning(
                    f"Consumer thread did not stop within {timeout}s",
                    extra={"event": "consumer.stop_timeout"},
                )

        self.connection.close()
        self._executor.shutdown(wait=False)
        self._executor = self._new_executor()
        logger.info("Consumer stopped", extra={"event": "consumer.stopped"})

    def _stop_consuming(self) -> None:
        channel = self.connection.channel
        if channel is not None and channel.is_open:
            channel.stop_consuming()

    def process_message(
        self,
        channel: BlockingChannel,
        method: Basic.Deliver,
        properties: BasicProperties,
        body: bytes,
    ) -> MessageOutcome:
        """Handle one delivery and acknowledge, retry or dead-letter it."""
        retry_count = get_retry_count(properties)

        with log_context(
            message_id=getattr(properties, "message_id", None),
            delivery_tag=method.delivery_tag,
            retry_count=retry_count,
        ):
            try:
                event = decode_job_event(body)
            except MalformedMessageError as e:
                channel.basic_nack(delivery_tag=method.delivery_tag, requeue=False)
                logger.error(
                    f"Malformed message rejected: {e}",
                    extra={
                        "event": "consumer.message.malformed",
                        "dead_letter_queue": self.config.dead_letter_queue,
                    },
                )
                return MessageOutcome(
                    status="dead_lettered", retry_count=retry_count, error=str(e)
                )

            try:
                result = self._deliver_with_timeout(event)
            except Exception as e:
                return self._handle_failure(
                    channel, method, properties, body, event, retry_count, e
                )

            channel.basic_ack(delivery_tag=method.delivery_tag)
            logger.info(
                f"Job {event.id} processed",
                extra={
                    "event": "consumer.message.acked",
                    "job_id": event.id,
                    "delivered_count": result.delivered_count,
                },
            )
            return MessageOutcome(
                status="acked", job_id=event.id, retry_count=retry_count, delivery=result
            )

    def _deliver_with_timeout(self, event: JobPostingEvent) -> DeliveryResult:
        timeout = self.config.processing_timeout_seconds
        context = contextvars.copy_context()
        future = self._executor.submit(context.run, self.delivery_service.deliver, event)

        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            # The hung worker cannot be interrupted; abandon it with its executor
            future.cancel()
            self._executor.shutdown(wait=False)
            self._executor = self._new_executor()
            raise ProcessingTimeoutError(
                f"Processing job {event.id} exceeded {timeout}s"
            ) from None

    def _handle_failure(
        self,
        channel: BlockingChannel,
        method: Basic.Deliver,
        properties: BasicProperties,
        body: bytes,
        event: JobPostingEvent,
        retry_count: int,
        error: Exception,
    ) -> MessageOutcome:
        error_msg = f"{error.__class__.__name__}: {error}"

        if retry_count < self.config.max_retries:
            headers = dict(getattr(properties, "headers", None) or {})
            headers[RETRY_HEADER] = retry_count + 1

            channel.basic_publish(
                exchange="",
                routing_key=self.config.queue_name,
                body=body,
                properties=pika.BasicProperties(
                    content_type=getattr(properties, "content_type", None) or CONTENT_TYPE,
                    delivery_mode=pika.DeliveryMode.Persistent,
                    message_id=getattr(properties, "message_id", None) or event.id,
                    headers=headers,
                ),
            )
            channel.basic_ack(delivery_tag=method.delivery_tag)

            logger.warning(
                f"Job {event.id} failed, retry {retry_count + 1}/{self.config.max_retries} "
                f"scheduled: {error_msg}",
                extra={
                    "event": "consumer.message.requeued",
                    "job_id": event.id,
                    "max_retries": self.config.max_retries,
                },
            )
            return MessageOutcome(
                status="requeued", job_id=event.id, retry_count=retry_count, error=error_msg
            )

        channel.basic_nack(delivery_tag=method.delivery_tag, requeue=False)
        logger.error(
            f"Job {event.id} failed after {retry_count} retries, dead-lettered: {error_msg}",
            extra={
                "event": "consumer.message.dead_lettered",
                "job_id": event.id,
                "dead_letter_queue": self.config.dead_letter_queue,
            },
        )
        return MessageOutcome(
            status="dead_lettered", job_id=event.id, retry_count=retry_count, error=error_msg
        )
