"""Notification runtime: wires publisher, consumer and reconnect watchdog.

One runtime per process. It owns two broker connections (publishing and
consuming) and the services built on them, and gives them an explicit
start/stop lifecycle that the HTTP app and the CLI share.
"""

from typing import Optional

from job_notifier.broker import BrokerConnection, ConsumerState, JobConsumer, JobPublisher
from job_notifier.config.environment import EnvironmentConfig
from job_notifier.config.models import AppConfig
from job_notifier.logging import get_logger
from job_notifier.notifications import MailboxDeliveryService, MailboxEntryBuilder
from job_notifier.scheduler import ReconnectScheduler

logger = get_logger(__name__, component="runtime")


class NotificationRuntime:
    """Owns the broker-facing services of the pipeline.

    Args:
        app_config: Application configuration
        env_config: Environment configuration (AMQP URL)
        consume: Start the queue consumer (and its watchdog) on start()
        delivery_service: Override for tests; built from config if None
    """

    def __init__(
        self,
        app_config: AppConfig,
        env_config: EnvironmentConfig,
        consume: bool = True,
        delivery_service: Optional[MailboxDeliveryService] = None,
    ):
        self.app_config = app_config
        self.consume = consume

        broker_config = app_config.broker
        self.publisher_connection = BrokerConnection(
            env_config.amqp_url, broker_config, name="publisher"
        )
        self.publisher = JobPublisher(
            self.publisher_connection, broker_config, app_config.publisher
        )

        self.consumer: Optional[JobConsumer] = None
        self.watchdog: Optional[ReconnectScheduler] = None

        if consume:
            self.delivery_service = delivery_service or MailboxDeliveryService(
                entry_builder=MailboxEntryBuilder(app_config.mailbox)
            )
            self.consumer = JobConsumer(
                BrokerConnection(env_config.amqp_url, broker_config, name="consumer"),
                broker_config,
                self.delivery_service,
            )
            if broker_config.reconnect_interval_seconds:
                self.watchdog = ReconnectScheduler(
                    self.consumer, broker_config.reconnect_interval_seconds
                )

    @property
    def consumer_state(self) -> Optional[ConsumerState]:
        return self.consumer.state if self.consumer else None

    def start(self) -> None:
        """Start consuming and the reconnect watchdog.

        A broker that is down at startup is not fatal: the consumer stays
        DISCONNECTED and the watchdog keeps retrying.
        """
        if self.consumer is not None:
            self.consumer.start()
        if self.watchdog is not None:
            self.watchdog.start()

        logger.info(
            "Notification runtime started",
            extra={
                "event": "runtime.started",
                "consume": self.consume,
                "reconnect_watchdog": self.watchdog is not None,
            },
        )

    def stop(self) -> None:
        """Stop the watchdog, the consumer and the publisher connection."""
        if self.watchdog is not None:
            self.watchdog.shutdown(wait=False)
        if self.consumer is not None:
            self.consumer.stop()
        self.publisher_connection.close()

        logger.info("Notification runtime stopped", extra={"event": "runtime.stopped"})
