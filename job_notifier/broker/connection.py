"""Broker connection service.

A BrokerConnection owns one pika BlockingConnection and its channel. pika's
blocking connections are not thread-safe, so each process keeps one instance
for publishing (guarded by the instance lock) and a separate instance that
only the consumer thread uses.
"""

import threading
from typing import Callable, Optional

import pika
from pika.adapters.blocking_connection import BlockingChannel
from pika.exceptions import AMQPError

from job_notifier.config.models import BrokerConfig
from job_notifier.logging import get_logger

from .exceptions import BrokerConnectionError

logger = get_logger(__name__, component="broker")


def _redact_amqp_url(url: str) -> str:
    """Hide the password in an AMQP URL for logging."""
    if "@" not in url or "://" not in url:
        return url
    scheme, _, rest = url.partition("://")
    userinfo, _, location = rest.rpartition("@")
    username = userinfo.split(":", 1)[0]
    return f"{scheme}://{username}:***@{location}"


class BrokerConnection:
    """Lazily opened, explicitly closed connection to the message broker.

    connect() is idempotent: it returns the open channel, or opens a new
    connection, declares the queue topology and returns the fresh channel.
    """

    def __init__(self, amqp_url: str, broker_config: BrokerConfig, name: str = "broker"):
        """
        Args:
            amqp_url: AMQP connection URL (amqp:// or amqps://)
            broker_config: Queue names, heartbeat and confirm settings
            name: Label used in logs ("publisher", "consumer")
        """
        self.amqp_url = amqp_url
        self.config = broker_config
        self.name = name
        self.lock = threading.RLock()
        self._connection: Optional[pika.BlockingConnection] = None
        self._channel: Optional[BlockingChannel] = None

    @property
    def is_open(self) -> bool:
        return bool(
            self._connection is not None
            and self._connection.is_open
            and self._channel is not None
            and self._channel.is_open
        )

    @property
    def channel(self) -> Optional[BlockingChannel]:
        return self._channel

    def connect(self) -> BlockingChannel:
        """Open the connection and declare the topology if not already open.

        Returns:
            The open channel

        Raises:
            BrokerConnectionError: If the broker is unreachable or rejects the topology
        """
        with self.lock:
            if self.is_open and self._is_alive():
                return self._channel

            self._discard()

            logger.info(
                f"Connecting {self.name} to broker",
                extra={
                    "event": "broker.connecting",
                    "connection": self.name,
                    "amqp_url": _redact_amqp_url(self.amqp_url),
                },
            )

            try:
                parameters = pika.URLParameters(self.amqp_url)
                parameters.heartbeat = self.config.heartbeat
                parameters.connection_attempts = self.config.connection_attempts

                connection = pika.BlockingConnection(parameters)
                channel = connection.channel()
                if self.config.publisher_confirms:
                    channel.confirm_delivery()
                self._declare_topology(channel)

            except (AMQPError, OSError) as e:
                error_msg = f"Failed to connect {self.name} to broker: {e.__class__.__name__}: {e}"
                logger.error(
                    error_msg,
                    extra={"event": "broker.connect_failed", "connection": self.name},
                )
                raise BrokerConnectionError(error_msg) from e

            self._connection = connection
            self._channel = channel

            logger.info(
                f"Connected {self.name} to broker",
                extra={
                    "event": "broker.connected",
                    "connection": self.name,
                    "queue": self.config.queue_name,
                    "dead_letter_queue": self.config.dead_letter_queue,
                },
            )
            return channel

    def _is_alive(self) -> bool:
        """Service pending heartbeats and report whether the connection survived.

        A blocking connection left idle longer than the heartbeat window is
        dropped by the broker while is_open still reads True; only I/O on the
        socket reveals it.
        """
        try:
            self._connection.process_data_events(time_limit=0)
        except (AMQPError, OSError) as e:
            logger.warning(
                f"Stale {self.name} broker connection, reconnecting: {e.__class__.__name__}",
                extra={"event": "broker.connection_stale", "connection": self.name},
            )
            return False
        return self.is_open

    def _declare_topology(self, channel: BlockingChannel) -> None:
        """Declare the durable work queue and, if configured, its dead-letter queue."""
        arguments = None
        if self.config.dead_letter_queue:
            channel.queue_declare(queue=self.config.dead_letter_queue, durable=True)
            arguments = {
                "x-dead-letter-exchange": "",
                "x-dead-letter-routing-key": self.config.dead_letter_queue,
            }

        channel.queue_declare(queue=self.config.queue_name, durable=True, arguments=arguments)

    def call_threadsafe(self, callback: Callable[[], None]) -> bool:
        """Schedule callback on the connection's own thread.

        Returns:
            False if there is no open connection to schedule on
        """
        connection = self._connection
        if connection is None or not connection.is_open:
            return False
        connection.add_callback_threadsafe(callback)
        return True

    def reset(self) -> None:
        """Drop a connection that failed mid-operation; the next connect() reopens."""
        with self.lock:
            self._discard()

    def close(self) -> None:
        """Close the channel and connection."""
        with self.lock:
            if self._connection is None:
                return
            self._discard()
            logger.info(
                f"Closed {self.name} broker connection",
                extra={"event": "broker.closed", "connection": self.name},
            )

    def _discard(self) -> None:
        connection = self._connection
        self._connection = None
        self._channel = None

        if connection is not None and connection.is_open:
            try:
                connection.close()
            except AMQPError as e:
                logger.debug(f"Ignoring error while closing {self.name} connection: {e}")
