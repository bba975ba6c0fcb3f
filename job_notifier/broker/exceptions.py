"""Exception hierarchy for message broker operations."""


class BrokerError(Exception):
    """Base exception for all broker-related errors."""

    pass


class BrokerConnectionError(BrokerError):
    """Raised when the broker cannot be reached or the topology cannot be declared."""

    pass


class MalformedMessageError(BrokerError):
    """Raised when a message body cannot be decoded into a job event.

    Malformed messages are never retried; they go straight to the dead-letter
    queue.
    """

    pass


class ProcessingTimeoutError(BrokerError):
    """Raised when handling a message exceeds the configured processing timeout."""

    pass
