"""Message broker integration: connection service, publisher and consumer.

Public API:
    - BrokerConnection: owned connection with explicit connect()/close()
    - JobPublisher, PublishOutcome, build_job_event: publishing side
    - JobConsumer, ConsumerState, MessageOutcome: consuming side
    - encode_job_event, decode_job_event: wire format
    - BrokerError, BrokerConnectionError, MalformedMessageError, ProcessingTimeoutError
"""

from .codec import RETRY_HEADER, decode_job_event, encode_job_event, get_retry_count
from .connection import BrokerConnection
from .consumer import ConsumerState, JobConsumer, MessageOutcome
from .exceptions import (
    BrokerConnectionError,
    BrokerError,
    MalformedMessageError,
    ProcessingTimeoutError,
)
from .publisher import JobPublisher, PublishOutcome, build_job_event, strip_role_prefix

__all__ = [
    "BrokerConnection",
    "JobPublisher",
    "PublishOutcome",
    "build_job_event",
    "strip_role_prefix",
    "JobConsumer",
    "ConsumerState",
    "MessageOutcome",
    "RETRY_HEADER",
    "encode_job_event",
    "decode_job_event",
    "get_retry_count",
    "BrokerError",
    "BrokerConnectionError",
    "MalformedMessageError",
    "ProcessingTimeoutError",
]
