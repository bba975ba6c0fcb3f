"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .duration import DurationParseError, parse_duration, validate_duration_range


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


def _parse_bounded_duration(value: str, min_seconds: int, max_seconds: int, label: str) -> int:
    try:
        seconds = parse_duration(value)
        validate_duration_range(seconds, min_seconds, max_seconds, label=label)
    except DurationParseError as e:
        raise ValueError(str(e)) from e
    return seconds


class BrokerConfig(BaseModel):
    """Message broker (RabbitMQ) settings shared by publisher and consumer."""

    queue_name: str = Field(
        "job_processing_queue", min_length=1, description="Durable queue carrying job events"
    )
    dead_letter_queue: Optional[str] = Field(
        "job_processing_queue.dead",
        description="Queue receiving messages that exhausted retries (null disables)",
    )
    prefetch_count: int = Field(
        1, ge=1, le=100, description="Unacknowledged messages the consumer may hold"
    )
    max_retries: int = Field(
        3, ge=0, le=10, description="Redeliveries of a failed message before dead-lettering"
    )
    processing_timeout: str = Field(
        "30s", description="Upper bound on delivering one message (e.g. 30s, PT1M)"
    )
    heartbeat: int = Field(60, ge=0, le=600, description="AMQP heartbeat in seconds (0 disables)")
    connection_attempts: int = Field(
        1, ge=1, le=10, description="Connection attempts per connect() call"
    )
    publisher_confirms: bool = Field(
        True, description="Wait for broker confirmation of every published message"
    )
    reconnect_interval: Optional[str] = Field(
        "1m", description="How often a disconnected consumer retries (null disables)"
    )

    # Computed fields
    processing_timeout_seconds: Optional[int] = None
    reconnect_interval_seconds: Optional[int] = None

    @field_validator("queue_name")
    @classmethod
    def strip_queue_name(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("queue_name cannot be empty or whitespace-only")
        return stripped

    @field_validator("dead_letter_queue")
    @classmethod
    def normalize_dead_letter_queue(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        stripped = v.strip()
        return stripped or None

    @model_validator(mode="after")
    def validate_queues_and_compute_fields(self):
        """Reject a dead-letter queue equal to the main queue and compute durations."""
        if self.dead_letter_queue and self.dead_letter_queue == self.queue_name:
            raise ValueError("dead_letter_queue must differ from queue_name")

        self.processing_timeout_seconds = _parse_bounded_duration(
            self.processing_timeout, 1, 600, "processing_timeout"
        )
        if self.reconnect_interval:
            self.reconnect_interval_seconds = _parse_bounded_duration(
                self.reconnect_interval, 5, 3600, "reconnect_interval"
            )
        else:
            self.reconnect_interval_seconds = None

        return self


class PublisherConfig(BaseModel):
    """Normalization applied to job-creation payloads before publishing."""

    strip_role_prefixes: List[str] = Field(
        default_factory=lambda: ["senior"],
        description="Leading words removed from job titles (case-insensitive)",
    )

    @field_validator("strip_role_prefixes")
    @classmethod
    def normalize_prefixes(cls, v: List[str]) -> List[str]:
        """Strip, lower-case, and drop empty prefixes."""
        return [p.strip().lower() for p in v if p and p.strip()]


class MailboxConfig(BaseModel):
    """How delivered notifications are rendered into mailbox entries."""

    context_max_length: int = Field(
        200, ge=20, le=5000, description="Characters of job description kept in the message"
    )
    context_suffix: str = Field("...", description="Appended when the description is cut")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class ApiConfig(BaseModel):
    """HTTP server settings for the filter CRUD surface."""

    host: str = Field("0.0.0.0", min_length=1, description="Bind address")
    port: int = Field(8000, ge=1, le=65535, description="Bind port")


class AppConfig(BaseModel):
    """Root configuration object for the notification pipeline."""

    broker: BrokerConfig = Field(default_factory=BrokerConfig, description="Broker settings")
    publisher: PublisherConfig = Field(
        default_factory=PublisherConfig, description="Publisher normalization"
    )
    mailbox: MailboxConfig = Field(default_factory=MailboxConfig, description="Mailbox rendering")
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    api: ApiConfig = Field(default_factory=ApiConfig, description="HTTP server settings")
