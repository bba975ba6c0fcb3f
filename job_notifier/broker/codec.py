"""Wire format for job events on the queue.

Bodies are UTF-8 JSON objects using the camelCase field names
(``{"id", "companyName", "role", "description"}``). The retry count of a
redelivered copy travels in the ``x-retry-count`` message header.
"""

from typing import Optional

from pika.spec import BasicProperties
from pydantic import ValidationError

from job_notifier.domain.models import JobPostingEvent

from .exceptions import MalformedMessageError

CONTENT_TYPE = "application/json"
RETRY_HEADER = "x-retry-count"


def encode_job_event(event: JobPostingEvent) -> bytes:
    return event.model_dump_json(by_alias=True).encode("utf-8")


def decode_job_event(body: bytes) -> JobPostingEvent:
    """Decode a message body into a JobPostingEvent.

    Raises:
        MalformedMessageError: If the body is not valid JSON or lacks required fields
    """
    try:
        return JobPostingEvent.model_validate_json(body)
    except ValidationError as e:
        raise MalformedMessageError(
            f"Invalid job event payload ({e.error_count()} errors): {e}"
        ) from e
    except UnicodeDecodeError as e:
        raise MalformedMessageError(f"Job event payload is not UTF-8: {e}") from e


def get_retry_count(properties: Optional[BasicProperties]) -> int:
    """Read the retry counter from message headers; missing or invalid means 0."""
    headers = getattr(properties, "headers", None) or {}
    try:
        return max(int(headers.get(RETRY_HEADER, 0)), 0)
    except (TypeError, ValueError):
        return 0
