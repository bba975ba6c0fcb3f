"""Additional validation utilities for configuration."""

import warnings
from typing import Any, Dict, List

from .duration import DurationParseError, parse_duration


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check raw configuration for settings that are legal but risky.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    broker = config_dict.get("broker", {})
    if isinstance(broker, dict):
        if broker.get("max_retries") == 0:
            warning_messages.append(
                "broker.max_retries is 0: a single storage failure dead-letters the job event"
            )

        if "dead_letter_queue" in broker and not broker.get("dead_letter_queue"):
            warning_messages.append(
                "broker.dead_letter_queue is disabled: failed and malformed messages will be dropped"
            )

        prefetch = broker.get("prefetch_count", 1)
        if isinstance(prefetch, int) and prefetch > 1:
            warning_messages.append(
                f"broker.prefetch_count is {prefetch}: messages are still processed one at a time, "
                "extra prefetched messages wait unacknowledged"
            )

        heartbeat = broker.get("heartbeat", 60)
        try:
            timeout = parse_duration(broker.get("processing_timeout", "30s"))
        except DurationParseError:
            timeout = None
        if isinstance(heartbeat, int) and heartbeat > 0 and timeout and timeout >= 2 * heartbeat:
            warning_messages.append(
                f"broker.processing_timeout ({timeout}s) reaches twice broker.heartbeat "
                f"({heartbeat}s): the consumer cannot answer heartbeats while a message is "
                "processed, so the broker may drop the connection and redeliver the job"
            )

    mailbox = config_dict.get("mailbox", {})
    if isinstance(mailbox, dict):
        max_length = mailbox.get("context_max_length")
        if isinstance(max_length, int) and max_length < 50:
            warning_messages.append(
                f"mailbox.context_max_length ({max_length}) leaves very little of the job description"
            )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit warning messages using Python's warnings module."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
