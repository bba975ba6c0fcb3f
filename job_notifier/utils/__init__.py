"""Utility functions for time handling and text shaping."""

from .text import capitalize_first, normalize_whitespace, truncate_text
from .timestamps import (
    ensure_utc,
    epoch_millis_to_datetime,
    format_timestamp,
    to_epoch_millis,
    utc_now,
)

__all__ = [
    # Timestamps
    "utc_now",
    "ensure_utc",
    "format_timestamp",
    "to_epoch_millis",
    "epoch_millis_to_datetime",
    # Text
    "truncate_text",
    "normalize_whitespace",
    "capitalize_first",
]
