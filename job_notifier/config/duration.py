"""Duration strings used by broker timing settings.

Two spellings are accepted: compact unit strings ("30s", "2m", "1h30m") and
ISO-8601 durations ("PT30S", "PT1M", "P1D"). Both resolve to whole seconds.
"""

import re
from typing import Tuple

_UNIT_SECONDS = {"d": 86400, "h": 3600, "m": 60, "s": 1}

_COMPACT_RE = re.compile(r"^(?:\d+[dhms])+$")
_COMPACT_PART_RE = re.compile(r"(\d+)([dhms])")
_ISO_RE = re.compile(r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+(?:\.\d+)?)S)?)?$")

_NAMED_UNITS: Tuple[Tuple[str, int], ...] = (
    ("day", 86400),
    ("hour", 3600),
    ("minute", 60),
    ("second", 1),
)


class DurationParseError(ValueError):
    """Raised when a duration string cannot be parsed."""


def parse_duration(duration_str: str) -> int:
    """
    Convert a duration string to seconds.

    Raises:
        DurationParseError: For non-strings, unknown formats and zero durations

    Examples:
        >>> parse_duration("1m30s")
        90
        >>> parse_duration("PT30S")
        30
    """
    if not isinstance(duration_str, str):
        raise DurationParseError(f"Duration must be a string, got {type(duration_str).__name__}")

    value = re.sub(r"\s+", "", duration_str)
    if not value:
        raise DurationParseError("Duration string cannot be empty")

    if value[0] in "pP":
        seconds = _iso_seconds(value.upper())
    else:
        seconds = _compact_seconds(value.lower())

    if seconds == 0:
        raise DurationParseError(f"Duration cannot be zero: '{duration_str}'")
    return seconds


def _iso_seconds(value: str) -> int:
    match = _ISO_RE.match(value)
    # A bare "P" or "PT" matches the pattern with every group empty
    if not match or not any(match.groups()):
        raise DurationParseError(
            f"Invalid ISO-8601 duration: '{value}'. Expected e.g. 'PT30S', 'PT1M', 'P1D'"
        )

    days, hours, minutes, seconds = match.groups()
    return (
        int(days or 0) * _UNIT_SECONDS["d"]
        + int(hours or 0) * _UNIT_SECONDS["h"]
        + int(minutes or 0) * _UNIT_SECONDS["m"]
        + int(float(seconds or 0))
    )


def _compact_seconds(value: str) -> int:
    if not _COMPACT_RE.match(value):
        raise DurationParseError(
            f"Invalid duration: '{value}'. Use digits followed by s, m, h or d (e.g. '30s', '1m30s')"
        )
    return sum(int(amount) * _UNIT_SECONDS[unit] for amount, unit in _COMPACT_PART_RE.findall(value))


def validate_duration_range(
    duration_seconds: int,
    min_seconds: int,
    max_seconds: int,
    label: str = "Duration",
) -> None:
    """Raise DurationParseError unless min_seconds <= duration_seconds <= max_seconds."""
    if duration_seconds < min_seconds:
        raise DurationParseError(
            f"{label} too short: {seconds_to_human_readable(duration_seconds)}. "
            f"Minimum is {seconds_to_human_readable(min_seconds)}."
        )
    if duration_seconds > max_seconds:
        raise DurationParseError(
            f"{label} too long: {seconds_to_human_readable(duration_seconds)}. "
            f"Maximum is {seconds_to_human_readable(max_seconds)}."
        )


def seconds_to_human_readable(seconds: int) -> str:
    """Render seconds in the largest whole unit, e.g. 45 -> '45 seconds', 3600 -> '1 hour'."""
    for name, size in _NAMED_UNITS:
        if seconds >= size:
            amount = seconds // size
            return f"{amount} {name}{'' if amount == 1 else 's'}"
    return f"{seconds} seconds"
