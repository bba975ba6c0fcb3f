"""UTC time helpers.

Mailbox dates are epoch milliseconds (plain integers for API clients); row
audit columns are ISO-8601 strings with a 'Z' suffix.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_ONE_MILLISECOND = timedelta(milliseconds=1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Return dt in UTC; naive datetimes are taken to be UTC already."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_timestamp(dt: datetime, include_microseconds: bool = False) -> str:
    """
    Format a datetime as ISO-8601 UTC with a 'Z' suffix.

    Example:
        >>> format_timestamp(datetime(2025, 11, 4, 12, 0, tzinfo=timezone.utc))
        '2025-11-04T12:00:00Z'
    """
    dt_utc = ensure_utc(dt)
    if dt_utc is None:
        return ""
    timespec = "microseconds" if include_microseconds else "seconds"
    return dt_utc.replace(tzinfo=None).isoformat(timespec=timespec) + "Z"


def to_epoch_millis(dt: Optional[datetime] = None) -> int:
    """Milliseconds since 1970-01-01T00:00:00Z for dt (default: now)."""
    dt_utc = ensure_utc(dt) if dt is not None else utc_now()
    return (dt_utc - EPOCH) // _ONE_MILLISECOND


def epoch_millis_to_datetime(millis: int) -> datetime:
    return EPOCH + timedelta(milliseconds=millis)
