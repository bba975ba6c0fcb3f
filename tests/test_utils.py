"""Unit tests for timestamp and text utilities."""

from datetime import datetime, timedelta, timezone

import pytest

from job_notifier.utils import (
    capitalize_first,
    ensure_utc,
    epoch_millis_to_datetime,
    format_timestamp,
    normalize_whitespace,
    to_epoch_millis,
    truncate_text,
    utc_now,
)


class TestUtcNow:
    """Tests for utc_now function."""

    def test_utc_now_returns_utc_datetime(self):
        now = utc_now()

        assert now.tzinfo == timezone.utc

    def test_utc_now_is_recent(self):
        before = datetime.now(timezone.utc)
        now = utc_now()
        after = datetime.now(timezone.utc)

        assert before <= now <= after


class TestEnsureUtc:
    """Tests for ensure_utc function."""

    def test_ensure_utc_with_none(self):
        assert ensure_utc(None) is None

    def test_ensure_utc_with_naive_datetime(self):
        """Test that naive datetime is treated as UTC."""
        result = ensure_utc(datetime(2025, 11, 4, 12, 0, 0))

        assert result == datetime(2025, 11, 4, 12, 0, 0, tzinfo=timezone.utc)

    def test_ensure_utc_with_other_timezone(self):
        """Test that other timezones are converted to UTC."""
        eastern = timezone(timedelta(hours=-5))

        result = ensure_utc(datetime(2025, 11, 4, 7, 0, 0, tzinfo=eastern))

        assert result.tzinfo == timezone.utc
        assert result.hour == 12


class TestFormatTimestamp:
    """Tests for format_timestamp function."""

    def test_format_timestamp_basic(self):
        dt = datetime(2025, 11, 4, 12, 0, 0, tzinfo=timezone.utc)

        assert format_timestamp(dt) == "2025-11-04T12:00:00Z"

    def test_format_timestamp_with_microseconds(self):
        dt = datetime(2025, 11, 4, 12, 0, 0, 123456, tzinfo=timezone.utc)

        assert format_timestamp(dt, include_microseconds=True) == "2025-11-04T12:00:00.123456Z"


class TestEpochMillis:
    """Tests for epoch millisecond conversion."""

    def test_epoch_start(self):
        assert to_epoch_millis(datetime(1970, 1, 1, tzinfo=timezone.utc)) == 0

    def test_known_value(self):
        dt = datetime(2025, 11, 4, 12, 0, 0, 500000, tzinfo=timezone.utc)

        assert to_epoch_millis(dt) == 1762257600500

    def test_defaults_to_now(self):
        before = to_epoch_millis(datetime.now(timezone.utc))
        now = to_epoch_millis()
        after = to_epoch_millis(datetime.now(timezone.utc))

        assert before <= now <= after

    def test_back_to_datetime(self):
        assert epoch_millis_to_datetime(1762257600500) == datetime(
            2025, 11, 4, 12, 0, 0, 500000, tzinfo=timezone.utc
        )


class TestTextHelpers:
    """Tests for text helpers."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("  Backend \t  Engineer ", "Backend Engineer"),
            ("one\ntwo", "one two"),
            ("", ""),
            (None, ""),
        ],
    )
    def test_normalize_whitespace(self, text, expected):
        assert normalize_whitespace(text) == expected

    def test_truncate_keeps_short_text(self):
        assert truncate_text("short", 10) == "short"

    def test_truncate_exact_length_is_not_suffixed(self):
        assert truncate_text("abcde", 5) == "abcde"

    def test_truncate_cuts_at_fixed_position(self):
        """Test the cut ignores word boundaries and appends the suffix."""
        assert truncate_text("Build data pipelines", 10) == "Build data..."
        assert truncate_text("Build data pipelines", 8, suffix="…") == "Build da…"

    def test_truncate_negative_length_raises(self):
        with pytest.raises(ValueError):
            truncate_text("text", -1)

    @pytest.mark.parametrize(
        "text,expected",
        [("globex", "Globex"), ("acme corp", "Acme corp"), ("Initech", "Initech"), ("", "")],
    )
    def test_capitalize_first(self, text, expected):
        assert capitalize_first(text) == expected
