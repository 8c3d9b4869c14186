"""
Time Utility Tests
==================
Tests for datetime parsing and next-feeding display formatting.
"""

from datetime import datetime, timedelta, timezone

from app.domain.feeding import FeedingSession, NextFeeding
from app.utils.time import (
    coerce_datetime,
    format_next_feeding,
    isoformat_or_none,
    parse_datetime,
    resolve_timezone,
    utc_now,
)


def _occurrence(date: datetime) -> NextFeeding:
    return NextFeeding(date=date, session=FeedingSession(time="08:00", feed_amount="1.0"))


class TestParsing:
    def test_parse_z_suffix(self):
        assert parse_datetime("2025-01-01T08:00:00Z") == datetime(2025, 1, 1, 8, 0, tzinfo=timezone.utc)

    def test_naive_stays_naive(self):
        assert parse_datetime("2025-01-01T08:00:00").tzinfo is None

    def test_invalid_values(self):
        assert parse_datetime("") is None
        assert parse_datetime("yesterday") is None
        assert parse_datetime(12345) is None

    def test_coerce_to_utc(self):
        value = coerce_datetime("2025-01-01T10:00:00+02:00")
        assert value == datetime(2025, 1, 1, 8, 0, tzinfo=timezone.utc)
        assert value.utcoffset() == timedelta(0)

    def test_utc_now_is_aware(self):
        assert utc_now().tzinfo is timezone.utc

    def test_isoformat_or_none(self):
        assert isoformat_or_none(None) is None
        assert isoformat_or_none(datetime(2025, 1, 1)) == "2025-01-01T00:00:00"


class TestResolveTimezone:
    def test_known_and_unknown(self):
        assert resolve_timezone("Australia/Sydney") is not None
        assert resolve_timezone("Nowhere/Special") is None
        assert resolve_timezone(None) is None


class TestFormatNextFeeding:
    def test_sydney_summer(self):
        """21:00 UTC on Dec 24 is 8:00 AM AEDT on Dec 25."""
        text = format_next_feeding(
            _occurrence(datetime(2024, 12, 24, 21, 0, tzinfo=timezone.utc)),
            "Australia/Sydney",
        )
        assert text == "Dec 25, 2024 8:00 AM AEDT"

    def test_afternoon_and_naive_input(self):
        """Naive dates are read as UTC."""
        text = format_next_feeding(_occurrence(datetime(2025, 7, 4, 15, 5)), "UTC")
        assert text == "Jul 4, 2025 3:05 PM UTC"

    def test_midnight_is_twelve_am(self):
        text = format_next_feeding(_occurrence(datetime(2025, 1, 1, 0, 0, tzinfo=timezone.utc)), "UTC")
        assert text == "Jan 1, 2025 12:00 AM UTC"

    def test_invalid_zone_formats_without_abbreviation(self):
        text = format_next_feeding(
            _occurrence(datetime(2025, 1, 1, 13, 30, tzinfo=timezone.utc)),
            "Invalid/Zone",
        )
        assert text == "Jan 1, 2025 1:30 PM"
