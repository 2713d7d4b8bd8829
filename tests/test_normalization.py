"""Tests for event normalization, timestamp rendering and all-day inference."""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datetime import date, datetime, timezone

import pytest
from dateutil import tz

from ingestion.calendar_parser import EventRecord, OtherRecord
from ingestion.errors import ParseError
from ingestion.normalizer import (
    UNTITLED, is_all_day, normalize_feed, normalize_record, to_timestamp,
)


def make_ics(*bodies):
    parts = ["BEGIN:VCALENDAR", "VERSION:2.0", "PRODID:-//Test//EN"]
    for body in bodies:
        parts.extend(body.strip().splitlines())
    parts.append("END:VCALENDAR")
    return "\r\n".join(parts) + "\r\n"


DATE_ONLY_EVENT = """
BEGIN:VEVENT
UID:new-year@example.org
DTSTAMP:20241201T000000Z
DTSTART;VALUE=DATE:20250101
SUMMARY:New Year's Day
END:VEVENT
"""

TIMED_EVENT = """
BEGIN:VEVENT
UID:concert@example.org
DTSTAMP:20241201T000000Z
DTSTART:20250601T100000Z
DTEND:20250601T120000Z
SUMMARY:Band Concert
LOCATION:Amphitheater
URL:https://example.org/concert
DESCRIPTION:Bring a chair
END:VEVENT
"""

NO_SUMMARY_EVENT = """
BEGIN:VEVENT
UID:mystery@example.org
DTSTAMP:20241201T000000Z
DTSTART:20250602T150000Z
END:VEVENT
"""

NO_START_EVENT = """
BEGIN:VEVENT
UID:nostart@example.org
DTSTAMP:20241201T000000Z
SUMMARY:Date TBA
END:VEVENT
"""

TODO = """
BEGIN:VTODO
UID:todo@example.org
DTSTAMP:20241201T000000Z
DTSTART:20250601T100000Z
SUMMARY:Not an event
END:VTODO
"""


class TestToTimestamp:
    def test_utc_datetime(self):
        dt = datetime(2025, 6, 1, 10, 0, tzinfo=timezone.utc)
        assert to_timestamp(dt) == "2025-06-01T10:00:00Z"

    def test_aware_datetime_converted_to_utc(self):
        dt = datetime(2025, 6, 1, 10, 0, tzinfo=tz.gettz("America/Chicago"))
        assert to_timestamp(dt) == "2025-06-01T15:00:00Z"

    def test_floating_datetime_uses_default_tz(self):
        dt = datetime(2025, 1, 15, 9, 30)
        assert to_timestamp(dt, tz.gettz("America/Chicago")) == "2025-01-15T15:30:00Z"

    def test_floating_datetime_defaults_to_utc(self):
        assert to_timestamp(datetime(2025, 1, 15, 9, 30)) == "2025-01-15T09:30:00Z"

    def test_date_passthrough(self):
        assert to_timestamp(date(2025, 1, 1)) == "2025-01-01"


class TestIsAllDay:
    def test_date_without_end(self):
        assert is_all_day(date(2025, 1, 1)) is True

    def test_date_with_date_end(self):
        assert is_all_day(date(2025, 1, 1), date(2025, 1, 2)) is True

    def test_midnight_datetimes(self):
        assert is_all_day(datetime(2025, 1, 1), datetime(2025, 1, 2)) is True

    def test_timed_start(self):
        assert is_all_day(datetime(2025, 1, 1, 9, 0)) is False

    def test_timed_end(self):
        assert is_all_day(datetime(2025, 1, 1), datetime(2025, 1, 1, 17, 0)) is False

    def test_seconds_count(self):
        assert is_all_day(datetime(2025, 1, 1, 0, 0, 30)) is False

    def test_midnight_in_event_timezone(self):
        chicago = tz.gettz("America/Chicago")
        start = datetime(2025, 3, 1, tzinfo=chicago)
        end = datetime(2025, 3, 2, tzinfo=chicago)
        assert is_all_day(start, end) is True

    def test_missing_start(self):
        assert is_all_day(None) is False


class TestNormalizeRecord:
    def test_other_kind_skipped(self):
        assert normalize_record(OtherRecord(kind="vtodo"), ["arts"]) is None

    def test_missing_start_skipped(self):
        assert normalize_record(EventRecord(summary="No start"), ["arts"]) is None

    def test_defaults(self):
        ev = normalize_record(EventRecord(start=date(2025, 5, 5)), ["school"])
        assert ev["title"] == UNTITLED
        assert ev["end"] == ""
        assert ev["location"] == ""
        assert ev["link"] == ""
        assert ev["notes"] == ""

    def test_empty_summary_uses_placeholder(self):
        ev = normalize_record(EventRecord(start=date(2025, 5, 5), summary=""), ["school"])
        assert ev["title"] == UNTITLED

    def test_categories_shared_reference(self):
        cats = ["community", "sports"]
        ev = normalize_record(EventRecord(start=date(2025, 5, 5)), cats)
        assert ev["categories"] is cats


class TestNormalizeFeed:
    def test_date_only_event_is_all_day(self):
        events = normalize_feed(make_ics(DATE_ONLY_EVENT), ["school"])
        assert len(events) == 1
        ev = events[0]
        assert ev["allDay"] is True
        assert ev["start"] == "2025-01-01"
        assert ev["end"] == ""
        assert ev["title"] == "New Year's Day"

    def test_timed_event_fields(self):
        events = normalize_feed(make_ics(TIMED_EVENT), ["arts"])
        assert events == [{
            "title": "Band Concert",
            "start": "2025-06-01T10:00:00Z",
            "end": "2025-06-01T12:00:00Z",
            "allDay": False,
            "categories": ["arts"],
            "location": "Amphitheater",
            "link": "https://example.org/concert",
            "notes": "Bring a chair",
        }]

    def test_missing_summary_placeholder(self):
        events = normalize_feed(make_ics(NO_SUMMARY_EVENT), ["arts"])
        assert events[0]["title"] == UNTITLED

    def test_skips_todo_and_startless_events(self):
        ics = make_ics(TODO, NO_START_EVENT, TIMED_EVENT)
        events = normalize_feed(ics, ["arts"])
        assert [e["title"] for e in events] == ["Band Concert"]

    def test_categories_copied_verbatim(self):
        ics = make_ics(DATE_ONLY_EVENT, TIMED_EVENT)
        events = normalize_feed(ics, ["community", "sports"])
        assert all(e["categories"] == ["community", "sports"] for e in events)

    def test_floating_midnight_event_with_default_tz(self):
        body = """
BEGIN:VEVENT
UID:fair@example.org
DTSTAMP:20241201T000000Z
DTSTART:20250601T000000
DTEND:20250602T000000
SUMMARY:County Fair
END:VEVENT
"""
        events = normalize_feed(make_ics(body), ["community"], tz.gettz("America/Chicago"))
        assert events[0]["allDay"] is True
        assert events[0]["start"] == "2025-06-01T05:00:00Z"
        assert events[0]["end"] == "2025-06-02T05:00:00Z"

    def test_empty_calendar(self):
        assert normalize_feed(make_ics(), ["arts"]) == []

    def test_malformed_feed_raises(self):
        with pytest.raises(ParseError):
            normalize_feed("<html><body>Service unavailable</body></html>", ["arts"])
