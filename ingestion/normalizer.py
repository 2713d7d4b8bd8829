"""Turn parsed calendar records into canonical events."""
from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone, tzinfo

from ingestion.base import EventDict
from ingestion.calendar_parser import EventRecord, parse_calendar

logger = logging.getLogger(__name__)

UNTITLED = "Untitled event"


def to_timestamp(value, default_tz: tzinfo = timezone.utc) -> str:
    """Render a decoded DTSTART/DTEND value for output.

    Date-times become UTC instants ("2025-06-01T10:00:00Z"); floating
    date-times are read in ``default_tz``. Anything else (date-only values)
    is passed through as its string form.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=default_tz)
        utc = value.astimezone(timezone.utc).replace(microsecond=0)
        return utc.strftime("%Y-%m-%dT%H:%M:%SZ")
    return str(value)


def _at_midnight(value) -> bool:
    if isinstance(value, datetime):
        return value.time().replace(microsecond=0) == time(0, 0, 0)
    # date-only values carry no time of day
    return isinstance(value, date)


def is_all_day(start, end=None) -> bool:
    """Midnight-aligned start and (when present) midnight-aligned end.

    The VALUE=DATE annotation is not consulted; a timed event that starts and
    ends exactly at midnight is reported as all-day too.
    """
    if start is None or not _at_midnight(start):
        return False
    return end is None or _at_midnight(end)


def normalize_record(record, categories: list[str],
                     default_tz: tzinfo = timezone.utc) -> EventDict | None:
    """Build one canonical event, or None if the record is skipped."""
    if not isinstance(record, EventRecord) or record.start is None:
        return None
    return EventDict(
        title=record.summary or UNTITLED,
        start=to_timestamp(record.start, default_tz),
        end=to_timestamp(record.end, default_tz) if record.end is not None else "",
        allDay=is_all_day(record.start, record.end),
        categories=categories,
        location=record.location or "",
        link=record.url or "",
        notes=record.description or "",
    )


def normalize_feed(ics_text: str, categories: list[str],
                   default_tz: tzinfo = timezone.utc) -> list[EventDict]:
    """Parse one feed and normalize every VEVENT that has a start."""
    records = parse_calendar(ics_text)
    events = []
    for record in records.values():
        event = normalize_record(record, categories, default_tz)
        if event is not None:
            events.append(event)
    logger.debug(f"Normalized {len(events)} of {len(records)} records")
    return events
