"""Thin boundary over icalendar: raw ICS text -> tagged calendar records."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from icalendar import Calendar

from ingestion.errors import ParseError


@dataclass(frozen=True)
class EventRecord:
    """A VEVENT with its decoded fields. Any field may be missing."""

    start: date | datetime | None = None
    end: date | datetime | None = None
    summary: str | None = None
    location: str | None = None
    url: str | None = None
    description: str | None = None
    kind: str = "event"


@dataclass(frozen=True)
class OtherRecord:
    """Any other top-level component (VTODO, VTIMEZONE, VJOURNAL, ...)."""

    kind: str


CalendarRecord = EventRecord | OtherRecord


def _decoded_time(component, name: str) -> date | datetime | None:
    prop = component.get(name)
    value = getattr(prop, "dt", None)
    # datetime is a subclass of date
    return value if isinstance(value, date) else None


def _text(component, name: str) -> str | None:
    value = component.get(name)
    return None if value is None else str(value)


def _to_record(component) -> CalendarRecord:
    if component.name != "VEVENT":
        return OtherRecord(kind=str(component.name or "").lower())
    return EventRecord(
        start=_decoded_time(component, "dtstart"),
        end=_decoded_time(component, "dtend"),
        summary=_text(component, "summary"),
        location=_text(component, "location"),
        url=_text(component, "url"),
        description=_text(component, "description"),
    )


def parse_calendar(ics_text: str) -> dict[str, CalendarRecord]:
    """Parse ICS text into ``{id: record}`` in document order.

    Ids are the component UID when present (suffixed on collision, e.g.
    recurrence overrides sharing a UID), otherwise a positional key.
    Raises ParseError when the text is not an iCalendar document.
    """
    # some servers prepend a BOM even when declaring a charset
    ics_text = (ics_text or "").lstrip("\ufeff")
    if not ics_text or not ics_text.strip():
        raise ParseError("Empty calendar body")
    try:
        cal = Calendar.from_ical(ics_text)
    except (ValueError, IndexError, KeyError) as e:
        raise ParseError(f"Malformed ICS: {e}") from e

    records: dict[str, CalendarRecord] = {}
    for index, component in enumerate(cal.subcomponents):
        key = _text(component, "uid") or f"{component.name}-{index}"
        if key in records:
            key = f"{key}#{index}"
        records[key] = _to_record(component)
    return records
