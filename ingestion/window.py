"""Time-window filtering and chronological merge of normalized events."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone, tzinfo
from typing import Iterable

from dateutil import parser as date_parser


def parse_start(value, default_tz: tzinfo = timezone.utc) -> datetime | None:
    """Parse an event ``start`` into an aware datetime, or None if unparseable.

    Date-only and floating values are read as wall time in ``default_tz``.
    """
    if not value or not isinstance(value, str):
        return None
    try:
        dt = date_parser.isoparse(value)
    except (ValueError, OverflowError):
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=default_tz)
    return dt


def filter_window(events: Iterable[dict], now: datetime, past_days: int,
                  future_days: int, default_tz: tzinfo = timezone.utc) -> list[dict]:
    """Keep events starting within [now - past_days, now + future_days]."""
    if now.tzinfo is None:
        now = now.replace(tzinfo=default_tz)
    lower = now - timedelta(days=past_days)
    upper = now + timedelta(days=future_days)
    kept = []
    for ev in events:
        start = parse_start(ev.get("start"), default_tz)
        if start is not None and lower <= start <= upper:
            kept.append(ev)
    return kept


def sort_events(events: Iterable[dict], default_tz: tzinfo = timezone.utc) -> list[dict]:
    """Order by start instant. Equal starts keep their incoming order.

    Events whose start cannot be parsed go last.
    """
    def key(ev):
        start = parse_start(ev.get("start"), default_tz)
        return (start is None, start)

    return sorted(events, key=key)


def merge_events(batches: Iterable[list[dict]], now: datetime, past_days: int,
                 future_days: int, default_tz: tzinfo = timezone.utc) -> list[dict]:
    """Concatenate per-source batches, window them once, then sort."""
    combined = []
    for batch in batches:
        combined.extend(batch)
    windowed = filter_window(combined, now, past_days, future_days, default_tz)
    return sort_events(windowed, default_tz)
