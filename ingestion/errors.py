"""Exceptions raised while building the merged calendar."""
from __future__ import annotations


class CalendarBuildError(Exception):
    """Base class for all pipeline errors."""


class ConfigError(CalendarBuildError):
    """The source registry or run settings are invalid."""


class FetchError(CalendarBuildError):
    """A feed could not be retrieved (transport error, timeout or bad status)."""

    def __init__(self, url: str, status: int | None = None, reason: str = ""):
        self.url = url
        self.status = status
        self.reason = reason
        detail = f"{status} {reason}".strip() if status else reason
        super().__init__(f"Fetch failed {url}: {detail}")


class ParseError(CalendarBuildError):
    """Feed text is not a readable iCalendar document."""


class WriteError(CalendarBuildError):
    """The output artifact could not be written."""
