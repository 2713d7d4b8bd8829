"""Base adapter interface and the canonical event shape."""
from __future__ import annotations

import abc
import logging
from typing import Any

from ingestion.config import SourceDescriptor

logger = logging.getLogger(__name__)


class EventDict(dict):
    """Canonical event, serialized as-is into events.json."""

    REQUIRED_KEYS = {"title", "start", "categories"}
    FIELDS = ("title", "start", "end", "allDay", "categories", "location", "link", "notes")

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        missing = self.REQUIRED_KEYS - set(self.keys())
        if missing:
            raise ValueError(f"EventDict missing required keys: {missing}")
        if not self["start"]:
            raise ValueError("EventDict start must not be empty")

    def to_json(self) -> dict:
        """Plain dict in output field order, with defaults filled in."""
        defaults = {"end": "", "allDay": False, "location": "", "link": "", "notes": ""}
        out = {}
        for key in self.FIELDS:
            value = self.get(key, defaults.get(key))
            out[key] = list(value) if key == "categories" else value
        return out


class BaseAdapter(abc.ABC):
    """Abstract base class for feed adapters."""

    def __init__(self, source: SourceDescriptor):
        self.source = source
        self.name = source.display_name
        self.url = source.address
        # one list per source, shared by all of its events
        self.categories = list(source.category_tags)
        self.logger = logging.getLogger(f"adapter.{self.name}")

    @abc.abstractmethod
    def fetch_raw(self) -> Any:
        """Fetch raw data from the source."""

    @abc.abstractmethod
    def parse(self, raw: Any) -> list[EventDict]:
        """Parse raw payload into a list of EventDicts."""

    def run(self) -> list[EventDict]:
        """Execute fetch + parse for this source."""
        self.logger.debug(f"Fetching {self.url}")
        raw = self.fetch_raw()
        events = self.parse(raw)
        self.logger.debug(f"{self.name}: parsed {len(events)} events")
        return events
