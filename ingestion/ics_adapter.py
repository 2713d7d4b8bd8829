"""ICS feed fetcher/parser."""
from __future__ import annotations

from datetime import timezone, tzinfo

import requests

from ingestion.base import BaseAdapter, EventDict
from ingestion.config import SourceDescriptor
from ingestion.errors import FetchError
from ingestion.normalizer import normalize_feed

DEFAULT_TIMEOUT = 20


class ICSAdapter(BaseAdapter):
    """Fetches one iCalendar feed and normalizes its events."""

    HEADERS = {
        "User-Agent": (
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
            "AppleWebKit/537.36 (KHTML, like Gecko) "
            "Chrome/120.0.0.0 Safari/537.36"
        ),
        "Accept": "text/calendar, text/plain;q=0.9, */*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
    }

    def __init__(self, source: SourceDescriptor, timeout: float = DEFAULT_TIMEOUT,
                 default_tz: tzinfo = timezone.utc):
        super().__init__(source)
        self.timeout = timeout
        self.default_tz = default_tz

    def fetch_ics(self, url: str) -> str:
        try:
            resp = requests.get(url, headers=self.HEADERS, timeout=self.timeout,
                                allow_redirects=True)
            resp.raise_for_status()
        except requests.RequestException as e:
            response = getattr(e, "response", None)
            if response is not None:
                raise FetchError(url, status=response.status_code,
                                 reason=response.reason or "") from e
            raise FetchError(url, reason=str(e) or type(e).__name__) from e
        # raise_for_status lets 1xx and 3xx through
        if not 200 <= resp.status_code < 300:
            raise FetchError(url, status=resp.status_code, reason=resp.reason or "")
        # RFC 5545 text is UTF-8; requests would guess ISO-8859-1 for text/*
        if "charset" not in resp.headers.get("Content-Type", "").lower():
            resp.encoding = "utf-8-sig"
        return resp.text

    def fetch_raw(self) -> str:
        return self.fetch_ics(self.url)

    def parse(self, raw: str) -> list[EventDict]:
        return normalize_feed(raw, self.categories, self.default_tz)
