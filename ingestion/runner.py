"""Orchestrates all feeds: fetch, normalize, window, sort, write."""
from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone

from dateutil import tz

from ingestion.base import BaseAdapter, EventDict
from ingestion.config import BuildConfig, RunSettings, SourceDescriptor
from ingestion.ics_adapter import ICSAdapter
from ingestion.window import merge_events
from publish.writer import write_events

logger = logging.getLogger(__name__)


@dataclass
class SourceOutcome:
    """Result of one source's fetch+normalize: events, or the error that stopped it."""

    source: SourceDescriptor
    events: list[EventDict] = field(default_factory=list)
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def get_adapter(source: SourceDescriptor, settings: RunSettings) -> BaseAdapter:
    return ICSAdapter(source, timeout=settings.timeout,
                      default_tz=tz.gettz(settings.timezone))


def run_source(adapter: BaseAdapter) -> SourceOutcome:
    """Run one adapter, capturing any failure instead of raising it."""
    try:
        events = adapter.run()
    except Exception as e:
        logger.error(f"{adapter.name}: source error: {e}")
        return SourceOutcome(adapter.source, error=e)
    logger.info(f"{adapter.name}: OK, {len(events)} events")
    return SourceOutcome(adapter.source, events=events)


def collect_sources(sources, settings: RunSettings, adapter_factory=get_adapter) -> list[SourceOutcome]:
    """Fetch and normalize each source in turn, one outcome per source."""
    return [run_source(adapter_factory(src, settings)) for src in sources]


def category_counts(events: list[dict]) -> dict[str, int]:
    counts = Counter()
    for ev in events:
        counts.update(ev.get("categories", []))
    return dict(sorted(counts.items()))


def run_ingestion(config: BuildConfig, now: datetime = None, source_filter: str = None,
                  adapter_factory=get_adapter) -> dict:
    """Main build entry point. Only config or write failures propagate."""
    settings = config.settings
    default_tz = tz.gettz(settings.timezone)
    now = now or datetime.now(timezone.utc)

    sources = [s for s in config.sources
               if not source_filter or s.display_name == source_filter]
    if source_filter and not sources:
        logger.warning(f"No configured source named '{source_filter}'")

    outcomes = collect_sources(sources, settings, adapter_factory)
    succeeded = [o for o in outcomes if o.ok]
    failed = [o for o in outcomes if not o.ok]

    events = merge_events(
        (o.events for o in succeeded), now,
        settings.past_days, settings.future_days, default_tz,
    )
    output_path = write_events(events, settings.output_path)

    stats = {
        "success": len(succeeded),
        "failed": len(failed),
        "failed_sources": [o.source.display_name for o in failed],
        "events_written": len(events),
        "categories": category_counts(events),
        "output_path": output_path,
    }
    logger.info(f"Wrote {len(events)} events to {output_path}")
    for cat, count in stats["categories"].items():
        logger.info(f"  {cat}: {count}")
    return stats
