"""Source registry and run settings, loaded from config/sources.yaml."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace

import yaml
from dateutil import tz

from ingestion.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_DIR = os.path.join(os.path.dirname(__file__), "..", "config")
DEFAULT_CONFIG_PATH = os.path.join(CONFIG_DIR, "sources.yaml")


@dataclass(frozen=True)
class SourceDescriptor:
    """One remote ICS feed and the tags stamped on every event it yields."""

    address: str
    category_tags: tuple[str, ...]
    display_name: str


@dataclass(frozen=True)
class RunSettings:
    output_path: str = "calendar/events.json"
    past_days: int = 90
    future_days: int = 365
    timeout: float = 20
    timezone: str = "UTC"


@dataclass(frozen=True)
class BuildConfig:
    settings: RunSettings
    sources: tuple[SourceDescriptor, ...]


def _parse_source(entry: dict, index: int) -> SourceDescriptor | None:
    if not isinstance(entry, dict):
        raise ConfigError(f"sources[{index}] must be a mapping")
    name = entry.get("name")
    url = (entry.get("url") or "").strip()
    cats = entry.get("categories")
    if not name:
        raise ConfigError(f"sources[{index}] has no name")
    if not url:
        raise ConfigError(f"{name}: url is required")
    if isinstance(cats, str):
        cats = [cats]
    if not cats or not all(isinstance(c, str) and c for c in cats):
        raise ConfigError(f"{name}: categories must be a non-empty list of strings")
    if not entry.get("enabled", True):
        logger.debug(f"{name}: disabled, skipping")
        return None
    return SourceDescriptor(address=url, category_tags=tuple(cats), display_name=str(name))


def _parse_settings(raw: dict) -> RunSettings:
    if not isinstance(raw, dict):
        raise ConfigError("settings must be a mapping")
    known = {f: raw[f] for f in RunSettings.__dataclass_fields__ if f in raw}
    unknown = set(raw) - set(known)
    if unknown:
        logger.warning(f"Ignoring unknown settings: {sorted(unknown)}")
    try:
        settings = RunSettings(**known)
        past, future = int(settings.past_days), int(settings.future_days)
        timeout = float(settings.timeout)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid settings: {e}") from e
    if past < 0 or future < 0:
        raise ConfigError("past_days and future_days must not be negative")
    if timeout <= 0:
        raise ConfigError("timeout must be positive")
    if tz.gettz(str(settings.timezone)) is None:
        raise ConfigError(f"Unknown timezone: {settings.timezone}")
    return replace(settings, past_days=past, future_days=future, timeout=timeout)


def load_config(path: str = None) -> BuildConfig:
    """Read the YAML registry.

    ``EVENTS_CONFIG`` picks a different file when no path is given and
    ``EVENTS_OUTPUT_PATH`` overrides ``settings.output_path``.
    """
    path = path or os.environ.get("EVENTS_CONFIG") or DEFAULT_CONFIG_PATH
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"Cannot read config {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    settings = _parse_settings(data.get("settings") or {})
    env_output = os.environ.get("EVENTS_OUTPUT_PATH")
    if env_output:
        settings = replace(settings, output_path=env_output)

    entries = data.get("sources") or []
    if not isinstance(entries, list):
        raise ConfigError("sources must be a list")
    sources = tuple(
        src for src in (_parse_source(e, i) for i, e in enumerate(entries)) if src
    )
    logger.debug(f"Loaded {len(sources)} sources from {path}")
    return BuildConfig(settings=settings, sources=sources)
