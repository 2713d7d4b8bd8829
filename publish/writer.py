"""Write the merged event list to the JSON artifact served by the site."""
from __future__ import annotations

import json
import logging
import os

from ingestion.errors import WriteError

logger = logging.getLogger(__name__)


def render_events(events: list[dict]) -> str:
    rows = [ev.to_json() if hasattr(ev, "to_json") else dict(ev) for ev in events]
    return json.dumps(rows, indent=2, ensure_ascii=False) + "\n"


def write_events(events: list[dict], output_path: str) -> str:
    """Serialize ``events`` to ``output_path``, creating parent directories."""
    try:
        payload = render_events(events)
    except (TypeError, ValueError) as e:
        raise WriteError(f"Cannot serialize events: {e}") from e

    try:
        os.makedirs(os.path.dirname(output_path) or ".", exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(payload)
    except OSError as e:
        raise WriteError(f"Cannot write {output_path}: {e}") from e

    logger.debug(f"Wrote {len(payload)} bytes to {output_path}")
    return output_path
