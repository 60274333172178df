import csv
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

log = logging.getLogger(__name__)

# Victoria Regional Transit stops shown when no STOPS_CSV is configured
DEFAULT_STOPS = {
    "101028": "Shelbourne St at Blair Ave",
    "101039": "Shelbourne St at Blair Ave",
}


def load_stop_names(path: Optional[str] = None) -> Mapping[str, str]:
    """Build the read-only stop id -> stop name table.

    Reads a GTFS-style CSV with ``stop_id`` and ``stop_name`` columns when
    ``path`` is given, otherwise falls back to :data:`DEFAULT_STOPS`.
    """
    if not path:
        return MappingProxyType(dict(DEFAULT_STOPS))

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Stops file not found: {p.resolve()}")

    names = {}
    with p.open(newline="", encoding="utf-8-sig") as f:
        for row in csv.DictReader(f):
            stop_id = (row.get("stop_id") or "").strip()
            if not stop_id:
                continue
            names[stop_id] = (row.get("stop_name") or "").strip()

    log.info("Loaded %d stop names from %s", len(names), p)
    return MappingProxyType(names)
