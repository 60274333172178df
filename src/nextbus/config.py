import os
from dataclasses import dataclass
from typing import Dict, Optional

from dotenv import load_dotenv

load_dotenv()

# =========================
# Pipeline variants
# =========================

@dataclass(frozen=True)
class PipelineConfig:
    """How one deployment shapes arrivals.

    ``early_exit_multiple`` times the output bound is the buffer size at which
    a stop counts as satisfied: ``max_arrivals_total`` per stop, or
    ``max_arrivals_per_route`` for every route seen at the stop when grouping.
    Once every requested stop is satisfied the feed scan stops. ``None`` scans
    the whole feed.
    """
    max_arrivals_total: int = 8
    max_arrivals_per_route: int = 5
    group_by_route: bool = False
    minute_unit_label: str = "min"
    early_exit_multiple: Optional[int] = 3
    route_separator: str = "-"
    relative_threshold_minutes: int = 60
    timezone: str = "America/Los_Angeles"
    omit_empty_stops: bool = False

    @property
    def buffer_cap(self) -> Optional[int]:
        if self.early_exit_multiple is None:
            return None
        bound = self.max_arrivals_per_route if self.group_by_route else self.max_arrivals_total
        return bound * self.early_exit_multiple


VARIANTS: Dict[str, PipelineConfig] = {
    # list of stops, each with up to 8 arrivals across all routes
    "flat": PipelineConfig(),
    # one stop, routes each with up to 5 buses
    "grouped": PipelineConfig(group_by_route=True),
    "single": PipelineConfig(),
}

# =========================
# Environment
# =========================

DEFAULT_TRIP_UPDATES_URL = "https://bct.tmix.se/gtfs-realtime/tripupdates.js?operatorIds=48"

FEED_PROVIDER = os.getenv("FEED_PROVIDER", "tmix")
FEED_PROVIDER_OPTS = os.getenv("FEED_PROVIDER_OPTS", "{}")
TRIP_UPDATES_URL = os.getenv("TRIP_UPDATES_URL", DEFAULT_TRIP_UPDATES_URL)
HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", "10"))
STOPS_CSV = os.getenv("STOPS_CSV")
FRONTEND_ORIGIN = os.getenv("FRONTEND_ORIGIN", "http://localhost:5173")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CACHE_MAX_AGE = int(os.getenv("CACHE_MAX_AGE", "30"))
