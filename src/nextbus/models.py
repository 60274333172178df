from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator

# =========================
# Feed records (decoded upstream, read-only to the pipeline)
# =========================

@dataclass(frozen=True)
class StopTimeEvent:
    time: Optional[int]  # unix seconds, None when upstream left it unspecified
    delay_specified: bool = False
    delay: int = 0


@dataclass(frozen=True)
class StopTimeUpdate:
    stop_id: str
    arrival: Optional[StopTimeEvent] = None


@dataclass(frozen=True)
class TripUpdateRecord:
    route_id_raw: str
    stop_time_updates: Sequence[StopTimeUpdate] = field(default_factory=tuple)


@dataclass(frozen=True)
class ArrivalCandidate:
    route_id: str
    arrival_timestamp: int
    deviation_seconds: int


# =========================
# Response models
# =========================

class _Wire(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class FlatArrival(_Wire):
    route_id: str = Field(..., alias="routeId", description="Route id with the agency variant suffix removed")
    arriving: str = Field(..., description='"Now", "<n> min" or a wall-clock time such as "2:30 pm"')
    deviation: int = Field(0, description="Upstream delay in seconds, 0 when unspecified")


class StopArrivals(_Wire):
    stop_id: str = Field(..., alias="stopId")
    stop_name: Optional[str] = Field(None, alias="stopName")
    arrivals: List[FlatArrival]


class Bus(_Wire):
    arriving: str
    delayed_by: int = 0


class RouteArrivals(_Wire):
    route_id: str = Field(..., alias="routeId")
    buses: List[Bus]


class StopRoutes(_Wire):
    stop_id: str = Field(..., alias="stopId")
    stop_name: Optional[str] = Field(None, alias="stopName")
    routes: List[RouteArrivals]


class StopInfo(_Wire):
    stop_id: str = Field(..., alias="stopId")
    stop_name: str = Field(..., alias="stopName")


def _stop_id_str(s):
    if isinstance(s, bool):
        return s
    if isinstance(s, int):
        return str(s)
    if isinstance(s, float) and s.is_integer():
        return str(int(s))
    return s


class ArrivalsRequest(_Wire):
    stop_ids: List[str] = Field(..., alias="stopIds", min_length=1, description="Stops to report on")

    @field_validator("stop_ids", mode="before")
    @classmethod
    def _stop_ids_as_strings(cls, v):
        # stop ids arrive as JSON numbers from some clients; booleans and
        # fractional numbers are left for validation to reject
        if isinstance(v, list):
            return [_stop_id_str(s) for s in v]
        return v
