"""Reduce a trip-update feed snapshot to ranked, display-ready arrivals.

Every function here is synchronous and takes the request's ``now`` explicitly,
so a single captured instant is used for filtering and formatting alike.
"""
import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence

from .config import PipelineConfig
from .formatting import format_arrival_time, to_local
from .models import (
    ArrivalCandidate,
    Bus,
    FlatArrival,
    RouteArrivals,
    StopArrivals,
    StopRoutes,
    TripUpdateRecord,
)

log = logging.getLogger(__name__)

GroupBuffer = Dict[str, List[ArrivalCandidate]]


def normalize_route_id(raw: str, separator: str = "-") -> str:
    """Drop the agency variant suffix: ``"28-VIC"`` -> ``"28"``."""
    head, _, _ = raw.partition(separator)
    return head


def requested_stop_ids(stop_ids: Iterable) -> List[str]:
    # strings, first-seen order, no duplicates
    seen: Dict[str, None] = {}
    for s in stop_ids:
        seen.setdefault(str(s), None)
    return list(seen)


def collect_arrivals(
    records: Iterable[TripUpdateRecord],
    stop_ids: Sequence[str],
    now: int,
    config: PipelineConfig,
) -> GroupBuffer:
    """Scan the feed and buffer future arrivals per requested stop.

    Buffers exist for every requested stop before the scan starts. When the
    config has a buffer cap, a stop is satisfied once it holds ``cap``
    candidates, or in grouped mode once every route seen at it holds ``cap``.
    Scanning ends when every stop is satisfied. That cap is a heuristic: a
    stop whose soonest arrivals (or, grouped, whose only buses on some route)
    sit behind more than ``cap`` later ones in feed order could lose them.
    """
    buffers: GroupBuffer = {stop_id: [] for stop_id in stop_ids}
    route_counts: Dict[str, Dict[str, int]] = {stop_id: {} for stop_id in stop_ids}
    cap = config.buffer_cap
    satisfied = set()
    scanned = 0

    for record in records:
        scanned += 1
        route_id: Optional[str] = None
        for stu in record.stop_time_updates:
            bucket = buffers.get(stu.stop_id)
            if bucket is None:
                continue
            arrival = stu.arrival
            if arrival is None or arrival.time is None:
                continue
            if arrival.time <= now:
                continue
            if to_local(arrival.time, config.timezone) is None:
                # out of calendar range, e.g. milliseconds sent as seconds
                continue

            if route_id is None:
                route_id = normalize_route_id(record.route_id_raw, config.route_separator)
            bucket.append(
                ArrivalCandidate(
                    route_id=route_id,
                    arrival_timestamp=arrival.time,
                    deviation_seconds=arrival.delay if arrival.delay_specified else 0,
                )
            )
            if cap is None:
                continue
            if config.group_by_route:
                counts = route_counts[stu.stop_id]
                counts[route_id] = counts.get(route_id, 0) + 1
                if all(n >= cap for n in counts.values()):
                    satisfied.add(stu.stop_id)
                else:
                    satisfied.discard(stu.stop_id)
            elif len(bucket) >= cap:
                satisfied.add(stu.stop_id)

        if cap is not None and len(satisfied) == len(buffers):
            log.debug("All %d stops satisfied after %d trip updates, stopping scan", len(buffers), scanned)
            break

    return buffers


def rank_arrivals(candidates: List[ArrivalCandidate], limit: int) -> List[ArrivalCandidate]:
    # sorted() is stable, so equal timestamps keep feed order
    return sorted(candidates, key=lambda c: c.arrival_timestamp)[:limit]


def group_by_route(candidates: Iterable[ArrivalCandidate]) -> Dict[str, List[ArrivalCandidate]]:
    routes: Dict[str, List[ArrivalCandidate]] = {}
    for c in candidates:
        routes.setdefault(c.route_id, []).append(c)
    return routes


def _flat_arrivals(candidates: List[ArrivalCandidate], now: int, config: PipelineConfig) -> List[FlatArrival]:
    return [
        FlatArrival(
            route_id=c.route_id,
            arriving=_format(c, now, config),
            deviation=c.deviation_seconds,
        )
        for c in rank_arrivals(candidates, config.max_arrivals_total)
    ]


def _format(c: ArrivalCandidate, now: int, config: PipelineConfig) -> str:
    return format_arrival_time(
        c.arrival_timestamp,
        now,
        unit=config.minute_unit_label,
        threshold_minutes=config.relative_threshold_minutes,
        tz_name=config.timezone,
    )


# =========================
# Result assembly
# =========================

def assemble_flat(
    buffers: GroupBuffer,
    now: int,
    config: PipelineConfig,
    stop_names: Mapping[str, str],
) -> List[StopArrivals]:
    return [
        StopArrivals(
            stop_id=stop_id,
            stop_name=stop_names.get(stop_id),
            arrivals=_flat_arrivals(candidates, now, config),
        )
        for stop_id, candidates in buffers.items()
    ]


def assemble_single(
    buffers: GroupBuffer,
    stop_id: str,
    now: int,
    config: PipelineConfig,
    stop_names: Mapping[str, str],
) -> StopArrivals:
    return StopArrivals(
        stop_id=stop_id,
        stop_name=stop_names.get(stop_id),
        arrivals=_flat_arrivals(buffers.get(stop_id, []), now, config),
    )


def assemble_grouped(
    buffers: GroupBuffer,
    now: int,
    config: PipelineConfig,
    stop_names: Mapping[str, str],
) -> List[StopRoutes]:
    """Stop -> route -> buses, routes in the order they first appear in the feed."""
    result: List[StopRoutes] = []
    for stop_id, candidates in buffers.items():
        routes = []
        for route_id, route_candidates in group_by_route(candidates).items():
            buses = [
                Bus(arriving=_format(c, now, config), delayed_by=c.deviation_seconds)
                for c in rank_arrivals(route_candidates, config.max_arrivals_per_route)
            ]
            routes.append(RouteArrivals(route_id=route_id, buses=buses))

        if not routes and config.omit_empty_stops:
            continue
        result.append(StopRoutes(stop_id=stop_id, stop_name=stop_names.get(stop_id), routes=routes))
    return result


def build_arrivals(
    records: Iterable[TripUpdateRecord],
    stop_ids: Iterable,
    now: int,
    config: PipelineConfig,
    stop_names: Mapping[str, str],
):
    """Run the whole pipeline for one request in the config's layout."""
    wanted = requested_stop_ids(stop_ids)
    buffers = collect_arrivals(records, wanted, now, config)
    if config.group_by_route:
        return assemble_grouped(buffers, now, config, stop_names)
    return assemble_flat(buffers, now, config, stop_names)
