# src/nextbus/feeds/tmix.py
import logging
from typing import Any, Iterator, List, Optional

import httpx

from .. import config
from ..models import StopTimeEvent, StopTimeUpdate, TripUpdateRecord
from .base import FeedError

log = logging.getLogger(__name__)


def _get(d: Any, snake: str, camel: str) -> Any:
    if not isinstance(d, dict):
        return None
    value = d.get(snake)
    return d.get(camel) if value is None else value


def _as_int(value: Any) -> Optional[int]:
    # protobuf JSON renders int64 as strings
    if isinstance(value, bool) or value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return None


def decode_arrival(raw: Any) -> Optional[StopTimeEvent]:
    if not isinstance(raw, dict):
        return None
    time = _as_int(raw.get("time"))
    if raw.get("timeSpecified") is False:
        time = None
    delay = _as_int(raw.get("delay"))
    delay_specified = raw.get("delaySpecified", delay is not None) and delay is not None
    return StopTimeEvent(time=time, delay_specified=bool(delay_specified), delay=delay or 0)


def decode_stop_time_updates(raw: Any) -> List[StopTimeUpdate]:
    out: List[StopTimeUpdate] = []
    for item in raw:
        stop_id = _get(item, "stop_id", "stopId")
        if stop_id is None:
            continue
        out.append(StopTimeUpdate(stop_id=str(stop_id), arrival=decode_arrival(item.get("arrival"))))
    return out


def decode_feed(payload: Any) -> Iterator[TripUpdateRecord]:
    """Yield trip updates from a GTFS-realtime JSON feed, skipping anything malformed.

    Decoding is lazy so a consumer that stops early never pays for the rest of
    the feed.
    """
    entities = payload.get("entity") if isinstance(payload, dict) else None
    if not isinstance(entities, list):
        return

    skipped = 0
    for ent in entities:
        tu = _get(ent, "trip_update", "tripUpdate")
        route_id = _get(_get(tu, "trip", "trip"), "route_id", "routeId")
        updates = _get(tu, "stop_time_update", "stopTimeUpdate")
        if not route_id or not isinstance(updates, list):
            skipped += 1
            continue
        yield TripUpdateRecord(route_id_raw=str(route_id), stop_time_updates=decode_stop_time_updates(updates))

    if skipped:
        log.debug("Skipped %d entities without a usable trip update", skipped)


class TmixFeedProvider:
    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **_,
    ):
        self.url = url or config.TRIP_UPDATES_URL
        self.timeout = timeout or config.HTTP_TIMEOUT
        self.transport = transport

    async def fetch_trip_updates(self) -> Iterator[TripUpdateRecord]:
        headers = {"User-Agent": "nextbus/0.1"}
        try:
            async with httpx.AsyncClient(timeout=httpx.Timeout(self.timeout), transport=self.transport) as client:
                r = await client.get(self.url, headers=headers)
                r.raise_for_status()
                data = r.json()
        except httpx.HTTPStatusError as e:
            raise FeedError(f"feed HTTP {e.response.status_code}: {e.response.text[:200]}") from e
        except httpx.HTTPError as e:
            raise FeedError(f"feed request failed: {e}") from e
        except ValueError as e:
            raise FeedError(f"feed is not valid JSON: {e}") from e

        return decode_feed(data)
