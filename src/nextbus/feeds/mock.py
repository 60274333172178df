import time
from typing import List

from ..models import StopTimeEvent, StopTimeUpdate, TripUpdateRecord


class MockFeedProvider:
    def __init__(self, stop_ids=("101028", "101039"), **_):
        self.stop_ids = [str(s) for s in stop_ids]

    async def fetch_trip_updates(self) -> List[TripUpdateRecord]:
        now = int(time.time())
        # A few deterministic trips relative to now, for local development
        trips = [
            ("28-VIC", 150, 0),
            ("27-VIC", 420, 60),
            ("28-VIC", 1320, -30),
            ("11-VIC", 5400, 120),
        ]
        return [
            TripUpdateRecord(
                route_id_raw=route,
                stop_time_updates=[
                    StopTimeUpdate(
                        stop_id=stop_id,
                        arrival=StopTimeEvent(time=now + offset, delay_specified=delay != 0, delay=delay),
                    )
                    for stop_id in self.stop_ids
                ],
            )
            for route, offset, delay in trips
        ]
